"""HTTP client for gradescope.com."""

from __future__ import annotations

import logging
import re
import threading
from urllib.parse import urljoin, urlsplit

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.gradescope.com"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
LOGIN_PAGE_MARKER = "Log in with your Gradescope account"

_CSRF_RE = re.compile(r'<meta name="csrf-token" content="([^"]+)"')


class GradescopeError(Exception):
    """Base error for gradescope-scraper."""


class AuthTokenNotFound(GradescopeError):
    """Login page has no CSRF token."""


class NotAuthenticatedError(GradescopeError):
    """Authenticated request attempted before a successful login."""


class FetchError(GradescopeError):
    """Page could not be fetched."""

    def __init__(self, url: str, status_code: int | None = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        detail = reason or (f"HTTP {status_code}" if status_code is not None else "error")
        super().__init__(f"Could not fetch {url}: {detail}")


class CookieStore:
    """Ordered ``name -> "name=value"`` cookie map.

    A cookie keeps the position of its first appearance; later values for the
    same name replace it in place. Cookies are never removed.
    """

    def __init__(self) -> None:
        self._pairs: dict[str, str] = {}
        self._lock = threading.Lock()

    def merge(self, set_cookie_headers: list[str]) -> None:
        """Merge raw ``Set-Cookie`` header values."""
        with self._lock:
            for header in set_cookie_headers:
                pair = header.split(";", 1)[0].strip()
                if not pair:
                    continue
                name = pair.split("=", 1)[0]
                self._pairs[name] = pair

    def header(self) -> str:
        with self._lock:
            return "; ".join(self._pairs.values())

    def names(self) -> list[str]:
        with self._lock:
            return list(self._pairs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pairs)


class GradescopeClient:
    """Session-cookie Gradescope client."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cookies = CookieStore()
        self._authenticated = False
        self._client = httpx.Client(
            headers={"User-Agent": USER_AGENT},
            follow_redirects=False,
            timeout=timeout,
            transport=transport,
            event_hooks={"response": [self._capture_cookies]},
        )

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    def _capture_cookies(self, response: httpx.Response) -> None:
        set_cookies = response.headers.get_list("set-cookie")
        if set_cookies:
            self.cookies.merge(set_cookies)
            logger.debug(
                "Stored %d cookie(s) from %s", len(set_cookies), response.request.url
            )

    def _url(self, url: str) -> str:
        """Resolve *url* against the base URL; other hosts raise ``FetchError``."""
        if urlsplit(url).scheme or url.startswith("//"):
            target, base = urlsplit(url), urlsplit(self.base_url)
            if (target.scheme, target.netloc.lower()) != (base.scheme, base.netloc.lower()):
                raise FetchError(url, reason=f"not on {self.base_url}")
            return url
        return urljoin(self.base_url + "/", url.lstrip("/"))

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        cookie_header = self.cookies.header()
        if cookie_header:
            headers["Cookie"] = cookie_header
        if extra:
            headers.update(extra)
        return headers

    def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        **kwargs: object,
    ) -> httpx.Response:
        full_url = self._url(url)
        try:
            return self._client.request(
                method,
                full_url,
                headers=self._headers(headers),
                **kwargs,  # type: ignore[arg-type]
            )
        except httpx.HTTPError as e:
            raise FetchError(full_url, reason=str(e) or type(e).__name__) from e

    def get_cookies(self) -> str:
        """Return the merged ``Cookie`` header value."""
        return self.cookies.header()

    def fetch_token(self) -> str:
        """Return the CSRF token embedded in the login page."""
        resp = self._send("GET", "/login")
        if not resp.is_success:
            raise FetchError(str(resp.url), resp.status_code)

        m = _CSRF_RE.search(resp.text)
        if m is None:
            raise AuthTokenNotFound("Could not find CSRF token on login page")
        return m.group(1)

    def login(self, email: str, password: str) -> bool:
        """Log in with Rails form auth.

        Returns ``False`` when the site rejects the credentials or answers
        with anything but a redirect.
        """
        self._authenticated = False
        logger.info("Starting login for %s", email)
        token = self.fetch_token()

        login_url = self._url("/login")
        resp = self._send(
            "POST",
            login_url,
            data={
                "utf8": "✓",
                "authenticity_token": token,
                "session[email]": email,
                "session[password]": password,
                "session[remember_me]": "0",
                "commit": "Log In",
                "session[remember_me_sso]": "0",
            },
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
                "Origin": self.base_url,
                "Referer": login_url,
            },
        )
        logger.debug("Login response status: %d", resp.status_code)
        if resp.status_code != 302:
            logger.warning("Login failed: expected redirect, got HTTP %d", resp.status_code)
            return False

        location = resp.headers.get("location", "")
        if not location:
            logger.warning("Login failed: redirect without a Location header")
            return False

        landing = self._send("GET", self._url(location))
        if landing.status_code != 200:
            logger.warning("Login failed: redirect target returned HTTP %d", landing.status_code)
            return False
        if LOGIN_PAGE_MARKER in landing.text:
            logger.warning("Login failed: check email and password")
            return False

        self._authenticated = True
        logger.info("Logged in as %s", email)
        return True

    def get_html(self, url: str) -> str:
        """Return page HTML for an absolute URL or a site path."""
        if not self._authenticated:
            raise NotAuthenticatedError(f"Log in before fetching {url}")

        resp = self._send("GET", url)
        if not resp.is_success:
            raise FetchError(str(resp.url), resp.status_code)
        logger.debug("Fetched %s (%d bytes)", resp.url, len(resp.content))
        return resp.text

    def fetch_account_page(self) -> str:
        """Return account page HTML."""
        return self.get_html("/account")

    def fetch_course_page(self, course_id: str) -> str:
        """Return course page HTML."""
        return self.get_html(f"/courses/{course_id}")

    def fetch_submission_page(
        self, course_id: str, assignment_id: str, submission_id: str
    ) -> str:
        """Return submission page HTML."""
        return self.get_html(
            f"/courses/{course_id}/assignments/{assignment_id}/submissions/{submission_id}"
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GradescopeClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
