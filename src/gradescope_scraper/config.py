"""Saved settings and credential sources."""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from gradescope_scraper.account import DEFAULT_MAX_WORKERS
from gradescope_scraper.client import DEFAULT_BASE_URL

EMAIL_ENV = "GRADESCOPE_EMAIL"
PASSWORD_ENV = "GRADESCOPE_PASSWORD"

DEFAULT_SETTINGS_FILE = ".gradescope_scraper_settings.json"
STATUS_MODES = ("all", "errors")

_EMAIL_KEYS = frozenset({"email", "user", "username", "login", EMAIL_ENV.lower()})
_PASSWORD_KEYS = frozenset({"password", "pass", PASSWORD_ENV.lower()})
_PAIR_RE = re.compile(r"^([^=:]+)[=:](.*)$")


@dataclass
class Settings:
    """Defaults stored in the settings file. ``None`` means unset."""

    credentials_file: str | None = None
    base_url: str | None = None
    status_mode: str | None = None
    default_output: str | None = None
    max_workers: int | None = None

    @classmethod
    def keys(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def recommended(cls) -> Settings:
        return cls(
            credentials_file="./credentials.json",
            base_url=DEFAULT_BASE_URL,
            status_mode="errors",
            default_output="./output",
            max_workers=DEFAULT_MAX_WORKERS,
        )

    @classmethod
    def load(cls, path: Path | str) -> Settings:
        """Read settings from *path*; a missing file gives empty settings.

        Unknown keys are ignored. Anything but a JSON object raises
        ``ValueError``.
        """
        file_path = Path(path)
        if not file_path.is_file():
            return cls()

        data = json.loads(file_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{file_path} must hold a JSON object")
        return cls(**{key: data[key] for key in cls.keys() if key in data})

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}

    def save(self, path: Path | str) -> Path:
        file_path = Path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(
            json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )
        return file_path


def read_credentials_file(path: Path | str) -> tuple[str, str]:
    """Return ``(email, password)`` stored in *path*.

    ``.json`` files hold an object with ``email`` and ``password``. Any other
    file holds ``key=value`` or ``key: value`` lines (``#`` starts a comment);
    two bare lines are read as email then password.
    """
    file_path = Path(path)
    content = file_path.read_text(encoding="utf-8")

    if file_path.suffix.lower() == ".json":
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError(f"{file_path} must hold a JSON object")
        return str(data.get("email", "")).strip(), str(data.get("password", "")).strip()

    found: dict[str, str] = {}
    bare: list[str] = []
    for line in (raw.strip() for raw in content.splitlines()):
        if not line or line.startswith("#"):
            continue
        m = _PAIR_RE.match(line)
        if m is None:
            bare.append(line)
            continue
        key, value = m.group(1).strip().lower(), m.group(2).strip()
        if key in _EMAIL_KEYS:
            found["email"] = value
        elif key in _PASSWORD_KEYS:
            found["password"] = value

    if len(bare) >= 2:
        found["email"] = found.get("email") or bare[0]
        found["password"] = found.get("password") or bare[1]
    return found.get("email", ""), found.get("password", "")


def resolve_credentials(
    email: str | None = None,
    password: str | None = None,
    credentials_file: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[str, str]:
    """Pick email and password from explicit values, the file, then the environment.

    Each field is resolved on its own, so a password flag can complete an
    email read from the file. A credentials file that does not exist is
    skipped. Missing values come back as ``""``.
    """
    file_email = file_password = ""
    if credentials_file and Path(credentials_file).is_file():
        file_email, file_password = read_credentials_file(credentials_file)

    env = os.environ if environ is None else environ
    return (
        email or file_email or env.get(EMAIL_ENV, ""),
        password or file_password or env.get(PASSWORD_ENV, ""),
    )
