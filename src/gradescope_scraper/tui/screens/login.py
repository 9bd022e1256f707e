"""Sign-in form shown when the TUI starts."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from textual import on, work
from textual.app import ComposeResult
from textual.containers import Center, Middle, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Input, Static

from gradescope_scraper.client import GradescopeClient, GradescopeError
from gradescope_scraper.config import EMAIL_ENV, PASSWORD_ENV

logger = logging.getLogger(__name__)


class LoginScreen(Screen[None]):
    """Collects email and password, then logs in off the UI thread."""

    def __init__(self, base_url: str | None = None) -> None:
        super().__init__()
        self._base_url = base_url

    def compose(self) -> ComposeResult:
        load_dotenv()
        with Middle(), Center(), Vertical(id="login-form"):
            yield Static("Gradescope sign in", id="login-heading")
            yield Input(
                value=os.environ.get(EMAIL_ENV, ""),
                placeholder="Email",
                id="email",
            )
            yield Input(
                value=os.environ.get(PASSWORD_ENV, ""),
                placeholder="Password",
                password=True,
                id="password",
            )
            yield Button("Sign in", variant="primary", id="sign-in")
            yield Static("", id="login-message")
        yield Footer()

    def on_mount(self) -> None:
        email = self.query_one("#email", Input)
        if email.value:
            self.query_one("#password", Input).focus()
        else:
            email.focus()

    @on(Input.Submitted, "#email")
    def _next_field(self) -> None:
        self.query_one("#password", Input).focus()

    @on(Input.Submitted, "#password")
    @on(Button.Pressed, "#sign-in")
    def _submit(self) -> None:
        email = self.query_one("#email", Input).value.strip()
        password = self.query_one("#password", Input).value
        if not email or not password:
            self._show_message("Both email and password are required", "error")
            return
        self.query_one("#sign-in", Button).disabled = True
        self._show_message(f"Signing in as {email}...", "info")
        self._sign_in(email, password)

    @work(thread=True, exclusive=True)
    def _sign_in(self, email: str, password: str) -> None:
        kwargs = {"base_url": self._base_url} if self._base_url else {}
        client = GradescopeClient(**kwargs)
        try:
            ok = client.login(email, password)
        except GradescopeError as e:
            logger.warning("Sign in failed: %s", e)
            ok = False
            message = str(e)
        else:
            message = "Wrong email or password"

        if not ok:
            client.close()
            self.app.call_from_thread(self._failed, message)
            return

        self.app.call_from_thread(self._signed_in, client)

    def _failed(self, message: str) -> None:
        self.query_one("#sign-in", Button).disabled = False
        self._show_message(message, "error")

    def _signed_in(self, client: GradescopeClient) -> None:
        from gradescope_scraper.tui.screens.main import MainScreen

        self.app.set_client(client)  # type: ignore[attr-defined]
        self.app.switch_screen(MainScreen())

    def _show_message(self, text: str, kind: str) -> None:
        message = self.query_one("#login-message", Static)
        message.update(text)
        message.set_classes(kind)
