"""Textual application object."""

from __future__ import annotations

import logging

from textual.app import App
from textual.binding import Binding

from gradescope_scraper.account import Account
from gradescope_scraper.client import GradescopeClient
from gradescope_scraper.models import Assignment, CourseList

logger = logging.getLogger(__name__)


class GradescopeApp(App[None]):
    """Holds the signed-in client and what has been scraped so far."""

    TITLE = "Gradescope Scraper"
    CSS_PATH = "app.tcss"
    BINDINGS = [Binding("ctrl+q", "quit", "Quit", priority=True)]

    def __init__(self, base_url: str | None = None) -> None:
        super().__init__()
        self.base_url = base_url
        self.client: GradescopeClient | None = None
        self.account: Account | None = None
        self.courses = CourseList()
        self.assignment_cache: dict[str, list[Assignment]] = {}

    def on_mount(self) -> None:
        from gradescope_scraper.tui.screens.login import LoginScreen

        self.push_screen(LoginScreen(self.base_url))

    def on_unmount(self) -> None:
        if self.client is not None:
            logger.debug("Closing HTTP client")
            self.client.close()

    def set_client(self, client: GradescopeClient) -> None:
        """Switch to a freshly signed-in client and forget cached data."""
        if self.client is not None and self.client is not client:
            self.client.close()
        self.client = client
        self.account = Account(client)
        self.courses = CourseList()
        self.assignment_cache.clear()
