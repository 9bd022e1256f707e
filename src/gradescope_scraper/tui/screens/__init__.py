"""TUI screens for gradescope-scraper."""

from __future__ import annotations

from gradescope_scraper.tui.screens.login import LoginScreen
from gradescope_scraper.tui.screens.main import MainScreen

__all__ = [
    "LoginScreen",
    "MainScreen",
]
