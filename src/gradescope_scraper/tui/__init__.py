"""Interactive terminal UI."""

from __future__ import annotations

import logging


def run(debug: bool = False, base_url: str | None = None) -> None:
    """Start the TUI; *debug* sends debug logs to ``gradescope_scraper_tui.log``."""
    if debug:
        from gradescope_scraper._logging import setup_logging

        setup_logging(level=logging.DEBUG, log_file="gradescope_scraper_tui.log")

    from gradescope_scraper.tui.app import GradescopeApp

    GradescopeApp(base_url=base_url).run()
