"""Command line interface: ``gradescope-scraper``."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console

from gradescope_scraper._logging import setup_logging
from gradescope_scraper.account import DEFAULT_MAX_WORKERS, Account
from gradescope_scraper.client import DEFAULT_BASE_URL, GradescopeClient, GradescopeError
from gradescope_scraper.config import (
    DEFAULT_SETTINGS_FILE,
    EMAIL_ENV,
    PASSWORD_ENV,
    STATUS_MODES,
    Settings,
    resolve_credentials,
)
from gradescope_scraper.display import display_assignments, display_courses
from gradescope_scraper.models import Assignment, Course, CourseList, filter_courses_by_term
from gradescope_scraper.storage import (
    save_assignments_csv,
    save_assignments_json,
    save_assignments_markdown,
    save_courses_json,
)

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

FORMATS = ("table", "json", "csv", "markdown")
COURSE_FORMATS = ("table", "json")

_ASSIGNMENT_WRITERS: dict[str, Callable[[Course, list[Assignment], str], Path]] = {
    "json": save_assignments_json,
    "csv": save_assignments_csv,
    "markdown": save_assignments_markdown,
}


def _add_listing_args(sub: argparse.ArgumentParser, formats: tuple[str, ...] = FORMATS) -> None:
    sub.add_argument("--term", "-t", help="Keep courses of one term, e.g. 'Fall 2024'")
    sub.add_argument("--output", "-o", help="Directory for exported files")
    sub.add_argument(
        "--format",
        "-f",
        choices=formats,
        default="table",
        help="'table' prints to the terminal; other formats write files (default: table)",
    )
    sub.add_argument(
        "--show", action="store_true", help="Also print the table after writing files"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gradescope-scraper",
        description="Scrape courses, assignments and submission times from Gradescope",
    )
    parser.add_argument("--email", "-e", help=f"Account email (falls back to ${EMAIL_ENV})")
    parser.add_argument(
        "--password", "-p", help=f"Account password (falls back to ${PASSWORD_ENV})"
    )
    parser.add_argument(
        "--credentials-file", help="JSON object or key=value file holding email and password"
    )
    parser.add_argument("--base-url", help=f"Gradescope root URL (default: {DEFAULT_BASE_URL})")
    parser.add_argument(
        "--status-mode",
        choices=STATUS_MODES,
        help="'all' reports every step, 'errors' only problems",
    )
    parser.add_argument("--default-output", help="Export directory when --output is not given")
    parser.add_argument(
        "--settings-file",
        default=DEFAULT_SETTINGS_FILE,
        help=f"Saved defaults (default: {DEFAULT_SETTINGS_FILE})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug messages")
    parser.add_argument("--log-file", help="Write log records to this file too")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("tui", help="Open the interactive terminal UI")

    courses_cmd = commands.add_parser("courses", help="List the courses you are enrolled in")
    _add_listing_args(courses_cmd, COURSE_FORMATS)

    assignments_cmd = commands.add_parser("assignments", help="List assignments per course")
    _add_listing_args(assignments_cmd)
    assignments_cmd.add_argument(
        "--course", "-c", nargs="+", metavar="ID", help="Course ids (default: every course)"
    )
    assignments_cmd.add_argument(
        "--submission-times",
        action="store_true",
        help="Open each submission page to read when it was submitted",
    )
    assignments_cmd.add_argument(
        "--workers",
        type=int,
        help=f"Courses fetched in parallel (default: {DEFAULT_MAX_WORKERS})",
    )

    settings_cmd = commands.add_parser("settings", help="Inspect or change saved defaults")
    settings_actions = settings_cmd.add_subparsers(dest="settings_action", required=True)
    settings_actions.add_parser("init", help="Save the recommended defaults")
    settings_actions.add_parser("show", help="Print saved defaults")
    set_cmd = settings_actions.add_parser("set", help="Change saved defaults")
    for key in Settings.keys():
        set_cmd.add_argument(
            f"--{key.replace('_', '-')}",
            dest=f"new_{key}",
            type=int if key == "max_workers" else str,
            choices=STATUS_MODES if key == "status_mode" else None,
        )
    clear_cmd = settings_actions.add_parser("clear", help="Forget saved defaults")
    clear_cmd.add_argument(
        "keys", nargs="*", metavar="KEY", help="Keys to forget (default: all of them)"
    )

    return parser


# -- settings -----------------------------------------------------------------


def _settings_init(args: argparse.Namespace, settings: Settings) -> None:
    path = Settings.recommended().save(args.settings_file)
    console.print(f"[green][OK][/green] Recommended settings written to {path}")


def _settings_show(args: argparse.Namespace, settings: Settings) -> None:
    console.print_json(data=settings.to_dict())


def _settings_set(args: argparse.Namespace, settings: Settings) -> None:
    changes = {
        key: getattr(args, f"new_{key}")
        for key in Settings.keys()
        if getattr(args, f"new_{key}") is not None
    }
    if not changes:
        err_console.print("[bold red]Error:[/bold red] give at least one setting to change")
        sys.exit(1)

    for key, value in changes.items():
        setattr(settings, key, value)
    path = settings.save(args.settings_file)
    console.print(f"[green][OK][/green] Updated {', '.join(changes)} in {path}")


def _settings_clear(args: argparse.Namespace, settings: Settings) -> None:
    unknown = sorted(set(args.keys) - set(Settings.keys()))
    if unknown:
        err_console.print(
            f"[bold red]Error:[/bold red] unknown setting(s): {', '.join(unknown)}"
        )
        sys.exit(1)

    for key in args.keys or Settings.keys():
        setattr(settings, key, None)
    path = settings.save(args.settings_file)
    console.print(f"[green][OK][/green] Cleared settings in {path}")


_SETTINGS_ACTIONS: dict[str, Callable[[argparse.Namespace, Settings], None]] = {
    "init": _settings_init,
    "show": _settings_show,
    "set": _settings_set,
    "clear": _settings_clear,
}


def _load_saved_settings(path: str) -> Settings:
    try:
        return Settings.load(path)
    except ValueError as e:
        err_console.print(f"[bold red]Settings error:[/bold red] {e}")
        sys.exit(1)


def _apply_settings(args: argparse.Namespace, settings: Settings) -> None:
    """Fill options left unset on the command line from saved settings."""
    for key, value in settings.to_dict().items():
        if getattr(args, key, None) is None:
            setattr(args, key, value)

    args.status_mode = args.status_mode or "all"
    args.base_url = args.base_url or DEFAULT_BASE_URL
    if getattr(args, "workers", None) is None:
        args.workers = settings.max_workers or DEFAULT_MAX_WORKERS


def _credentials(args: argparse.Namespace, parser: argparse.ArgumentParser) -> tuple[str, str]:
    try:
        email, password = resolve_credentials(
            args.email, args.password, args.credentials_file
        )
    except (OSError, ValueError) as e:
        parser.error(f"cannot read {args.credentials_file}: {e}")

    missing = [name for name, value in (("email", email), ("password", password)) if not value]
    if missing:
        parser.error(
            f"missing {' and '.join(missing)}: pass --email/--password, "
            f"--credentials-file or set {EMAIL_ENV}/{PASSWORD_ENV}"
        )
    return email, password


# -- scraping -----------------------------------------------------------------


def _report(args: argparse.Namespace, message: str) -> None:
    if args.status_mode == "all":
        console.print(f"[green][OK][/green] {message}")


def _output_dir(args: argparse.Namespace) -> str:
    return str(args.output or args.default_output or ".")


def _courses_for(args: argparse.Namespace, account: Account) -> CourseList:
    with console.status("[bold blue]Reading course list..."):
        courses = filter_courses_by_term(account.get_courses(), args.term or "")
    if args.term and not len(courses):
        err_console.print(f"[yellow]Warning:[/yellow] no courses in term '{args.term}'")
    return courses


def _run_courses(args: argparse.Namespace, account: Account) -> None:
    courses = _courses_for(args, account)
    if args.format == "table":
        display_courses(courses, console)
        return

    path = save_courses_json(courses, _output_dir(args))
    _report(args, f"{len(courses)} courses -> {path}")
    if args.show:
        display_courses(courses, console)


def _run_assignments(args: argparse.Namespace, account: Account) -> None:
    courses = _courses_for(args, account)
    course_ids = [str(c) for c in args.course] if args.course else list(courses.student)
    if not course_ids:
        err_console.print("[yellow]Warning:[/yellow] no courses to read assignments from")
        return

    with console.status(f"[bold blue]Reading assignments of {len(course_ids)} course(s)..."):
        results = account.fetch_all_assignments(course_ids, max_workers=args.workers)

    failed = [r for r in results if r.error]
    for result in failed:
        err_console.print(
            f"[yellow]Warning:[/yellow] course {result.course_id} skipped: {result.message}"
        )
    fetched = {r.course_id: r.assignments for r in results if not r.error}

    if args.submission_times and fetched:
        with console.status("[bold blue]Reading submission times..."):
            count = account.resolve_submission_times(fetched)
        _report(args, f"{count} submission times")

    writer = _ASSIGNMENT_WRITERS.get(args.format)
    for course_id, assignments in fetched.items():
        course = courses.student.get(course_id) or Course(course_id, f"Course {course_id}")
        if writer is None:
            display_assignments(course, assignments, console)
            continue

        path = writer(course, assignments, _output_dir(args))
        _report(args, f"{course.name}: {len(assignments)} assignments -> {path}")
        if args.show:
            display_assignments(course, assignments, console)

    if failed:
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose or args.log_file:
        setup_logging(
            level=logging.DEBUG if args.verbose else logging.INFO,
            log_file=args.log_file,
        )

    settings = _load_saved_settings(args.settings_file)
    if args.command == "settings":
        _SETTINGS_ACTIONS[args.settings_action](args, settings)
        return

    if args.command == "tui":
        from gradescope_scraper.tui import run

        run(debug=args.verbose, base_url=args.base_url or settings.base_url)
        return

    load_dotenv()
    _apply_settings(args, settings)
    email, password = _credentials(args, parser)

    try:
        with GradescopeClient(base_url=args.base_url) as client:
            with console.status("[bold blue]Logging in..."):
                logged_in = client.login(email, password)
            if not logged_in:
                err_console.print("[bold red]Login failed:[/bold red] wrong email or password")
                sys.exit(1)
            _report(args, f"Logged in as {email}")

            account = Account(client)
            if args.command == "courses":
                _run_courses(args, account)
            else:
                _run_assignments(args, account)
    except GradescopeError as e:
        logger.debug("Aborted", exc_info=True)
        err_console.print(f"[bold red]Gradescope error:[/bold red] {e}")
        sys.exit(1)
    except (OSError, ValueError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv[1:])
