"""Main screen for gradescope-scraper TUI: courses and assignments."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import cast

from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Label, OptionList
from textual.widgets.option_list import Option

from gradescope_scraper.account import Account
from gradescope_scraper.client import GradescopeError
from gradescope_scraper.display import status_text
from gradescope_scraper.models import Assignment, Course, CourseList

logger = logging.getLogger(__name__)


def _date_cell(value: datetime | None) -> str:
    return value.strftime("%b %d %H:%M") if value else "—"


class MainScreen(Screen[None]):
    """Course list on the left, assignment table on the right."""

    BINDINGS = [
        Binding("r", "refresh", "Refresh"),
        Binding("s", "submission_times", "Submission times"),
        Binding("tab", "cycle_focus", "Switch pane", show=False),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._current: Course | None = None

    @property
    def account(self) -> Account:
        return cast(Account, self.app.account)  # type: ignore[attr-defined]

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-body"):
            with Vertical(id="course-pane"):
                yield Label("Courses", classes="pane-title")
                yield OptionList(id="course-list")
            with Vertical(id="assignment-pane"):
                yield DataTable(id="assignment-table", cursor_type="row")
                yield Label("", id="assignment-detail")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#assignment-table", DataTable)
        table.add_columns("#", "Name", "Status", "Grade", "Released", "Due", "Late Due", "Submitted")
        self._load_courses()

    def action_cycle_focus(self) -> None:
        course_list = self.query_one("#course-list", OptionList)
        if course_list.has_focus:
            self.query_one("#assignment-table", DataTable).focus()
        else:
            course_list.focus()

    def action_refresh(self) -> None:
        if self._current is not None:
            self.app.assignment_cache.pop(self._current.course_id, None)  # type: ignore[attr-defined]
            self._load_assignments(self._current)
        else:
            self._load_courses()

    def action_submission_times(self) -> None:
        if self._current is None:
            self.notify("Select a course first", severity="warning")
            return
        self._load_submission_times(self._current)

    # -- courses --------------------------------------------------------------

    @work(thread=True, exclusive=True, group="courses")
    def _load_courses(self) -> None:
        try:
            courses = self.account.get_courses()
        except GradescopeError as e:
            logger.error("Could not load courses: %s", e)
            self.app.call_from_thread(self.notify, f"Could not load courses: {e}", severity="error")
            return
        self.app.courses = courses  # type: ignore[attr-defined]
        self.app.call_from_thread(self._show_courses, courses)

    def _show_courses(self, courses: CourseList) -> None:
        course_list = self.query_one("#course-list", OptionList)
        course_list.clear_options()
        for course in courses.student.values():
            label = Text.assemble(course.name, "\n", (course.term or "—", "dim"))
            course_list.add_option(Option(label, id=course.course_id))
        if not courses.student:
            self.notify("No courses found", severity="warning")
        course_list.focus()

    @on(OptionList.OptionSelected, "#course-list")
    def _course_selected(self, event: OptionList.OptionSelected) -> None:
        course_id = event.option.id
        if course_id is None:
            return
        course = self.app.courses.student.get(course_id)  # type: ignore[attr-defined]
        if course is None:
            return
        self._current = course
        cached = self.app.assignment_cache.get(course_id)  # type: ignore[attr-defined]
        if cached is not None:
            self._show_assignments(course, cached)
        else:
            self._load_assignments(course)

    # -- assignments ----------------------------------------------------------

    @work(thread=True, exclusive=True, group="assignments")
    def _load_assignments(self, course: Course) -> None:
        self.app.call_from_thread(self._set_detail, f"Loading {course.name}...")
        try:
            assignments = self.account.get_assignments(course.course_id)
        except GradescopeError as e:
            logger.error("Could not load course %s: %s", course.course_id, e)
            self.app.call_from_thread(self._set_detail, f"Error: {e}")
            return
        self.app.assignment_cache[course.course_id] = assignments  # type: ignore[attr-defined]
        self.app.call_from_thread(self._show_assignments, course, assignments)

    @work(thread=True, exclusive=True, group="submissions")
    def _load_submission_times(self, course: Course) -> None:
        assignments = self.app.assignment_cache.get(course.course_id)  # type: ignore[attr-defined]
        if not assignments:
            return
        self.app.call_from_thread(self._set_detail, "Fetching submission times...")
        resolved = self.account.resolve_submission_times({course.course_id: assignments})
        self.app.call_from_thread(self._show_assignments, course, assignments)
        self.app.call_from_thread(self.notify, f"Fetched {resolved} submission times")

    def _show_assignments(self, course: Course, assignments: list[Assignment]) -> None:
        table = self.query_one("#assignment-table", DataTable)
        table.clear()
        for i, a in enumerate(assignments, 1):
            grade = "—"
            if a.grade is not None:
                grade = f"{a.grade:g}" if a.max_grade is None else f"{a.grade:g}/{a.max_grade:g}"
            table.add_row(
                str(i),
                a.name,
                status_text(a.status),
                grade,
                _date_cell(a.release_date),
                _date_cell(a.due_date),
                _date_cell(a.late_due_date),
                a.submitted_at or "—",
            )
        placeholders = sum(1 for a in assignments if a.is_placeholder)
        detail = f"{course.name} ({course.term or '—'}): {len(assignments)} assignments"
        if placeholders:
            detail += f", {placeholders} with generated IDs"
        self._set_detail(detail)

    def _set_detail(self, message: str) -> None:
        self.query_one("#assignment-detail", Label).update(message)
