"""Terminal renderers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from gradescope_scraper.models import Assignment, Course, CourseList

_STATUS_STYLES: dict[str, str] = {
    "Graded": "bold green",
    "Submitted": "bold cyan",
    "Not submitted": "dim",
}


def status_text(status: str) -> Text:
    """Colour *status* by kind, with a red `` (Late)`` suffix."""
    base = status.removesuffix(" (Late)")
    style = _STATUS_STYLES.get(base, "")
    text = Text(base, style=style)
    if base != status:
        text.append(" (Late)", style="bold red")
    return text


def _date_text(value: datetime | None) -> Text:
    if value is None:
        return Text("—", style="dim")
    now = datetime.now(timezone.utc)
    label = value.strftime("%b %d %H:%M")
    if value < now:
        return Text(label, style="dim")
    if value < now + timedelta(days=3):
        return Text(label, style="bold yellow")
    return Text(label)


def _grade_text(assignment: Assignment) -> str:
    if assignment.grade is None:
        return "—"
    if assignment.max_grade is None:
        return f"{assignment.grade:g}"
    return f"{assignment.grade:g} / {assignment.max_grade:g}"


def display_courses(course_list: CourseList, console: Console | None = None) -> None:
    """Render course list."""
    if console is None:
        console = Console()

    if not len(course_list):
        console.print("[dim]No courses found.[/dim]")
        return

    for role, courses in (
        ("Student courses", course_list.student),
        ("Instructor courses", course_list.instructor),
    ):
        if not courses:
            continue

        table = Table(title=role, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim", width=10)
        table.add_column("Title", min_width=20)
        table.add_column("Term", width=16)

        for course in courses.values():
            table.add_row(course.course_id, course.name, course.term or "—")

        console.print(table)


def display_assignments(
    course: Course, assignments: list[Assignment], console: Console | None = None
) -> None:
    """Render assignments of one course."""
    if console is None:
        console = Console()

    header = f"[bold]{course.name}[/bold]\nTerm: {course.term or '—'}"
    console.print(Panel(header, title=f"Course {course.course_id}", border_style="blue"))

    if not assignments:
        console.print("[dim]No assignments found.[/dim]")
        return

    show_submitted = any(a.submitted_at for a in assignments)

    table = Table(show_header=True, header_style="bold cyan", show_lines=False)
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", min_width=20)
    table.add_column("Status", width=20)
    table.add_column("Grade", justify="right", width=12)
    table.add_column("Released", width=14)
    table.add_column("Due", width=14)
    table.add_column("Late Due", width=14)
    if show_submitted:
        table.add_column("Submitted At", width=24)

    for i, a in enumerate(assignments, 1):
        name = Text(a.name)
        if a.is_placeholder:
            name.append(" *", style="dim")
        row = [
            str(i),
            name,
            status_text(a.status),
            _grade_text(a),
            _date_text(a.release_date),
            _date_text(a.due_date),
            _date_text(a.late_due_date),
        ]
        if show_submitted:
            row.append(a.submitted_at or "—")
        table.add_row(*row)

    console.print(table)
    if any(a.is_placeholder for a in assignments):
        console.print("[dim]* ID generated from the assignment name[/dim]")
