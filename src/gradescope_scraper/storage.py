"""Export scraped records to JSON, CSV and Markdown files."""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from gradescope_scraper.models import Assignment, Course, CourseList

ASSIGNMENT_COLUMNS = [
    "#",
    "ID",
    "Name",
    "Status",
    "Grade",
    "Max Grade",
    "Released",
    "Due",
    "Late Due",
    "Submitted At",
]


def _target(output_dir: Path | str, filename: str) -> Path:
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return directory / filename


def _fmt_date(value: datetime | None, empty: str = "") -> str:
    if value is None:
        return empty
    return value.strftime("%Y-%m-%d %H:%M %z")


def _fmt_grade(value: float | None, empty: str = "") -> str:
    if value is None:
        return empty
    return f"{value:g}"


def save_courses_json(course_list: CourseList, output_dir: Path | str = ".") -> Path:
    """Write ``courses.json`` into *output_dir*."""
    path = _target(output_dir, "courses.json")
    path.write_text(
        json.dumps(asdict(course_list), indent=2, ensure_ascii=False), encoding="utf-8"
    )
    return path


def load_courses_json(path: Path | str) -> CourseList:
    """Load a course list written by ``save_courses_json``.

    Records are keyed by their own ``course_id``; a repeated id overwrites the
    earlier record of the same partition.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("Course list JSON must be an object")

    course_list = CourseList()
    for role in ("student", "instructor"):
        partition = raw.get(role, {})
        if not isinstance(partition, dict):
            raise ValueError(f"'{role}' must be an object")
        target = getattr(course_list, role)
        for item in partition.values():
            if not isinstance(item, dict) or not item.get("course_id"):
                continue
            course = Course(
                course_id=str(item["course_id"]),
                name=str(item.get("name", "")),
                term=str(item.get("term", "")),
            )
            target[course.course_id] = course
    return course_list


def save_assignments_json(
    course: Course, assignments: list[Assignment], output_dir: Path | str = "."
) -> Path:
    """Write ``assignments_{course_id}.json`` with the course and its rows."""
    path = _target(output_dir, f"assignments_{course.course_id}.json")
    payload = {
        "course": asdict(course),
        "assignments": [asdict(a) for a in assignments],
    }
    path.write_text(
        json.dumps(payload, indent=2, default=str, ensure_ascii=False), encoding="utf-8"
    )
    return path


def save_assignments_csv(
    course: Course,
    assignments: list[Assignment],
    output_dir: Path | str = ".",
    columns: list[str] | None = None,
) -> Path:
    """Write ``assignments_{course_id}.csv``.

    *columns* picks a subset of ``ASSIGNMENT_COLUMNS``; the output keeps the
    canonical column order whatever order *columns* lists them in.
    """
    path = _target(output_dir, f"assignments_{course.course_id}.csv")
    header = ASSIGNMENT_COLUMNS if columns is None else [
        c for c in ASSIGNMENT_COLUMNS if c in columns
    ]

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=header, extrasaction="ignore")
        writer.writeheader()
        for number, a in enumerate(assignments, 1):
            writer.writerow(
                {
                    "#": number,
                    "ID": a.assignment_id,
                    "Name": a.name,
                    "Status": a.status,
                    "Grade": _fmt_grade(a.grade),
                    "Max Grade": _fmt_grade(a.max_grade),
                    "Released": _fmt_date(a.release_date),
                    "Due": _fmt_date(a.due_date),
                    "Late Due": _fmt_date(a.late_due_date),
                    "Submitted At": a.submitted_at or "",
                }
            )
    return path


def save_assignments_markdown(
    course: Course, assignments: list[Assignment], output_dir: Path | str = "."
) -> Path:
    """Save course assignments to Markdown."""
    path = _target(output_dir, f"assignments_{course.course_id}.md")

    lines: list[str] = []
    lines.append(f"# {course.name}")
    lines.append("")
    if course.term:
        lines.append(f"**Term:** {course.term}")
        lines.append("")

    lines.append("| # | Name | Status | Grade | Due | Late Due | Submitted At |")
    lines.append("|---|------|--------|------:|-----|----------|--------------|")
    for i, a in enumerate(assignments, 1):
        grade = "-"
        if a.grade is not None and a.max_grade is not None:
            grade = f"{_fmt_grade(a.grade)}/{_fmt_grade(a.max_grade)}"
        lines.append(
            f"| {i} | {a.name} | {a.status} | {grade} | {_fmt_date(a.due_date, '-')} | "
            f"{_fmt_date(a.late_due_date, '-')} | {a.submitted_at or '-'} |"
        )

    placeholders = [a for a in assignments if a.is_placeholder]
    if placeholders:
        lines.append("")
        lines.append(
            f"_{len(placeholders)} assignment ID(s) were generated from names "
            "and may change between runs._"
        )

    path.write_text("\n".join(lines), encoding="utf-8")
    return path
