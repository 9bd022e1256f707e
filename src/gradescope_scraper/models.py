"""Project data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

_SUBMITTED_STATUSES = ("Submitted", "Graded")


@dataclass(frozen=True)
class Course:
    """Enrolled course."""

    course_id: str
    name: str
    term: str = ""


@dataclass
class Assignment:
    """Row of a course's assignment table.

    ``assignment_id`` is either the id found in the page markup or a
    placeholder built from the course id and the assignment name. Placeholder
    ids change whenever the name or the markup changes, so they should not be
    persisted as stable keys.
    """

    assignment_id: str
    name: str
    release_date: datetime | None = None
    due_date: datetime | None = None
    late_due_date: datetime | None = None
    status: str = "Not submitted"
    grade: float | None = None
    max_grade: float | None = None
    submission_id: str | None = None
    url: str = ""
    submitted_at: str | None = None

    @property
    def is_placeholder(self) -> bool:
        return "-placeholder-" in self.assignment_id

    @property
    def is_submitted(self) -> bool:
        if self.status in _SUBMITTED_STATUSES:
            return True
        return any(self.status.startswith(f"{s} (") for s in _SUBMITTED_STATUSES)


@dataclass
class CourseList:
    """Courses split by enrollment role, keyed by course id."""

    student: dict[str, Course] = field(default_factory=dict)
    instructor: dict[str, Course] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.student) + len(self.instructor)


@dataclass
class AssignmentFetchResult:
    """Outcome of fetching one course's assignments."""

    course_id: str
    assignments: list[Assignment] = field(default_factory=list)
    error: bool = False
    message: str = ""


def filter_courses_by_term(course_list: CourseList, term: str = "") -> CourseList:
    """Return a copy of *course_list* keeping courses of *term*.

    The comparison is case-insensitive and exact. An empty *term* keeps
    every course.
    """
    if not term:
        return CourseList(
            student=dict(course_list.student),
            instructor=dict(course_list.instructor),
        )

    needle = term.strip().lower()
    return CourseList(
        student={
            cid: c for cid, c in course_list.student.items() if c.term.lower() == needle
        },
        instructor={
            cid: c
            for cid, c in course_list.instructor.items()
            if c.term.lower() == needle
        },
    )
