"""Parsers for Gradescope HTML pages."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from urllib.parse import urlparse
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup, Tag

from gradescope_scraper.models import Assignment, Course, CourseList

logger = logging.getLogger(__name__)

SITE_TIMEZONE = ZoneInfo("America/New_York")

_OFFSET_SEP_RE = re.compile(r" ([-+])")
_ISO_OFFSET_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})"
    r"(?:[T ](\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?))?"
    r"T?(Z|[-+]\d{2}:?\d{2})$"
)
_LATE_DUE_PREFIX = "Late Due Date: "
_DATE_TEXT_FORMATS = ("%b %d at %I:%M%p", "%b %d at  %I:%M%p")

_SCORE_RE = re.compile(r"(\d+\.?\d*)\s*/\s*(\d+\.?\d*)")
_SUBMISSION_RE = re.compile(r"/submissions/([^/?#]+)")

COURSE_BOX_SELECTOR = ".courseList--coursesForTerm .courseBox:not(.courseBox-new)"
ASSIGNMENT_ROW_SELECTOR = "#assignments-student-table tbody tr"
SUBMISSION_VIEWER_CLASS = "AssignmentSubmissionViewer"


def _text(tag: Tag | None) -> str:
    """Return trimmed text of *tag* or ``""``."""
    if tag is None:
        return ""
    return tag.get_text().strip()


def _parse_float(text: str) -> float | None:
    """Parse float or return ``None``."""
    try:
        return float(text)
    except (ValueError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _parse_iso_offset(value: str) -> datetime | None:
    """Parse ``2024-09-06T-0400`` / ``2024-09-06 23:59:00T-0400`` style values."""
    m = _ISO_OFFSET_RE.match(value)
    if m is not None:
        day, clock, offset = m.groups()
        if offset == "Z":
            offset = "+00:00"
        elif ":" not in offset:
            offset = f"{offset[:3]}:{offset[3:]}"
        value = f"{day}T{clock or '00:00:00'}{offset}"

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def _parse_date_text(text: str, year: int | None = None) -> datetime | None:
    """Parse ``Sep 06 at 11:59PM`` in the site's timezone."""
    if text.startswith(_LATE_DUE_PREFIX):
        text = text[len(_LATE_DUE_PREFIX) :]
    if year is None:
        year = datetime.now(SITE_TIMEZONE).year

    for fmt in _DATE_TEXT_FORMATS:
        try:
            parsed = datetime.strptime(f"{year} {text}", f"%Y {fmt}")
        except ValueError:
            continue
        return parsed.replace(tzinfo=SITE_TIMEZONE)
    return None


def parse_date(element: Tag | None) -> datetime | None:
    """Parse a ``<time>`` element into an aware datetime.

    The ``datetime`` attribute is tried first, then the element text. Any
    failure gives ``None``.
    """
    if element is None:
        return None

    attr = element.get("datetime")
    if attr:
        parsed = _parse_iso_offset(_OFFSET_SEP_RE.sub(r"T\1", str(attr).strip(), count=1))
        if parsed is not None:
            return parsed

    text = _text(element)
    if text:
        parsed = _parse_date_text(text)
        if parsed is not None:
            return parsed

    logger.warning("Failed to parse date from element: %s", element)
    return None


# ---------------------------------------------------------------------------
# Account page
# ---------------------------------------------------------------------------


def parse_account_page(html: str) -> CourseList:
    """Parse account page into ``CourseList``.

    Only student courses are collected; ``instructor`` stays empty.
    """
    soup = BeautifulSoup(html, "lxml")
    courses = CourseList()

    for box in soup.select(COURSE_BOX_SELECTOR):
        try:
            course = _parse_course_box(box)
        except Exception:
            logger.exception("Error parsing course element: %s", box)
            continue
        if course is not None:
            courses.student[course.course_id] = course

    logger.debug("Parsed %d student courses", len(courses.student))
    return courses


def _parse_course_box(box: Tag) -> Course | None:
    """Parse one ``.courseBox`` link."""
    name = _text(box.select_one(".courseBox--name")) or _text(
        box.select_one(".courseBox--shortname")
    )
    term = _find_term(box)

    href = str(box.get("href") or "")
    course_id = href.split("/")[-1] if href else ""

    if not name or not course_id:
        logger.error("Could not parse name or ID for course element: %s", box)
        return None

    return Course(course_id=course_id, name=name, term=term)


def _find_term(box: Tag) -> str:
    """Return the heading right before the box's term group."""
    group = box.find_parent(class_="courseList--coursesForTerm")
    if group is None:
        return ""
    heading = group.find_previous_sibling(True)
    return _text(heading)


# ---------------------------------------------------------------------------
# Course page
# ---------------------------------------------------------------------------


def slugify(name: str) -> str:
    """Lowercase, dash-separated, ``[a-z0-9-]`` only."""
    slug = re.sub(r"\s+", "-", name.lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def placeholder_id(course_id: str, name: str) -> str:
    return f"{course_id}-placeholder-{slugify(name)}"


def _id_from_href(href: str) -> str:
    """Last path segment, or the fifth one for a trailing slash."""
    segments = urlparse(href).path.split("/")
    if segments[-1]:
        return segments[-1]
    return segments[4] if len(segments) > 4 else ""


def parse_course_page(html: str, course_id: str) -> list[Assignment]:
    """Parse course page into a list of ``Assignment``."""
    logger.debug("Parsing course page for course %s", course_id)
    soup = BeautifulSoup(html, "lxml")

    if soup.select_one("#assignments-student-table") is None:
        logger.warning("No assignments table found for course %s", course_id)
        return []

    assignments: list[Assignment] = []
    for row in soup.select(ASSIGNMENT_ROW_SELECTOR):
        try:
            assignment = _parse_assignment_row(row, course_id)
        except Exception:
            logger.exception("Error processing assignment row: %s", row)
            continue
        if assignment is not None:
            assignments.append(assignment)

    logger.debug("Parsed %d assignments for course %s", len(assignments), course_id)
    return assignments


def _resolve_identity(name_cell: Tag, course_id: str) -> tuple[str, str, str] | None:
    """Return ``(name, assignment_id, href)`` for the primary cell.

    A link wins over a submit button; a link without a usable id goes
    straight to the placeholder, the button is not consulted.
    """
    anchor = name_cell.find("a")
    button = name_cell.select_one("button.js-submitAssignment")
    if anchor is not None:
        href = str(anchor.get("href") or "")
        assignment_id = _id_from_href(href) if href else ""
        if assignment_id:
            return _text(anchor), assignment_id, href
    elif button is not None:
        assignment_id = str(button.get("data-assignment-id") or "").strip()
        if assignment_id:
            return _text(button), assignment_id, ""

    name = _text(name_cell)
    if not name:
        return None
    assignment_id = placeholder_id(course_id, name)
    logger.warning(
        "Generated placeholder ID %r for assignment %r (no link or button found)",
        assignment_id,
        name,
    )
    return name, assignment_id, ""


def _parse_score(text: str) -> tuple[float | None, float | None]:
    m = _SCORE_RE.search(text)
    if m is None:
        return None, None
    return _parse_float(m.group(1)), _parse_float(m.group(2))


def _infer_status(status_cell: Tag | None, grade: float | None) -> str:
    cell_text = _text(status_cell)
    explicit = ""
    if status_cell is not None:
        explicit = _text(status_cell.select_one(".submissionStatus--text"))

    status = "Not submitted"
    if explicit:
        status = explicit
    elif grade is not None:
        status = "Graded"
    elif "Submitted" in cell_text:
        status = "Submitted"

    if "Late" in cell_text and not status.endswith(" (Late)"):
        status += " (Late)"
    return status


def _parse_assignment_row(row: Tag, course_id: str) -> Assignment | None:
    """Parse one assignment table row."""
    name_cell = row.select_one("th.table--primaryLink")
    identity = _resolve_identity(name_cell, course_id) if name_cell is not None else None
    if identity is None:
        logger.warning("Skipping row: could not find assignment name: %s", row)
        return None

    name, assignment_id, href = identity
    if not name:
        logger.error("Failed to determine name for assignment %s, skipping", assignment_id)
        return None

    submission_id = None
    m = _SUBMISSION_RE.search(href)
    if m:
        submission_id = m.group(1)

    status_cell = row.select_one("td.submissionStatus")
    score_el = status_cell.select_one(".submissionStatus--score") if status_cell else None
    grade, max_grade = _parse_score(_text(score_el))
    status = _infer_status(status_cell, grade)

    release_date = due_date = late_due_date = None
    date_cell = row.select_one("td:nth-of-type(2)")
    if date_cell is not None:
        release_date = parse_date(date_cell.select_one("time.submissionTimeChart--releaseDate"))
        due_elements = date_cell.select("time.submissionTimeChart--dueDate")
        if due_elements:
            due_date = parse_date(due_elements[0])
        if len(due_elements) > 1:
            late_due_date = parse_date(due_elements[1])

    return Assignment(
        assignment_id=assignment_id,
        name=name,
        release_date=release_date,
        due_date=due_date,
        late_due_date=late_due_date,
        status=status,
        grade=grade,
        max_grade=max_grade,
        submission_id=submission_id,
        url=href,
    )


# ---------------------------------------------------------------------------
# Submission page
# ---------------------------------------------------------------------------


def parse_submission_page(html: str) -> datetime | None:
    """Return ``created_at`` of the submission embedded in the viewer props."""
    soup = BeautifulSoup(html, "lxml")
    viewer = soup.find("div", attrs={"data-react-class": SUBMISSION_VIEWER_CLASS})
    raw_props = viewer.get("data-react-props") if viewer is not None else None
    if not raw_props:
        logger.warning("Could not find react props for submission viewer")
        return None

    try:
        props = json.loads(str(raw_props))
    except json.JSONDecodeError as e:
        logger.warning("Malformed submission viewer props: %s", e)
        return None

    submission = props.get("assignment_submission") if isinstance(props, dict) else None
    created_at = submission.get("created_at") if isinstance(submission, dict) else None
    if not created_at:
        logger.warning("Could not find created_at in submission viewer props")
        return None

    try:
        return datetime.fromisoformat(str(created_at).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unrecognised created_at value: %r", created_at)
        return None


def format_submission_time(value: datetime) -> str:
    """Format like ``09/06/2024, 11:58:12 PM`` in local time."""
    return value.astimezone().strftime("%m/%d/%Y, %I:%M:%S %p")
