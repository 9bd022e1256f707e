"""gradescope_scraper: Scrape courses and assignments from Gradescope."""

from gradescope_scraper.account import Account
from gradescope_scraper.client import (
    AuthTokenNotFound,
    CookieStore,
    FetchError,
    GradescopeClient,
    GradescopeError,
    NotAuthenticatedError,
)
from gradescope_scraper.display import display_assignments, display_courses
from gradescope_scraper.models import (
    Assignment,
    AssignmentFetchResult,
    Course,
    CourseList,
    filter_courses_by_term,
)
from gradescope_scraper.parser import (
    format_submission_time,
    parse_account_page,
    parse_course_page,
    parse_date,
    parse_submission_page,
)
from gradescope_scraper.storage import (
    load_courses_json,
    save_assignments_csv,
    save_assignments_json,
    save_assignments_markdown,
    save_courses_json,
)

__all__ = [
    "Account",
    "Assignment",
    "AssignmentFetchResult",
    "AuthTokenNotFound",
    "CookieStore",
    "Course",
    "CourseList",
    "FetchError",
    "GradescopeClient",
    "GradescopeError",
    "NotAuthenticatedError",
    "display_assignments",
    "display_courses",
    "filter_courses_by_term",
    "format_submission_time",
    "load_courses_json",
    "parse_account_page",
    "parse_course_page",
    "parse_date",
    "parse_submission_page",
    "save_assignments_csv",
    "save_assignments_json",
    "save_assignments_markdown",
    "save_courses_json",
]
