"""Course and assignment retrieval for a logged-in client."""

from __future__ import annotations

import concurrent.futures
import logging
import time
from collections.abc import Iterable
from urllib.parse import urlsplit

from gradescope_scraper.client import GradescopeClient, GradescopeError
from gradescope_scraper.models import Assignment, AssignmentFetchResult, CourseList
from gradescope_scraper.parser import (
    format_submission_time,
    parse_account_page,
    parse_course_page,
    parse_submission_page,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
SUBMISSION_DELAY = 0.2
SUBMISSION_MAX_WORKERS = 2


class Account:
    """Scrapes the account behind an authenticated ``GradescopeClient``."""

    def __init__(self, client: GradescopeClient) -> None:
        self.client = client

    def get_courses(self) -> CourseList:
        return parse_account_page(self.client.fetch_account_page())

    def get_assignments(self, course_id: str) -> list[Assignment]:
        return parse_course_page(self.client.fetch_course_page(course_id), course_id)

    def _fetch_result(self, course_id: str) -> AssignmentFetchResult:
        try:
            assignments = self.get_assignments(course_id)
        except Exception as e:
            logger.error("Error fetching assignments for course %s: %s", course_id, e)
            return AssignmentFetchResult(course_id=course_id, error=True, message=str(e))
        return AssignmentFetchResult(course_id=course_id, assignments=assignments)

    def fetch_all_assignments(
        self,
        course_ids: Iterable[str],
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> list[AssignmentFetchResult]:
        """Fetch assignments for several courses concurrently.

        A failing course yields an empty result flagged with ``error``; the
        other courses are unaffected. Results follow the order of
        *course_ids*.
        """
        ids = list(course_ids)
        if not ids:
            return []

        with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            return list(executor.map(self._fetch_result, ids))

    def resolve_submission_time(self, submission_url: str) -> str | None:
        """Return the display time of a submission, or ``None``."""
        try:
            html = self.client.get_html(submission_url)
        except GradescopeError as e:
            logger.warning("Could not fetch submission %s: %s", submission_url, e)
            return None

        created_at = parse_submission_page(html)
        if created_at is None:
            logger.warning("No submission time found at %s", submission_url)
            return None
        return format_submission_time(created_at)

    def submission_url(self, course_id: str, assignment: Assignment) -> str | None:
        """Return the site path of *assignment*'s submission page, if it has one.

        Only the path of the scraped link is kept, so the request always goes
        to the client's own host.
        """
        if not assignment.submission_id:
            return None
        path = urlsplit(assignment.url).path
        if "/submissions/" in path:
            return path
        return (
            f"/courses/{course_id}/assignments/{assignment.assignment_id}"
            f"/submissions/{assignment.submission_id}"
        )

    def resolve_submission_times(
        self,
        course_assignments: dict[str, list[Assignment]],
        delay: float = SUBMISSION_DELAY,
        max_workers: int = SUBMISSION_MAX_WORKERS,
    ) -> int:
        """Fill ``submitted_at`` on submitted assignments.

        Each request waits *delay* seconds first and at most *max_workers*
        requests run at once. Returns the number of assignments enriched.
        """
        pending: list[tuple[Assignment, str]] = []
        for course_id, assignments in course_assignments.items():
            for assignment in assignments:
                if not assignment.is_submitted:
                    continue
                url = self.submission_url(course_id, assignment)
                if url is None:
                    logger.debug(
                        "No submission link for %s in course %s", assignment.name, course_id
                    )
                    continue
                pending.append((assignment, url))

        if not pending:
            return 0

        def _resolve(url: str) -> str | None:
            if delay > 0:
                time.sleep(delay)
            return self.resolve_submission_time(url)

        logger.info("Fetching submission times for %d assignments", len(pending))
        with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            times = list(executor.map(_resolve, [url for _, url in pending]))

        resolved = 0
        for (assignment, _), submitted_at in zip(pending, times):
            if submitted_at:
                assignment.submitted_at = submitted_at
                resolved += 1
        return resolved
