import logging
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from rich.console import Console

from gradescope_scraper._logging import setup_logging
from gradescope_scraper.display import display_assignments, display_courses
from gradescope_scraper.models import Assignment, Course, CourseList


def _console() -> Console:
    return Console(record=True, width=160, color_system=None)


class TestDisplay(unittest.TestCase):
    def test_courses_table(self) -> None:
        console = _console()
        display_courses(
            CourseList(student={"111": Course("111", "Intro to CS", "Fall 2024")}), console
        )
        text = console.export_text()
        self.assertIn("Student courses", text)
        self.assertIn("Intro to CS", text)
        self.assertNotIn("Instructor courses", text)

    def test_no_courses(self) -> None:
        console = _console()
        display_courses(CourseList(), console)
        self.assertIn("No courses found.", console.export_text())

    def test_assignments_table(self) -> None:
        soon = datetime.now(timezone.utc) + timedelta(days=1)
        assignments = [
            Assignment("1", "Problem Set 1", due_date=soon, status="Graded (Late)", grade=8.5,
                       max_grade=10.0, submitted_at="09/06/2024, 11:58:12 PM"),
            Assignment("5-placeholder-hw", "HW", status="Not submitted"),
        ]
        console = _console()
        display_assignments(Course("5", "Intro to CS", "Fall 2024"), assignments, console)

        text = console.export_text()
        self.assertIn("Graded (Late)", text)
        self.assertIn("8.5 / 10", text)
        self.assertIn("Submitted At", text)
        self.assertIn("HW *", text)
        self.assertIn("ID generated from the assignment name", text)

    def test_no_assignments(self) -> None:
        console = _console()
        display_assignments(Course("5", "Intro to CS"), [], console)
        self.assertIn("No assignments found.", console.export_text())


class TestSetupLogging(unittest.TestCase):
    def tearDown(self) -> None:
        package_logger = logging.getLogger("gradescope_scraper")
        for handler in package_logger.handlers:
            handler.close()
        package_logger.handlers.clear()
        package_logger.setLevel(logging.NOTSET)

    def test_file_handler(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "logs" / "scraper.log"
            setup_logging(level=logging.DEBUG, log_file=str(log_file))
            logging.getLogger("gradescope_scraper.parser").debug("parsed %d rows", 3)
            for handler in logging.getLogger("gradescope_scraper").handlers:
                handler.flush()
                handler.close()

            self.assertRegex(
                log_file.read_text(encoding="utf-8"),
                r"^\S+ \S+ gradescope_scraper\.parser DEBUG parsed 3 rows$",
            )

    def test_repeat_call_replaces_handlers(self) -> None:
        setup_logging()
        setup_logging()
        self.assertEqual(len(logging.getLogger("gradescope_scraper").handlers), 1)


if __name__ == "__main__":
    unittest.main()
