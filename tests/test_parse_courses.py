import unittest

from pages import ACCOUNT_PAGE

from gradescope_scraper.models import Course, filter_courses_by_term
from gradescope_scraper.parser import parse_account_page


class TestParseAccountPage(unittest.TestCase):
    def test_student_courses(self) -> None:
        with self.assertLogs("gradescope_scraper.parser", level="ERROR") as logs:
            courses = parse_account_page(ACCOUNT_PAGE)

        self.assertEqual(list(courses.student), ["111", "222", "333"])
        self.assertEqual(
            courses.student["111"],
            Course(course_id="111", name="Intro to Computer Science", term="Fall 2024"),
        )
        # No long name: falls back to the short name.
        self.assertEqual(courses.student["222"].name, "MATH 221")
        self.assertEqual(courses.student["333"].term, "Spring 2024")
        # Broken link and nameless box are skipped, not fatal.
        self.assertEqual(len(logs.output), 2)

    def test_instructor_partition_stays_empty(self) -> None:
        courses = parse_account_page(ACCOUNT_PAGE)
        self.assertEqual(courses.instructor, {})
        self.assertEqual(len(courses), 3)

    def test_box_outside_term_group_is_ignored(self) -> None:
        html = '<a class="courseBox" href="/courses/9"><div class="courseBox--name">X</div></a>'
        self.assertEqual(parse_account_page(html).student, {})

    def test_group_without_heading_has_empty_term(self) -> None:
        html = (
            '<div class="courseList--coursesForTerm">'
            '<a class="courseBox" href="/courses/9"><div class="courseBox--name">X</div></a>'
            "</div>"
        )
        self.assertEqual(parse_account_page(html).student["9"].term, "")

    def test_duplicate_id_keeps_last(self) -> None:
        html = (
            '<div class="courseList--term">Fall 2024</div>'
            '<div class="courseList--coursesForTerm">'
            '<a class="courseBox" href="/courses/9"><div class="courseBox--name">Old</div></a>'
            '<a class="courseBox" href="/courses/9"><div class="courseBox--name">New</div></a>'
            "</div>"
        )
        courses = parse_account_page(html)
        self.assertEqual(len(courses.student), 1)
        self.assertEqual(courses.student["9"].name, "New")

    def test_empty_page(self) -> None:
        courses = parse_account_page("<html><body></body></html>")
        self.assertEqual(len(courses), 0)


class TestFilterByTerm(unittest.TestCase):
    def test_case_insensitive_match(self) -> None:
        courses = parse_account_page(ACCOUNT_PAGE)
        fall = filter_courses_by_term(courses, "fall 2024")
        self.assertEqual(list(fall.student), ["111", "222"])

    def test_empty_term_keeps_everything(self) -> None:
        courses = parse_account_page(ACCOUNT_PAGE)
        everything = filter_courses_by_term(courses)
        self.assertEqual(list(everything.student), ["111", "222", "333"])
        self.assertIsNot(everything.student, courses.student)

    def test_unknown_term(self) -> None:
        courses = parse_account_page(ACCOUNT_PAGE)
        self.assertEqual(len(filter_courses_by_term(courses, "Summer 1999")), 0)


if __name__ == "__main__":
    unittest.main()
