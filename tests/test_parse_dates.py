import unittest
from datetime import datetime, timedelta

from bs4 import BeautifulSoup

from gradescope_scraper.parser import SITE_TIMEZONE, parse_date


def _time_tag(markup: str):
    return BeautifulSoup(markup, "lxml").find("time")


class TestParseDate(unittest.TestCase):
    def test_date_only_attribute_with_offset(self) -> None:
        parsed = parse_date(_time_tag('<time datetime="2024-09-06 -0400">Sep 06</time>'))

        self.assertIsNotNone(parsed)
        assert parsed is not None
        self.assertEqual((parsed.year, parsed.month, parsed.day), (2024, 9, 6))
        self.assertEqual((parsed.hour, parsed.minute), (0, 0))
        self.assertEqual(parsed.utcoffset(), timedelta(hours=-4))

    def test_attribute_with_time(self) -> None:
        parsed = parse_date(
            _time_tag('<time datetime="2024-12-06 23:59:00 -0500">Dec 06 at 11:59PM</time>')
        )

        assert parsed is not None
        self.assertEqual((parsed.hour, parsed.minute, parsed.second), (23, 59, 0))
        self.assertEqual(parsed.utcoffset(), timedelta(hours=-5))

    def test_attribute_already_iso(self) -> None:
        parsed = parse_date(_time_tag('<time datetime="2024-09-06T10:30:00+02:00"></time>'))

        assert parsed is not None
        self.assertEqual(parsed.hour, 10)
        self.assertEqual(parsed.utcoffset(), timedelta(hours=2))

    def test_text_fallback(self) -> None:
        parsed = parse_date(_time_tag("<time>Sep 06 at 11:59PM</time>"))

        assert parsed is not None
        self.assertEqual(parsed.year, datetime.now(SITE_TIMEZONE).year)
        self.assertEqual((parsed.month, parsed.day), (9, 6))
        self.assertEqual((parsed.hour, parsed.minute), (23, 59))
        self.assertEqual(parsed.tzinfo, SITE_TIMEZONE)

    def test_late_due_prefix_and_double_space(self) -> None:
        parsed = parse_date(_time_tag("<time>Late Due Date: Sep 13 at  9:00AM</time>"))

        assert parsed is not None
        self.assertEqual((parsed.month, parsed.day), (9, 13))
        self.assertEqual((parsed.hour, parsed.minute), (9, 0))

    def test_bad_attribute_falls_back_to_text(self) -> None:
        parsed = parse_date(_time_tag('<time datetime="soon">Oct 01 at 5:00PM</time>'))

        assert parsed is not None
        self.assertEqual((parsed.month, parsed.day, parsed.hour), (10, 1, 17))

    def test_unparseable_returns_none_and_logs(self) -> None:
        with self.assertLogs("gradescope_scraper.parser", level="WARNING") as logs:
            parsed = parse_date(_time_tag("<time>whenever you like</time>"))

        self.assertIsNone(parsed)
        self.assertIn("whenever you like", logs.output[0])

    def test_missing_element(self) -> None:
        self.assertIsNone(parse_date(None))


if __name__ == "__main__":
    unittest.main()
