import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from pages import ACCOUNT_PAGE, COURSE_PAGE

from gradescope_scraper import cli
from gradescope_scraper.config import Settings


class FakeGradescopeClient:
    """Replaces ``GradescopeClient`` inside the CLI."""

    instances: list["FakeGradescopeClient"] = []
    accept_login = True

    def __init__(self, base_url: str = "") -> None:
        self.base_url = base_url
        self.logins: list[tuple[str, str]] = []
        FakeGradescopeClient.instances.append(self)

    def __enter__(self) -> "FakeGradescopeClient":
        return self

    def __exit__(self, *exc) -> None:
        return None

    def login(self, email: str, password: str) -> bool:
        self.logins.append((email, password))
        return self.accept_login

    def fetch_account_page(self) -> str:
        return ACCOUNT_PAGE

    def fetch_course_page(self, course_id: str) -> str:
        return COURSE_PAGE


class CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)
        self.settings_file = str(self.tmp / "settings.json")

        env = mock.patch.dict(os.environ, {}, clear=True)
        env.start()
        self.addCleanup(env.stop)
        dotenv = mock.patch.object(cli, "load_dotenv")
        dotenv.start()
        self.addCleanup(dotenv.stop)

        FakeGradescopeClient.instances = []
        FakeGradescopeClient.accept_login = True
        client = mock.patch.object(cli, "GradescopeClient", FakeGradescopeClient)
        client.start()
        self.addCleanup(client.stop)

    def run_cli(self, *argv: str) -> None:
        cli.main(["--settings-file", self.settings_file, *argv])


class TestCredentials(CliTestCase):
    def test_missing_credentials_exit(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli("courses")
        self.assertNotEqual(ctx.exception.code, 0)
        self.assertEqual(FakeGradescopeClient.instances, [])

    def test_password_without_email(self) -> None:
        with self.assertRaises(SystemExit):
            self.run_cli("--password", "secret", "courses")

    def test_environment_variables(self) -> None:
        os.environ[cli.EMAIL_ENV] = "env@example.edu"
        os.environ[cli.PASSWORD_ENV] = "from-env"
        self.run_cli("courses")
        self.assertEqual(
            FakeGradescopeClient.instances[0].logins, [("env@example.edu", "from-env")]
        )

    def test_flags_beat_credentials_file(self) -> None:
        creds = self.tmp / "creds.json"
        creds.write_text(json.dumps({"email": "file@example.edu", "password": "f"}))
        self.run_cli("--credentials-file", str(creds), "--password", "flag", "courses")
        self.assertEqual(FakeGradescopeClient.instances[0].logins, [("file@example.edu", "flag")])

    def test_unreadable_credentials_file(self) -> None:
        creds = self.tmp / "creds.json"
        creds.write_text("[1, 2]")
        with self.assertRaises(SystemExit):
            self.run_cli("--credentials-file", str(creds), "courses")


class TestCommands(CliTestCase):
    def test_login_failure_exits(self) -> None:
        FakeGradescopeClient.accept_login = False
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli("-e", "a@example.edu", "-p", "wrong", "courses")
        self.assertEqual(ctx.exception.code, 1)

    def test_courses_json(self) -> None:
        out = self.tmp / "out"
        self.run_cli(
            "-e", "a@example.edu", "-p", "pw",
            "--base-url", "https://gs.example.org",
            "courses", "--format", "json", "--output", str(out), "--term", "Fall 2024",
        )

        payload = json.loads((out / "courses.json").read_text(encoding="utf-8"))
        self.assertEqual(list(payload["student"]), ["111", "222"])
        self.assertEqual(FakeGradescopeClient.instances[0].base_url, "https://gs.example.org")

    def test_courses_only_offer_json_files(self) -> None:
        for fmt in ("csv", "markdown"):
            with self.subTest(fmt=fmt):
                with mock.patch("sys.stderr"), self.assertRaises(SystemExit) as ctx:
                    self.run_cli("-e", "a@example.edu", "-p", "pw", "courses", "-f", fmt)
                self.assertEqual(ctx.exception.code, 2)
        self.assertEqual(FakeGradescopeClient.instances, [])

    def test_assignments_csv_uses_default_output(self) -> None:
        out = self.tmp / "default-out"
        self.run_cli(
            "-e", "a@example.edu", "-p", "pw", "--default-output", str(out),
            "assignments", "--course", "55", "--format", "csv",
        )
        self.assertTrue((out / "assignments_55.csv").exists())


class TestSettings(CliTestCase):
    def test_init_set_clear(self) -> None:
        self.run_cli("settings", "init")
        saved = json.loads(Path(self.settings_file).read_text(encoding="utf-8"))
        self.assertEqual(saved, Settings.recommended().to_dict())

        self.run_cli("settings", "set", "--max-workers", "8", "--status-mode", "all")
        saved = json.loads(Path(self.settings_file).read_text(encoding="utf-8"))
        self.assertEqual((saved["max_workers"], saved["status_mode"]), (8, "all"))

        self.run_cli("settings", "clear", "max_workers")
        saved = json.loads(Path(self.settings_file).read_text(encoding="utf-8"))
        self.assertNotIn("max_workers", saved)
        self.assertIn("base_url", saved)

    def test_set_nothing_exits(self) -> None:
        with self.assertRaises(SystemExit):
            self.run_cli("settings", "set")

    def test_clear_unknown_key_exits(self) -> None:
        with self.assertRaises(SystemExit):
            self.run_cli("settings", "clear", "colour")

    def test_clear_everything(self) -> None:
        self.run_cli("settings", "init")
        self.run_cli("settings", "clear")
        self.assertEqual(json.loads(Path(self.settings_file).read_text(encoding="utf-8")), {})

    def test_invalid_settings_file_exits(self) -> None:
        Path(self.settings_file).write_text("[]")
        with self.assertRaises(SystemExit) as ctx:
            self.run_cli("-e", "a@example.edu", "-p", "pw", "courses")
        self.assertEqual(ctx.exception.code, 1)

    def test_saved_settings_feed_runtime(self) -> None:
        Path(self.settings_file).write_text(
            json.dumps({"base_url": "https://saved.example.org", "max_workers": 2})
        )
        self.run_cli("-e", "a@example.edu", "-p", "pw", "courses")
        self.assertEqual(FakeGradescopeClient.instances[0].base_url, "https://saved.example.org")


if __name__ == "__main__":
    unittest.main()
