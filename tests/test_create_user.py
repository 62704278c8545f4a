"""Unit tests for the create_user CLI script."""

import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from app.core.security import verify_password
from app.scripts.create_user import main
from app.services.record_store import open_record_store


class TestCreateUserScript(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self._rounds = patch("app.core.security.BCRYPT_ROUNDS", 4)
        self._rounds.start()

    def tearDown(self) -> None:
        self._rounds.stop()
        self._tmp.cleanup()

    def _run(self, *args: str) -> tuple[int, str, str]:
        out, err = StringIO(), StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main([*args, "--data-dir", str(self.root)])
        return code, out.getvalue(), err.getvalue()

    def test_creates_admin_with_hashed_password(self) -> None:
        code, out, _ = self._run("alice", "secret-pass-1", "--admin")
        self.assertEqual(code, 0)
        self.assertIn("role 'admin'", out)
        account = open_record_store(self.root).accounts.get_by_username("alice")
        self.assertIsNotNone(account)
        self.assertTrue(account.is_admin)
        self.assertNotEqual(account.password, "secret-pass-1")
        self.assertTrue(verify_password("secret-pass-1", account.password))

    def test_existing_username_is_rejected(self) -> None:
        self.assertEqual(self._run("bob", "secret-pass-1")[0], 0)
        code, _, err = self._run("bob", "other-pass-22")
        self.assertEqual(code, 1)
        self.assertIn("already exists", err)

    def test_short_password_is_rejected(self) -> None:
        code, _, err = self._run("carol", "short")
        self.assertEqual(code, 1)
        self.assertIn("Password must be", err)
        self.assertIsNone(open_record_store(self.root).accounts.get_by_username("carol"))

    def test_blank_username_is_rejected(self) -> None:
        code, _, err = self._run("   ", "secret-pass-1")
        self.assertEqual(code, 1)
        self.assertIn("Invalid username", err)


if __name__ == "__main__":
    unittest.main()
