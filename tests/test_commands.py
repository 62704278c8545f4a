"""Unit tests for app.services.commands: authorization outcomes and replies (completion mocked)."""

import asyncio
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, patch

from app.core.config import Settings
from app.models import BotProfile
from app.services.commands import (
    DISCORD_MESSAGE_LIMIT,
    SUSPENDED_MESSAGE,
    UNAUTHORIZED_MESSAGE,
    CommandOutcome,
    authorize,
    build_summary_prompt,
    handle_ask,
    handle_summary,
    lookup_access,
    truncate_reply,
)
from app.services.completion import CompletionServiceError
from app.services.record_store import open_record_store


def _profile(**kwargs: object) -> BotProfile:
    values: dict[str, object] = {"id": 1, "username": "Alice", "api_key": "k1"}
    values.update(kwargs)
    return BotProfile(**values)


class TestAuthorize(unittest.TestCase):
    """not found, suspended and per-command forbidden are distinct outcomes."""

    def test_no_profile(self) -> None:
        self.assertIs(authorize(None, "ask"), CommandOutcome.UNAUTHORIZED)

    def test_inactive_beats_command_flags(self) -> None:
        profile = _profile(is_active=False, can_use_ask=False)
        self.assertIs(authorize(profile, "ask"), CommandOutcome.SUSPENDED)

    def test_command_flags(self) -> None:
        profile = _profile(can_use_ask=False)
        self.assertIs(authorize(profile, "ask"), CommandOutcome.FORBIDDEN)
        self.assertIs(authorize(profile, "summary"), CommandOutcome.ALLOWED)
        profile = _profile(can_use_summary=False)
        self.assertIs(authorize(profile, "summary"), CommandOutcome.FORBIDDEN)
        self.assertIs(authorize(profile, "ask"), CommandOutcome.ALLOWED)

    def test_unknown_command_forbidden(self) -> None:
        self.assertIs(authorize(_profile(), "imagine"), CommandOutcome.FORBIDDEN)


class TestTruncateReply(unittest.TestCase):
    def test_short_text_untouched(self) -> None:
        self.assertEqual(truncate_reply("hello"), "hello")

    def test_long_text_cut_to_limit(self) -> None:
        out = truncate_reply("x" * 5000)
        self.assertEqual(len(out), DISCORD_MESSAGE_LIMIT)
        self.assertTrue(out.endswith("…"))


class TestHandleCommands(unittest.TestCase):
    """handle_ask / handle_summary look the user up in the store on every call."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = open_record_store(Path(self._tmp.name))
        self.settings = Settings(_env_file=None)
        profiles = self.store.bot_profiles
        profiles.create({"username": "alice", "apiKey": "k1"})
        profiles.create({"username": "bob", "apiKey": "k2", "isActive": False})
        profiles.create({"username": "carol", "apiKey": "k3", "canUseAsk": False, "canUseSummary": False})

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _ask(self, username: str, question: str = "Why?"):
        return asyncio.run(handle_ask(self.store.bot_profiles, username, question, self.settings))

    def test_unknown_user(self) -> None:
        reply = self._ask("mallory")
        self.assertEqual(reply.content, UNAUTHORIZED_MESSAGE)
        self.assertTrue(reply.ephemeral)

    def test_suspended_user(self) -> None:
        reply = self._ask("bob")
        self.assertEqual(reply.content, SUSPENDED_MESSAGE)
        self.assertTrue(reply.ephemeral)

    def test_forbidden_command(self) -> None:
        reply = self._ask("carol")
        self.assertEqual(reply.content, "You don't have permission to use the /ask command.")
        self.assertTrue(reply.ephemeral)
        reply = asyncio.run(
            handle_summary(self.store.bot_profiles, "carol", "general", "a: b", self.settings)
        )
        self.assertEqual(reply.content, "You don't have permission to use the /summary command.")

    @patch("app.services.commands.request_completion", new_callable=AsyncMock)
    def test_ask_success(self, mock_completion: AsyncMock) -> None:
        mock_completion.return_value = "Because."
        reply = self._ask("alice", "Why?")
        self.assertEqual(reply.content, "**Question:** Why?\n\n**Answer:** Because.")
        self.assertFalse(reply.ephemeral)
        prompt, profile, _ = mock_completion.call_args.args
        self.assertEqual(prompt, "Why?")
        self.assertEqual(profile.api_key, "k1")

    @patch("app.services.commands.request_completion", new_callable=AsyncMock)
    def test_summary_success(self, mock_completion: AsyncMock) -> None:
        mock_completion.return_value = "They agreed."
        reply = asyncio.run(
            handle_summary(self.store.bot_profiles, "alice", "plans", "ann: hi\nbo: ok", self.settings)
        )
        self.assertEqual(reply.content, "**Thread Summary (plans):**\n\nThey agreed.")
        self.assertEqual(mock_completion.call_args.args[0], build_summary_prompt("ann: hi\nbo: ok"))

    @patch("app.services.commands.request_completion", new_callable=AsyncMock)
    def test_completion_failure(self, mock_completion: AsyncMock) -> None:
        mock_completion.side_effect = CompletionServiceError("Poppy API request timed out.")
        reply = self._ask("alice")
        self.assertEqual(reply.content, "Sorry, something went wrong: Poppy API request timed out.")

    def test_profile_lookup_runs_off_the_event_loop_thread(self) -> None:
        profiles = self.store.bot_profiles
        lookup_threads: list[threading.Thread] = []
        real_lookup = profiles.get_by_username

        def recording_lookup(username: str):
            lookup_threads.append(threading.current_thread())
            return real_lookup(username)

        with patch.object(profiles, "get_by_username", side_effect=recording_lookup):
            profile, denial = asyncio.run(lookup_access(profiles, "alice", "ask"))
        self.assertIsNone(denial)
        self.assertEqual(profile.username, "alice")
        self.assertEqual(len(lookup_threads), 1)
        self.assertIsNot(lookup_threads[0], threading.main_thread())

    @patch("app.services.commands.request_completion", new_callable=AsyncMock)
    def test_profile_change_seen_on_next_command(self, mock_completion: AsyncMock) -> None:
        mock_completion.return_value = "ok"
        alice = self.store.bot_profiles.get_by_username("alice")
        self.store.bot_profiles.update(alice.id, {"isActive": False})
        self.assertEqual(self._ask("alice").content, SUSPENDED_MESSAGE)
        mock_completion.assert_not_called()
