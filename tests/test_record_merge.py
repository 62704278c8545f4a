"""Unit tests for app.services.record_merge: default filling and precedence."""

import unittest

from app.models import Account, BotProfile
from app.services.record_merge import merge_record


class TestMergeDefaults(unittest.TestCase):
    """Missing optional fields get their documented defaults."""

    def test_bot_profile_defaults(self) -> None:
        merged = merge_record(BotProfile, {"username": "Alice", "apiKey": "k1"})
        self.assertEqual(
            merged,
            {
                "username": "Alice",
                "apiKey": "k1",
                "model": "poppy-v1",
                "temperature": "0.7",
                "maxTokens": 1024,
                "isActive": True,
                "role": "User",
                "canUseAsk": True,
                "canUseSummary": True,
            },
        )

    def test_account_default_is_not_admin(self) -> None:
        merged = merge_record(Account, {"username": "u", "password": "p"})
        self.assertIs(merged["isAdmin"], False)

    def test_none_counts_as_missing(self) -> None:
        merged = merge_record(BotProfile, {"username": "a", "apiKey": "k", "model": None})
        self.assertEqual(merged["model"], "poppy-v1")


class TestMergePrecedence(unittest.TestCase):
    """explicit > base > default, with falsy explicit values winning."""

    def test_explicit_false_and_zero_override_defaults(self) -> None:
        merged = merge_record(
            BotProfile,
            {"username": "a", "apiKey": "k", "isActive": False, "maxTokens": 0, "canUseAsk": False},
        )
        self.assertIs(merged["isActive"], False)
        self.assertEqual(merged["maxTokens"], 0)
        self.assertIs(merged["canUseAsk"], False)

    def test_base_overrides_default(self) -> None:
        merged = merge_record(BotProfile, {}, base={"username": "a", "apiKey": "k", "role": "Admin"})
        self.assertEqual(merged["role"], "Admin")

    def test_explicit_overrides_base(self) -> None:
        base = {"username": "a", "apiKey": "k", "isActive": True}
        merged = merge_record(BotProfile, {"isActive": False}, base=base)
        self.assertIs(merged["isActive"], False)
        self.assertEqual(merged["username"], "a")

    def test_python_names_map_to_wire_names(self) -> None:
        merged = merge_record(BotProfile, {"username": "a", "api_key": "k", "max_tokens": 10})
        self.assertEqual(merged["apiKey"], "k")
        self.assertEqual(merged["maxTokens"], 10)
        self.assertNotIn("api_key", merged)

    def test_unknown_keys_dropped(self) -> None:
        merged = merge_record(BotProfile, {"username": "a", "apiKey": "k", "extra": 1})
        self.assertNotIn("extra", merged)

    def test_required_fields_left_missing(self) -> None:
        merged = merge_record(BotProfile, {"username": "a"})
        self.assertNotIn("apiKey", merged)
