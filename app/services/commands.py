"""Bot command dispatcher: authorize a Discord user by profile and build the reply."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from app.models import BotProfile
from app.services.completion import CompletionServiceError, request_completion
from app.services.record_store import BotProfileStore

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

ASK_COMMAND = "ask"
SUMMARY_COMMAND = "summary"

# Discord rejects messages longer than this.
DISCORD_MESSAGE_LIMIT = 2000

UNAUTHORIZED_MESSAGE = "You are not authorized to use this bot. Please contact an administrator."
SUSPENDED_MESSAGE = "Your account is currently inactive. Please contact an administrator."


class CommandOutcome(str, Enum):
    """Result of checking a profile against a command."""

    ALLOWED = "allowed"
    UNAUTHORIZED = "unauthorized"  # no profile for this username
    SUSPENDED = "suspended"  # profile exists but is_active is false
    FORBIDDEN = "forbidden"  # profile active but this command is disabled


@dataclass(frozen=True)
class CommandReply:
    """Text to send back to the invoking user. Ephemeral replies are visible only to them."""

    content: str
    ephemeral: bool = False


def authorize(profile: BotProfile | None, command: str) -> CommandOutcome:
    """Check existence, then activity, then the per-command flag."""
    if profile is None:
        return CommandOutcome.UNAUTHORIZED
    if not profile.is_active:
        return CommandOutcome.SUSPENDED
    if command == ASK_COMMAND and not profile.can_use_ask:
        return CommandOutcome.FORBIDDEN
    if command == SUMMARY_COMMAND and not profile.can_use_summary:
        return CommandOutcome.FORBIDDEN
    if command not in (ASK_COMMAND, SUMMARY_COMMAND):
        return CommandOutcome.FORBIDDEN
    return CommandOutcome.ALLOWED


def denial_reply(outcome: CommandOutcome, command: str) -> CommandReply:
    """Ephemeral reply for any outcome other than ALLOWED."""
    if outcome is CommandOutcome.UNAUTHORIZED:
        return CommandReply(UNAUTHORIZED_MESSAGE, ephemeral=True)
    if outcome is CommandOutcome.SUSPENDED:
        return CommandReply(SUSPENDED_MESSAGE, ephemeral=True)
    return CommandReply(
        f"You don't have permission to use the /{command} command.", ephemeral=True
    )


def check_access(
    profiles: BotProfileStore, username: str, command: str
) -> tuple[BotProfile | None, CommandReply | None]:
    """Look up the invoking user's profile; return (profile, None) if allowed, else (None, denial)."""
    profile = profiles.get_by_username(username)
    outcome = authorize(profile, command)
    if outcome is not CommandOutcome.ALLOWED:
        logger.info(
            "Command denied",
            extra={"command": command, "outcome": outcome.value},
        )
        return None, denial_reply(outcome, command)
    return profile, None


def truncate_reply(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> str:
    """Cut text to Discord's message limit, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def failure_reply(message: str) -> CommandReply:
    return CommandReply(truncate_reply(f"Sorry, something went wrong: {message}"))


def build_summary_prompt(transcript: str) -> str:
    return f"Please summarize the following Discord thread:\n\n{transcript}"


async def run_ask(profile: BotProfile, question: str, settings: "Settings") -> CommandReply:
    """Answer a question for an already-authorized profile."""
    try:
        answer = await request_completion(question, profile, settings)
    except CompletionServiceError as e:
        logger.error("Error handling command", extra={"command": ASK_COMMAND, "reason": e.message})
        return failure_reply(e.message)
    return CommandReply(truncate_reply(f"**Question:** {question}\n\n**Answer:** {answer}"))


async def run_summary(
    profile: BotProfile,
    thread_name: str,
    transcript: str,
    settings: "Settings",
) -> CommandReply:
    """Summarize a thread transcript for an already-authorized profile."""
    try:
        summary = await request_completion(build_summary_prompt(transcript), profile, settings)
    except CompletionServiceError as e:
        logger.error(
            "Error handling command", extra={"command": SUMMARY_COMMAND, "reason": e.message}
        )
        return failure_reply(e.message)
    return CommandReply(truncate_reply(f"**Thread Summary ({thread_name}):**\n\n{summary}"))


async def lookup_access(
    profiles: BotProfileStore, username: str, command: str
) -> tuple[BotProfile | None, CommandReply | None]:
    """check_access() run in a worker thread, off the event loop."""
    return await asyncio.to_thread(check_access, profiles, username, command)


async def handle_ask(
    profiles: BotProfileStore,
    username: str,
    question: str,
    settings: "Settings",
) -> CommandReply:
    """Full /ask flow: authorize by username, then call the completion API."""
    profile, denial = await lookup_access(profiles, username, ASK_COMMAND)
    if denial is not None:
        return denial
    return await run_ask(profile, question, settings)


async def handle_summary(
    profiles: BotProfileStore,
    username: str,
    thread_name: str,
    transcript: str,
    settings: "Settings",
) -> CommandReply:
    """Full /summary flow: authorize by username, then summarize the transcript."""
    profile, denial = await lookup_access(profiles, username, SUMMARY_COMMAND)
    if denial is not None:
        return denial
    return await run_summary(profile, thread_name, transcript, settings)
