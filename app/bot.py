"""
Discord bot entrypoint: serves /ask and /summary to users with an active bot profile.

  python -m app.bot

Requires DISCORD_TOKEN. The bot reads bot profiles from DATA_DIR on every
command and never writes records; run the API process as the only writer.
Enable the Message Content intent for the bot so /summary can read threads.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import sys
from collections.abc import Iterable
from typing import TYPE_CHECKING

import discord
from discord import app_commands

from app.core.config import get_settings
from app.services.commands import (
    ASK_COMMAND,
    SUMMARY_COMMAND,
    failure_reply,
    lookup_access,
    run_ask,
    run_summary,
)
from app.services.record_store import RecordStore, StorageError, open_record_store

if TYPE_CHECKING:
    from app.core.config import Settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def find_thread(threads: Iterable[discord.Thread], name: str) -> discord.Thread | None:
    """Match a thread by exact name, then case-insensitively, then by id or <#id> mention."""
    threads = list(threads)
    wanted = name.strip()
    for thread in threads:
        if thread.name == wanted:
            return thread
    folded = wanted.casefold()
    for thread in threads:
        if thread.name.casefold() == folded:
            return thread
    digits = wanted.removeprefix("<#").removesuffix(">")
    if digits.isdigit():
        for thread in threads:
            if thread.id == int(digits):
                return thread
    return None


def format_transcript(messages: Iterable[discord.Message]) -> str:
    """One 'author: text' line per non-empty message, in the order given."""
    lines = []
    for message in messages:
        text = message.clean_content.strip()
        if text:
            lines.append(f"{message.author.display_name}: {text}")
    return "\n".join(lines)


async def read_transcript(thread: discord.Thread, limit: int) -> str:
    """The most recent ``limit`` messages of the thread, oldest first."""
    newest_first = [m async for m in thread.history(limit=limit)]
    return format_transcript(reversed(newest_first))


class PoppyBot(discord.Client):
    """Discord client with the /ask and /summary slash commands."""

    def __init__(self, store: RecordStore, settings: "Settings") -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents)
        self.store = store
        self.settings = settings
        self.tree = app_commands.CommandTree(self)
        register_commands(self.tree, self)

    async def on_ready(self) -> None:
        logger.info("Discord bot logged in", extra={"bot_user": str(self.user)})
        # Guild commands appear immediately; global ones can take an hour to propagate.
        for guild in self.guilds:
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
        logger.info("Slash commands synced", extra={"guild_count": len(self.guilds)})


def register_commands(tree: app_commands.CommandTree, bot: PoppyBot) -> None:
    @tree.command(name=ASK_COMMAND, description="Ask a question to Poppy AI")
    @app_commands.describe(question="Your question to ask Poppy AI")
    async def ask(interaction: discord.Interaction, question: str) -> None:
        profile, denial = await lookup_access(
            bot.store.bot_profiles, interaction.user.name, ASK_COMMAND
        )
        if denial is not None:
            await interaction.response.send_message(denial.content, ephemeral=True)
            return
        await interaction.response.defer()
        reply = await run_ask(profile, question, bot.settings)
        await interaction.edit_original_response(content=reply.content)

    @tree.command(name=SUMMARY_COMMAND, description="Summarize a thread")
    @app_commands.describe(thread="The thread to summarize")
    async def summary(interaction: discord.Interaction, thread: str) -> None:
        profile, denial = await lookup_access(
            bot.store.bot_profiles, interaction.user.name, SUMMARY_COMMAND
        )
        if denial is not None:
            await interaction.response.send_message(denial.content, ephemeral=True)
            return
        target = find_thread(interaction.guild.threads, thread) if interaction.guild else None
        if target is None:
            await interaction.response.send_message(f"Thread not found: {thread}", ephemeral=True)
            return
        await interaction.response.defer()
        transcript = await read_transcript(target, bot.settings.SUMMARY_HISTORY_LIMIT)
        if not transcript:
            await interaction.edit_original_response(
                content=f"Thread {target.name} has no messages to summarize."
            )
            return
        reply = await run_summary(profile, target.name, transcript, bot.settings)
        await interaction.edit_original_response(content=reply.content)

    @tree.error
    async def on_command_error(
        interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        command = interaction.command.name if interaction.command else "unknown"
        logger.error("Error handling command", extra={"command": command}, exc_info=error)
        reply = failure_reply(str(getattr(error, "original", error)) or "Unknown error")
        if interaction.response.is_done():
            await interaction.edit_original_response(content=reply.content)
        else:
            await interaction.response.send_message(reply.content, ephemeral=True)


def main() -> int:
    """Open the record store read path and run the bot until interrupted."""
    settings = get_settings()
    if settings.DISCORD_TOKEN is None or not settings.DISCORD_TOKEN.get_secret_value().strip():
        logger.error("DISCORD_TOKEN not provided, bot will not be started")
        return 1
    try:
        store = open_record_store(settings.DATA_DIR)
    except StorageError as e:
        logger.error("Cannot open record store: %s", e.message)
        return 1
    bot = PoppyBot(store, settings)
    bot.run(settings.DISCORD_TOKEN.get_secret_value(), log_handler=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
