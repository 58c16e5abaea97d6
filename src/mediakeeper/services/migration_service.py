"""
Migration executor.

Moves a text-only message into its discussion thread:

1. resolve the thread (no anchor ends the migration here),
2. post the content into the thread under the author's label,
3. add the author to the thread,
4. leave a self-removing notice in the channel pointing at the thread,
5. delete the original.

Steps 3-5 are best-effort and never stop each other. A failure before the
content is safely posted leaves the original in place and the author gets a
notice quoting what they wrote.
"""

from __future__ import annotations

import asyncio
from typing import Any

import discord

from mediakeeper.datatypes.migration_datatypes import MigrationOutcome
from mediakeeper.services.thread_resolver import ThreadResolver
from mediakeeper.util.discord_utils import (
    add_thread_member,
    mention_user,
    safe_delete_message,
    send_transient_notice,
)
from mediakeeper.util.format_utils import quote_content, split_message
from mediakeeper.util.logger import get_logger

logger = get_logger("migration_service")

MOVED_NOTICE = "{mention} this is a media-only channel, so your message was moved to {thread}."
FAILURE_NOTICE = (
    "{mention} this is a media-only channel, but something went wrong while moving "
    "your message to a discussion thread. Here is what you wrote:\n{quote}"
)


class MigrationExecutor:
    """
    Relocate non-compliant messages into discussion threads.

    Args:
        thread_resolver: Finds or creates the destination thread.
        notice_seconds: How long channel notices stay visible.
    """

    def __init__(self, thread_resolver: ThreadResolver, *, notice_seconds: float = 10.0) -> None:
        self.thread_resolver = thread_resolver
        self.notice_seconds = notice_seconds

    async def migrate(self, message: Any, content: str, label: str, *, author_id: int) -> MigrationOutcome:
        """
        Move ``content`` of ``message`` into its thread, attributed to ``label``.

        ``author_id`` is the account that is notified and added to the thread.
        For a proxied message this is the real sender, not the webhook.
        Never raises except for cancellation.
        """
        try:
            thread = await self.thread_resolver.resolve(message, author_id=author_id, content=content)
            if thread is None:
                return MigrationOutcome.NO_ANCHOR

            await self.post_relocated(thread, content, label)

            await add_thread_member(thread, author_id)
            await send_transient_notice(
                message.channel,
                MOVED_NOTICE.format(mention=mention_user(author_id), thread=thread.mention),
                self.notice_seconds,
                mention_user_id=author_id,
            )
            await safe_delete_message(message)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("[MIGRATION] Failed to migrate message %s in channel %s", message.id, message.channel.id)
            await send_transient_notice(
                message.channel,
                FAILURE_NOTICE.format(mention=mention_user(author_id), quote=quote_content(content)),
                self.notice_seconds,
                mention_user_id=author_id,
            )
            return MigrationOutcome.FAILED

        logger.info(
            "[MIGRATION] Moved message %s from channel %s to thread %s as %r",
            message.id, message.channel.id, thread.id, label,
        )
        return MigrationOutcome.MIGRATED

    @staticmethod
    async def post_relocated(thread: Any, content: str, label: str) -> None:
        """Post the content into the thread; mentions inside it never ping."""
        body = f"**{discord.utils.escape_markdown(label)}**: {content or '*(no text)*'}"
        for chunk in split_message(body):
            await thread.send(chunk, allowed_mentions=discord.AllowedMentions.none())
