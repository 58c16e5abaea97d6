"""
Thread resolution for relocated messages.

The discussion thread always hangs off an *anchor*: the media post a text
message is talking about. A reply anchors to the message it replies to;
anything else anchors to the newest recent post carrying an attachment or
embed. Threads are looked up on Discord every time and never tracked here.
"""

from __future__ import annotations

from typing import Any, Optional

import discord

from mediakeeper.services.proxy_resolver import ProxyResolver
from mediakeeper.util.discord_utils import (
    add_thread_member,
    has_media,
    is_proxy_delivery,
    mention_user,
    safe_delete_message,
    send_dm_to_user,
    send_transient_notice,
)
from mediakeeper.util.format_utils import quote_content, thread_name_for
from mediakeeper.util.logger import get_logger

logger = get_logger("thread_resolver")

# Discord error code for "A thread has already been created for this message"
THREAD_ALREADY_EXISTS = 160004

NO_ANCHOR_NOTICE = (
    "Your message in <#{channel_id}> was removed because it's a media-only channel "
    "and there was no recent media post to start a discussion thread under.\n\n{quote}"
)


class ThreadResolver:
    """
    Locate or create the thread that receives a relocated message.

    Args:
        proxy_resolver: Used to find the real sender behind a proxied anchor.
        history_limit: How many recent messages are scanned for an anchor.
        auto_archive_minutes: Inactivity period after which new threads archive.
        notice_seconds: Lifetime of the fallback channel notice.
    """

    def __init__(
        self,
        proxy_resolver: ProxyResolver,
        *,
        history_limit: int = 10,
        auto_archive_minutes: int = 60,
        notice_seconds: float = 10.0,
    ) -> None:
        self.proxy_resolver = proxy_resolver
        self.history_limit = history_limit
        self.auto_archive_minutes = auto_archive_minutes
        self.notice_seconds = notice_seconds

    async def resolve(self, message: Any, *, author_id: int, content: str) -> Optional[Any]:
        """
        Return the thread for ``message``.

        Returns None when the channel has no anchor. In that case the message
        has already been deleted and its author told why.
        """
        anchor = await self.find_anchor(message)
        if anchor is None:
            await self.reject_without_anchor(message, author_id=author_id, content=content)
            return None
        return await self.thread_for(anchor)

    # ------------------------------------------------------------------
    # Anchor lookup
    # ------------------------------------------------------------------

    async def find_anchor(self, message: Any) -> Optional[Any]:
        reference = getattr(message, "reference", None)
        if message.type == discord.MessageType.reply and reference is not None and reference.message_id:
            anchor = await self._fetch_referenced(message, reference.message_id)
            if anchor is not None:
                return anchor

        async for candidate in message.channel.history(limit=self.history_limit):
            if candidate.id != message.id and has_media(candidate):
                return candidate
        return None

    async def _fetch_referenced(self, message: Any, message_id: int) -> Optional[Any]:
        try:
            return await message.channel.fetch_message(message_id)
        except discord.NotFound:
            logger.info("[THREAD] Replied-to message %s is gone, scanning history instead", message_id)
        except discord.HTTPException as exc:
            logger.warning("[THREAD] Could not fetch replied-to message %s: %s", message_id, exc)
        return None

    # ------------------------------------------------------------------
    # Thread lookup / creation
    # ------------------------------------------------------------------

    async def thread_for(self, anchor: Any) -> Any:
        """Reuse the anchor's thread if it has one, otherwise start one."""
        existing = self._existing_thread(anchor)
        if existing is not None:
            logger.debug("[THREAD] Reusing thread %s on message %s", existing.id, anchor.id)
            return existing

        try:
            thread = await anchor.create_thread(
                name=thread_name_for(anchor.author.display_name),
                auto_archive_duration=self.auto_archive_minutes,
            )
        except discord.HTTPException as exc:
            if getattr(exc, "code", None) != THREAD_ALREADY_EXISTS:
                raise
            # Another migration created it first; thread ids equal their starter message id
            logger.debug("[THREAD] Thread on message %s was created concurrently", anchor.id)
            return await anchor.guild.fetch_channel(anchor.id)

        logger.info("[THREAD] Created thread %s on message %s", thread.id, anchor.id)
        if is_proxy_delivery(anchor):
            await self._add_proxy_sender(thread, anchor)
        return thread

    @staticmethod
    def _existing_thread(anchor: Any) -> Optional[Any]:
        thread = getattr(anchor, "thread", None)
        if thread is None and anchor.guild is not None:
            thread = anchor.guild.get_thread(anchor.id)
        return thread

    async def _add_proxy_sender(self, thread: Any, anchor: Any) -> None:
        # The anchor author is a webhook persona; let the real account into the thread
        metadata = await self.proxy_resolver.resolve(anchor.id)
        if metadata is None:
            logger.info("[THREAD] No proxy sender found for anchor %s", anchor.id)
            return
        if not await add_thread_member(thread, int(metadata.sender_id)):
            logger.warning("[THREAD] Could not add proxy sender %s to thread %s", metadata.sender_id, thread.id)

    # ------------------------------------------------------------------
    # No-anchor outcome
    # ------------------------------------------------------------------

    async def reject_without_anchor(self, message: Any, *, author_id: int, content: str) -> None:
        """Tell the author there was nothing to discuss, then delete their message."""
        logger.info("[THREAD] No media anchor in channel %s for message %s", message.channel.id, message.id)
        notice = NO_ANCHOR_NOTICE.format(channel_id=message.channel.id, quote=quote_content(content))

        delivered = False
        if not is_proxy_delivery(message):
            delivered = await send_dm_to_user(message.author, notice)
        if not delivered:
            await send_transient_notice(
                message.channel,
                f"{mention_user(author_id)} {notice}",
                self.notice_seconds,
                mention_user_id=author_id,
            )

        await safe_delete_message(message)
