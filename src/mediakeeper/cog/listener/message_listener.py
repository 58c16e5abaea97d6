"""Message listener Cog for mediakeeper.

This cog has exactly ONE responsibility: hand every new or deleted message to
the media-only engine. Filtering, holding and migrating all live in the service.
"""

import asyncio

import discord
from discord.ext import commands

from mediakeeper.services.media_only_service import MediaOnlyService
from mediakeeper.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """Thin event listener that forwards messages to :class:`MediaOnlyService`."""

    def __init__(self, bot: discord.Bot, media_service: MediaOnlyService) -> None:
        self.bot = bot
        self._media_service = media_service
        logger.info("[MESSAGE LISTENER] Message listener cog loaded")

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message) -> None:
        try:
            await self._media_service.handle_message(message)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("[MESSAGE LISTENER] Failed to handle message %s", message.id)

    @commands.Cog.listener(name="on_raw_message_delete")
    async def on_raw_message_delete(self, payload: discord.RawMessageDeleteEvent) -> None:
        """A deleted message must never be migrated; proxy services delete the original on repost."""
        self._media_service.handle_message_deleted(payload.message_id)


def setup(bot: discord.Bot, media_service: MediaOnlyService) -> None:
    """Register the MessageListenerCog with the bot."""
    bot.add_cog(MessageListenerCog(bot, media_service))
