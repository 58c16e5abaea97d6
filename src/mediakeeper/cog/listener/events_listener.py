"""Event listener Cog for mediakeeper.

Handles the bot lifecycle: once the client is ready the monitored channel list
is loaded. A broken channel file is a startup error, so the bot shuts itself
down instead of running with an unknown policy.
"""

import discord
from discord.ext import commands

from mediakeeper.configuration.channel_store import ChannelConfigError, ChannelStore
from mediakeeper.util.logger import get_logger

logger = get_logger("events_listener")


class EventsListenerCog(commands.Cog):
    """Handles Discord bot lifecycle events."""

    def __init__(self, bot: discord.Bot, channel_store: ChannelStore) -> None:
        self.bot = bot
        self._channel_store = channel_store
        logger.info("[EVENTS LISTENER] Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self) -> None:
        """Load the channel list on the first ready event."""
        if self.bot.user:
            logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)

        # on_ready fires again after every reconnect
        if self._channel_store.loaded:
            return

        try:
            channel_ids = self._channel_store.load()
        except ChannelConfigError as exc:
            logger.critical("[EVENTS LISTENER] %s", exc)
            self._channel_store.load_error = exc
            await self.bot.close()
            return

        logger.info("[EVENTS LISTENER] Enforcing media-only policy in %d channel(s)", len(channel_ids))


def setup(bot: discord.Bot, channel_store: ChannelStore) -> None:
    bot.add_cog(EventsListenerCog(bot, channel_store))
