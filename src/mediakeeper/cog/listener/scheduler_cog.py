"""Background sweep cog for mediakeeper.

Promotes pending messages whose grace window has passed to migration. The
loop runs independently of message arrival.
"""

from __future__ import annotations

import asyncio
from typing import Callable

import discord
from discord.ext import commands, tasks

from mediakeeper.services.media_only_service import MediaOnlyService
from mediakeeper.util.logger import get_logger

logger = get_logger("scheduler_cog")


class SweepSchedulerCog(commands.Cog):
    """
    Fixed-interval sweep of the pending registry.

    Parameters
    ----------
    bot:
        Discord bot instance.
    media_service:
        Engine whose :meth:`~MediaOnlyService.sweep` runs every tick.
    get_interval:
        Returns the tick period in seconds; read when the bot becomes ready.
    """

    def __init__(
        self,
        bot: discord.Bot,
        media_service: MediaOnlyService,
        get_interval: Callable[[], float],
    ) -> None:
        self.bot = bot
        self._media_service = media_service
        self._get_interval = get_interval

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        interval = self._get_interval()
        self._sweep_task.change_interval(seconds=interval)
        if not self._sweep_task.is_running():
            self._sweep_task.start()
            logger.info("[SWEEP] Started (interval=%.2fs)", interval)

    def cog_unload(self) -> None:
        self._sweep_task.cancel()
        self._media_service.cancel_migrations()
        logger.info("[SWEEP] Stopped")

    @tasks.loop(seconds=0.5)  # real interval set in on_ready
    async def _sweep_task(self) -> None:
        await self.tick()

    @_sweep_task.before_loop
    async def _before_sweep(self) -> None:
        await self.bot.wait_until_ready()

    async def tick(self) -> None:
        """Start one sweep; never raises except for cancellation.

        Migrations run in the background, so a tick never waits on Discord.
        """
        try:
            migrated = await self._media_service.sweep()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("[SWEEP] Sweep failed: %s", exc)
            return
        if migrated:
            logger.debug("[SWEEP] Promoted %d pending message(s)", migrated)


def setup(bot: discord.Bot, media_service: MediaOnlyService, get_interval: Callable[[], float]) -> None:
    bot.add_cog(SweepSchedulerCog(bot, media_service, get_interval))
