"""
Channel administration cog: choose which channels are media-only.

Slash commands (all ephemeral, Manage Channels required):
- /mediaonly add [channel]
- /mediaonly remove [channel]
- /mediaonly list
"""

import discord
from discord.ext import commands

from mediakeeper.configuration.channel_store import ChannelStore
from mediakeeper.util.logger import get_logger

logger = get_logger("channel_commands")


class ChannelCommandsCog(commands.Cog):
    """Runtime management of the monitored channel list."""

    def __init__(self, bot: discord.Bot, channel_store: ChannelStore) -> None:
        self.bot = bot
        self._channel_store = channel_store
        logger.info("[CHANNEL CMDS] Channel commands cog loaded")

    async def _check_permissions(self, ctx: discord.ApplicationContext) -> bool:
        if not ctx.guild_id:
            await ctx.respond("This command can only be used in a server.", ephemeral=True)
            return False
        permissions = getattr(ctx.user, "guild_permissions", None)
        if not getattr(permissions, "manage_channels", False):
            await ctx.respond("You need Manage Channels permission.", ephemeral=True)
            return False
        return True

    mediaonly = discord.SlashCommandGroup("mediaonly", "Configure media-only channels")

    @mediaonly.command(name="add", description="Make a channel media-only")
    async def add_channel(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "Channel to enforce (defaults to this one)", required=False, default=None),  # type: ignore[valid-type]
    ):
        if not await self._check_permissions(ctx):
            return

        target = channel or ctx.channel
        if self._channel_store.add(target.id):
            logger.info("[CHANNEL CMDS] %s made channel %s media-only", ctx.user, target.id)
            await ctx.respond(f"✅ <#{target.id}> is now media-only.", ephemeral=True)
        else:
            await ctx.respond(f"<#{target.id}> is already media-only.", ephemeral=True)

    @mediaonly.command(name="remove", description="Stop enforcing media-only in a channel")
    async def remove_channel(
        self,
        ctx: discord.ApplicationContext,
        channel: discord.Option(discord.TextChannel, "Channel to release (defaults to this one)", required=False, default=None),  # type: ignore[valid-type]
    ):
        if not await self._check_permissions(ctx):
            return

        target = channel or ctx.channel
        if self._channel_store.remove(target.id):
            logger.info("[CHANNEL CMDS] %s released channel %s", ctx.user, target.id)
            await ctx.respond(f"✅ <#{target.id}> is no longer media-only.", ephemeral=True)
        else:
            await ctx.respond(f"<#{target.id}> is not media-only.", ephemeral=True)

    @mediaonly.command(name="list", description="List this server's media-only channels")
    async def list_channels(self, ctx: discord.ApplicationContext):
        if not await self._check_permissions(ctx):
            return

        in_guild = [
            channel_id for channel_id in self._channel_store.channel_ids
            if ctx.guild.get_channel(int(channel_id)) is not None
        ]
        embed = discord.Embed(title="Media-only channels", color=discord.Color.blue())
        embed.description = "\n".join(f"<#{channel_id}>" for channel_id in in_guild) or "None"
        await ctx.respond(embed=embed, ephemeral=True)


def setup(bot: discord.Bot, channel_store: ChannelStore) -> None:
    bot.add_cog(ChannelCommandsCog(bot, channel_store))
