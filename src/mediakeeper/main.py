"""
mediakeeper entry point.

Run with ``python -m mediakeeper.main`` or the ``mediakeeper`` console script.
The process works from the project home so the relative paths in
``config/app_config.yml`` and the ``.env`` file resolve the same way however
it is launched.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Project home: ``$MEDIAKEEPER_HOME``, else the frozen executable's folder, else the repo root."""
    configured = os.getenv("MEDIAKEEPER_HOME")
    if configured:
        return Path(configured).resolve()
    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent
    # src/mediakeeper/main.py -> repo root
    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from mediakeeper.configuration.app_configuration import app_config
from mediakeeper.configuration.channel_store import ChannelStore
from mediakeeper.services.media_only_service import MediaOnlyService
from mediakeeper.services.migration_service import MigrationExecutor
from mediakeeper.services.pending_registry import PendingRegistry
from mediakeeper.services.proxy_resolver import ProxyResolver
from mediakeeper.services.thread_resolver import ThreadResolver
from mediakeeper.util.logger import get_logger, handle_exception

logger = get_logger("main")


def load_environment() -> str:
    """Read ``.env`` and return ``DISCORD_BOT_TOKEN``; exit with status 1 when it is unset."""
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN", "").strip()
    if token:
        return token
    logger.critical("DISCORD_BOT_TOKEN is not set (checked the environment and %s).", BASE_DIR / ".env")
    sys.exit(1)


def build_intents() -> discord.Intents:
    """Guild messages with their content; nothing privileged beyond message content."""
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True
    return intents


def build_media_service(channel_store: ChannelStore) -> MediaOnlyService:
    """Wire the media-only engine from the application configuration."""
    proxy_resolver = ProxyResolver(
        app_config.proxy_api_base,
        settle_delay=app_config.proxy_settle_delay_seconds,
        timeout=app_config.proxy_timeout_seconds,
    )
    thread_resolver = ThreadResolver(
        proxy_resolver,
        history_limit=app_config.history_limit,
        auto_archive_minutes=app_config.thread_auto_archive_minutes,
        notice_seconds=app_config.notice_seconds,
    )
    executor = MigrationExecutor(thread_resolver, notice_seconds=app_config.notice_seconds)
    return MediaOnlyService(
        channel_store,
        PendingRegistry(),
        proxy_resolver,
        executor,
        grace_window=app_config.grace_window_seconds,
    )


def load_cogs(bot: discord.Bot, channel_store: ChannelStore, media_service: MediaOnlyService) -> None:
    from mediakeeper.cog.commands import channel_cmds
    from mediakeeper.cog.listener import events_listener, message_listener, scheduler_cog

    events_listener.setup(bot, channel_store)
    message_listener.setup(bot, media_service)
    scheduler_cog.setup(bot, media_service, lambda: app_config.sweep_interval_seconds)
    channel_cmds.setup(bot, channel_store)
    logger.info("Registered %d cogs: %s", len(bot.cogs), ", ".join(bot.cogs))


def create_bot(channel_store: ChannelStore) -> discord.Bot:
    bot = discord.Bot(intents=build_intents())
    load_cogs(bot, channel_store, build_media_service(channel_store))
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Log in and stay connected until the bot is closed."""
    logger.info("Connecting to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Connection task cancelled")
    finally:
        logger.info("Disconnected from Discord")


async def async_main() -> int:
    """Run the bot once and map how it ended to a process exit status."""
    token = load_environment()
    channel_store = ChannelStore(app_config.channels_file)

    try:
        bot = create_bot(channel_store)
    except Exception as exc:
        logger.critical("Could not build the bot: %s", exc)
        return 1

    status = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the token: %s", exc)
        status = 1
    except Exception as exc:
        logger.critical("Bot stopped on an unexpected error: %s", exc)
        status = 1
    finally:
        if not bot.is_closed():
            await bot.close()

    if channel_store.load_error is not None:
        logger.critical("Exiting: %s", channel_store.load_error)
        return 1

    # Pending messages live only in memory and are dropped with the process
    logger.info("mediakeeper stopped (status %d)", status)
    return status


def main() -> int:
    logger.info("Starting mediakeeper from %s", BASE_DIR)
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")
        return 0
    except SystemExit as exit_exc:
        return exit_exc.code if isinstance(exit_exc.code, int) else 1
    except Exception as exc:
        logger.critical("mediakeeper crashed: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
