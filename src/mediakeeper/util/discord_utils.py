"""
discord_utils.py
================

Low-level Discord helpers for mediakeeper.

Every coroutine here performs a single best-effort side action and reports the
result as a bool instead of raising, so a caller can run a chain of them where
one failure never aborts the rest.
"""

from typing import Any, Optional

import discord

from mediakeeper.util.format_utils import split_message
from mediakeeper.util.logger import get_logger

logger = get_logger("discord_utils")


# --- Message predicates ---

def has_media(message: Any) -> bool:
    """Return True if the message carries an attachment or a rich embed."""
    return bool(getattr(message, "attachments", None)) or bool(getattr(message, "embeds", None))


def is_proxy_delivery(message: Any) -> bool:
    """Return True if the message was delivered through a webhook (a proxy repost)."""
    return getattr(message, "webhook_id", None) is not None


def mention_user(user_id: int) -> str:
    return f"<@{int(user_id)}>"


def only_user_mentions(user_id: Optional[int]) -> discord.AllowedMentions:
    """Allow pinging ``user_id`` and nobody else (no roles, no @everyone)."""
    if user_id is None:
        return discord.AllowedMentions.none()
    return discord.AllowedMentions(
        everyone=False,
        roles=False,
        replied_user=False,
        users=[discord.Object(id=int(user_id))],
    )


# --- Best-effort actions ---

async def safe_delete_message(message: Any) -> bool:
    """
    Attempt to delete a Discord message, suppressing recoverable errors.

    Args:
        message: The message to delete.

    Returns:
        bool: True if deletion succeeded, False otherwise (already deleted,
        missing permissions, or any other API failure).
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        logger.debug("Message %s was already deleted", message.id)
    except discord.Forbidden:
        logger.warning("No permission to delete message %s", message.id)
    except Exception as exc:
        logger.error("Error deleting message %s: %s", message.id, exc)
    return False


async def send_dm_to_user(target_user: Any, message_content: str) -> bool:
    """
    Attempt to send a direct message to a user.

    Content longer than one Discord message is sent in several parts.

    Returns:
        bool: True if the DM was sent, False otherwise.
    """
    try:
        for chunk in split_message(message_content):
            await target_user.send(chunk, allowed_mentions=discord.AllowedMentions.none())
        return True
    except discord.Forbidden:
        logger.info("Could not DM %s: they may have DMs disabled.", getattr(target_user, "display_name", target_user))
    except Exception as exc:
        logger.error("Failed to send DM to %s: %s", getattr(target_user, "display_name", target_user), exc)
    return False


async def send_transient_notice(
    channel: Any,
    content: str,
    seconds: float,
    *,
    mention_user_id: Optional[int] = None,
) -> bool:
    """
    Post a notice that removes itself after ``seconds``.

    Only ``mention_user_id`` (if given) is pinged; any mentions inside the
    quoted content stay inert.
    """
    try:
        for chunk in split_message(content):
            await channel.send(
                chunk,
                delete_after=seconds,
                allowed_mentions=only_user_mentions(mention_user_id),
            )
        return True
    except discord.Forbidden:
        logger.warning("No permission to post a notice in channel %s", getattr(channel, "id", "?"))
    except Exception as exc:
        logger.error("Failed to post notice in channel %s: %s", getattr(channel, "id", "?"), exc)
    return False


async def add_thread_member(thread: Any, user_id: int) -> bool:
    """Add ``user_id`` to ``thread`` so the thread shows up for them."""
    try:
        await thread.add_user(discord.Object(id=int(user_id)))
        return True
    except discord.NotFound:
        logger.debug("User %s or thread %s no longer exists", user_id, thread.id)
    except discord.Forbidden:
        logger.warning("No permission to add user %s to thread %s", user_id, thread.id)
    except Exception as exc:
        logger.error("Failed to add user %s to thread %s: %s", user_id, thread.id, exc)
    return False
