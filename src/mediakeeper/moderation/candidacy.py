"""
Media-only candidacy filter.

Decides whether an inbound message is exempt from the media-only policy. The
checks run in a fixed order and the first match wins; a message that passes
none of them is text-only content that has to be relocated.
"""

from __future__ import annotations

import re
from typing import AbstractSet, Any

import discord

from mediakeeper.util.discord_utils import is_proxy_delivery

# scheme + host + path; a shared link counts as media
URL_PATTERN = re.compile(r"https?://[^\s/$.?#][^\s]*", re.IGNORECASE)

POSTABLE_TYPES = frozenset({discord.MessageType.default, discord.MessageType.reply})


def _is_forward(message: Any) -> bool:
    if getattr(message, "snapshots", None):
        return True
    reference = getattr(message, "reference", None)
    if reference is None:
        return False
    forward_type = getattr(getattr(discord, "MessageReferenceType", None), "forward", None)
    return forward_type is not None and getattr(reference, "type", None) == forward_type


def is_exempt(message: Any, monitored_channel_ids: AbstractSet[int]) -> bool:
    """Return True when ``message`` needs no further handling."""
    if message.channel.id not in monitored_channel_ids:
        return True

    # Bots are ignored unless they are a proxy webhook reposting a user
    if (message.author.bot and not is_proxy_delivery(message)) or message.guild is None:
        return True

    if message.type not in POSTABLE_TYPES:
        return True

    if message.attachments:
        return True

    if _is_forward(message):
        return True

    if message.stickers:
        return True

    if URL_PATTERN.search(message.content or ""):
        return True

    return False
