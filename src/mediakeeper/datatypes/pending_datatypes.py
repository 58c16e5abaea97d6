"""
Data structures for messages waiting on a proxy confirmation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple

from mediakeeper.datatypes.discord_datatypes import ChannelID, UserID


class PendingKey(NamedTuple):
    """
    Correlates a raw message with the proxied copy that may replace it.

    A proxy service reposts under a persona but reports the real sender, so the
    (sender, channel) pair is what both messages have in common. Only one entry
    per key is tracked at a time.
    """

    author_id: UserID
    channel_id: ChannelID

    @classmethod
    def of(cls, author_id: int | str | UserID, channel_id: int | str | ChannelID) -> "PendingKey":
        return cls(UserID(author_id), ChannelID(channel_id))

    @classmethod
    def from_message(cls, message: Any) -> "PendingKey":
        return cls(UserID.from_user(message.author), ChannelID.from_channel(message.channel))


@dataclass
class PendingEntry:
    """A non-compliant message held back until the grace window elapses."""

    key: PendingKey
    message: Any
    enqueued_at: float

    def age(self, now: float) -> float:
        return now - self.enqueued_at
