"""
Pending registry.

Holds non-compliant messages that might still be replaced by a proxy repost.
An entry is consumed exactly once: either by the proxy path when the repost
shows up, or by the sweep once the grace window has passed. Both run on the
same event loop and neither method awaits, so ``consume_if_present`` is atomic
with respect to the other tasks and whichever caller reaches it first wins.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

from mediakeeper.datatypes.pending_datatypes import PendingEntry, PendingKey
from mediakeeper.util.logger import get_logger

logger = get_logger("pending_registry")


class PendingRegistry:
    """
    In-memory, single-owner store of :class:`PendingEntry` keyed by author/channel.

    A second message for the same key replaces the first (last write wins);
    the replaced message is never migrated.

    Args:
        clock: Monotonic time source in seconds, injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[PendingKey, PendingEntry] = {}

    def now(self) -> float:
        return self._clock()

    def register_pending(self, key: PendingKey, message: Any) -> PendingEntry:
        """Insert or overwrite the entry for ``key`` stamped with the current time."""
        previous = self._entries.get(key)
        if previous is not None:
            logger.info(
                "[PENDING] Message %s supersedes pending message %s for author %s in channel %s",
                message.id, previous.message.id, key.author_id, key.channel_id,
            )
        entry = PendingEntry(key=key, message=message, enqueued_at=self._clock())
        self._entries[key] = entry
        return entry

    def consume_if_present(self, key: PendingKey) -> Optional[PendingEntry]:
        """Remove and return the entry for ``key``; None if nothing is pending."""
        return self._entries.pop(key, None)

    def discard_message(self, message_id: int) -> Optional[PendingEntry]:
        """Drop the entry holding ``message_id`` (the message was deleted); None if not pending."""
        for key, entry in self._entries.items():
            if entry.message.id == message_id:
                return self._entries.pop(key)
        return None

    def sweep_expired(self, now: float, grace_window: float) -> List[PendingEntry]:
        """Remove and return every entry older than ``grace_window`` seconds, oldest first."""
        expired = [entry for entry in self._entries.values() if entry.age(now) > grace_window]
        expired.sort(key=lambda entry: entry.enqueued_at)
        for entry in expired:
            del self._entries[entry.key]
        return expired

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
