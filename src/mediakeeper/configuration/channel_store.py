"""
Persistent list of media-only channels.

The list lives in a JSON file holding an ordered array of channel id strings.
It is loaded once when the bot becomes ready and rewritten whenever a channel
is added or removed through the admin commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import FrozenSet, List

from mediakeeper.datatypes.discord_datatypes import ChannelID
from mediakeeper.util.logger import get_logger

logger = get_logger("channel_store")


class ChannelConfigError(Exception):
    """Raised when the channel file exists but cannot be understood."""


class ChannelStore:
    """In-memory view of the monitored channel list backed by a JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._channel_ids: List[str] = []
        self._lookup: FrozenSet[int] = frozenset()
        self.loaded = False
        self.load_error: ChannelConfigError | None = None

    # --------------------------
    # Loading / persistence
    # --------------------------
    def load(self) -> List[str]:
        """Read the channel file, creating an empty one when it does not exist.

        Raises
        ------
        ChannelConfigError
            If the file cannot be created, read or parsed, or does not hold a list.
        """
        if not self.path.exists():
            logger.warning(
                "[CHANNEL STORE] %s not found. Creating an empty one; add channel ids to enable the policy.",
                self.path,
            )
            self._set([])
            try:
                self._persist()
            except OSError as exc:
                raise ChannelConfigError(f"Failed to create {self.path}: {exc}") from exc
            self.loaded = True
            return self.channel_ids

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ChannelConfigError(f"Failed to load or parse {self.path}: {exc}") from exc

        if not isinstance(payload, list):
            raise ChannelConfigError(f"{self.path} must contain a JSON list of channel ids")

        try:
            ids = [str(ChannelID(item)) for item in payload]
        except ValueError as exc:
            raise ChannelConfigError(f"{self.path} contains an invalid channel id: {exc}") from exc

        self._set(ids)
        self.loaded = True
        logger.info("[CHANNEL STORE] Loaded %d media channel(s): %s", len(self._channel_ids), self._channel_ids)
        return self.channel_ids

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._channel_ids, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def _set(self, ids: List[str]) -> None:
        unique: List[str] = []
        for channel_id in ids:
            if channel_id not in unique:
                unique.append(channel_id)
        self._channel_ids = unique
        self._lookup = frozenset(int(channel_id) for channel_id in unique)

    # --------------------------
    # Public API
    # --------------------------
    @property
    def channel_ids(self) -> List[str]:
        """Ordered copy of the monitored channel ids."""
        return list(self._channel_ids)

    @property
    def ids(self) -> FrozenSet[int]:
        """Lookup set used by the candidacy filter."""
        return self._lookup

    def __contains__(self, channel_id: object) -> bool:
        try:
            return int(ChannelID(channel_id)) in self._lookup  # type: ignore[arg-type]
        except ValueError:
            return False

    def add(self, channel_id: int | str) -> bool:
        """Start monitoring ``channel_id``. Returns False if it was already monitored."""
        key = str(ChannelID(channel_id))
        if key in self._channel_ids:
            return False
        self._set(self._channel_ids + [key])
        self._persist()
        logger.info("[CHANNEL STORE] Added media channel %s", key)
        return True

    def remove(self, channel_id: int | str) -> bool:
        """Stop monitoring ``channel_id``. Returns False if it was not monitored."""
        key = str(ChannelID(channel_id))
        if key not in self._channel_ids:
            return False
        self._set([existing for existing in self._channel_ids if existing != key])
        self._persist()
        logger.info("[CHANNEL STORE] Removed media channel %s", key)
        return True
