"""
Media-only policy engine.

Exposes the entry points the bot drives:

- :meth:`MediaOnlyService.handle_message` for every newly observed message,
- :meth:`MediaOnlyService.handle_message_deleted` for every deletion,
- :meth:`MediaOnlyService.sweep` on a fixed interval.

A plain text message is not migrated right away. A proxy service may be about
to delete it and repost it under a persona, so it waits in the pending
registry for the grace window. If the repost arrives first, the proxy path
consumes the pending entry and migrates the repost with the persona's name.
The proxy service deletes the original as it reposts, and that deletion
drops the pending entry even while the repost's lookup is still in flight.
Otherwise the sweep consumes it and migrates the original under the author's
own name.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Set

from mediakeeper.configuration.channel_store import ChannelStore
from mediakeeper.datatypes.discord_datatypes import MessageID
from mediakeeper.datatypes.migration_datatypes import MigrationOutcome
from mediakeeper.datatypes.pending_datatypes import PendingEntry, PendingKey
from mediakeeper.moderation.candidacy import is_exempt
from mediakeeper.services.migration_service import MigrationExecutor
from mediakeeper.services.pending_registry import PendingRegistry
from mediakeeper.services.proxy_resolver import ProxyResolver
from mediakeeper.util.discord_utils import is_proxy_delivery
from mediakeeper.util.logger import get_logger

logger = get_logger("media_only_service")


class MediaOnlyService:
    """
    Ties the candidacy filter, pending registry, proxy resolver and migration
    executor together.

    Parameters
    ----------
    channel_store:
        Source of the monitored channel ids.
    registry:
        Holds messages waiting for a proxy confirmation.
    proxy_resolver:
        Looks up persona metadata for webhook deliveries.
    executor:
        Performs the actual relocation.
    grace_window:
        Seconds a plain message waits before it is migrated as-is.
    """

    def __init__(
        self,
        channel_store: ChannelStore,
        registry: PendingRegistry,
        proxy_resolver: ProxyResolver,
        executor: MigrationExecutor,
        *,
        grace_window: float = 1.5,
    ) -> None:
        self.channel_store = channel_store
        self.registry = registry
        self.proxy_resolver = proxy_resolver
        self.executor = executor
        self.grace_window = grace_window
        self._migrations: Set[asyncio.Task] = set()

    # ------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------

    async def handle_message(self, message: Any) -> None:
        if is_exempt(message, self.channel_store.ids):
            return

        if is_proxy_delivery(message):
            await self._handle_proxied(message)
            return

        self._hold(message)

    def handle_message_deleted(self, message_id: int) -> None:
        """Forget a pending message that no longer exists."""
        entry = self.registry.discard_message(message_id)
        if entry is not None:
            logger.debug(
                "[PENDING] Message %s was deleted while pending in channel %s",
                message_id, entry.key.channel_id,
            )

    def _hold(self, message: Any) -> PendingEntry:
        entry = self.registry.register_pending(PendingKey.from_message(message), message)
        logger.debug(
            "[PENDING] Holding message %s from %s in channel %s for %.1fs",
            message.id, message.author.id, message.channel.id, self.grace_window,
        )
        return entry

    async def _handle_proxied(self, message: Any) -> Optional[MigrationOutcome]:
        metadata = await self.proxy_resolver.resolve(MessageID.from_message(message))
        if metadata is None:
            # Some other webhook; judge it like a plain message
            self._hold(message)
            return None

        key = PendingKey.of(metadata.sender_id, message.channel.id)
        superseded = self.registry.consume_if_present(key)
        if superseded is not None:
            logger.debug(
                "[PENDING] Proxy repost %s confirmed pending message %s",
                message.id, superseded.message.id,
            )

        return await self.executor.migrate(
            message,
            message.content,
            metadata.label,
            author_id=metadata.sender_id.to_int(),
        )

    # ------------------------------------------------------
    # Periodic sweep
    # ------------------------------------------------------

    async def sweep(self) -> int:
        """Start migrating every pending message whose grace window has run out.

        Each migration runs as its own task so a slow one never holds back the
        next sweep. Returns the number of entries taken from the registry.
        """
        expired = self.registry.sweep_expired(self.registry.now(), self.grace_window)
        for entry in expired:
            task = asyncio.create_task(
                self._migrate_expired(entry),
                name=f"migrate-message-{entry.message.id}",
            )
            self._migrations.add(task)
            task.add_done_callback(self._migrations.discard)
        return len(expired)

    async def _migrate_expired(self, entry: PendingEntry) -> None:
        message = entry.message
        try:
            await self.executor.migrate(
                message,
                message.content,
                message.author.display_name,
                author_id=message.author.id,
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("[SWEEP] Unexpected error migrating message %s", message.id)

    @property
    def migrations_in_flight(self) -> int:
        return len(self._migrations)

    async def wait_idle(self) -> None:
        """Wait until every migration started by :meth:`sweep` has finished."""
        while self._migrations:
            await asyncio.gather(*list(self._migrations), return_exceptions=True)

    def cancel_migrations(self) -> None:
        """Cancel unfinished sweep migrations during shutdown."""
        for task in list(self._migrations):
            if not task.done():
                task.cancel()
        if self._migrations:
            logger.info("[SWEEP] Cancelled %d unfinished migration(s)", len(self._migrations))
