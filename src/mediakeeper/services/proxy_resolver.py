"""
Identity-proxy lookups against the PluralKit API.

PluralKit reposts a user's message through a webhook under a persona and
records who really sent it. That record is committed a moment after the
repost appears, so every lookup waits a short settling delay first and then
makes exactly one request.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import requests

from mediakeeper.datatypes.discord_datatypes import MessageID
from mediakeeper.datatypes.proxy_datatypes import ProxyMetadata
from mediakeeper.util.logger import get_logger

logger = get_logger("proxy_resolver")

SETTLE_DELAY_SECONDS = 0.4
USER_AGENT = "mediakeeper (media-only channel bot)"


class ProxyResolver:
    """
    Resolve a message id to its proxy metadata.

    Args:
        api_base: Base URL of the PluralKit v2 API.
        settle_delay: Seconds to wait before querying.
        timeout: HTTP timeout in seconds.
    """

    def __init__(
        self,
        api_base: str,
        *,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        timeout: float = 5.0,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.settle_delay = settle_delay
        self.timeout = timeout

    async def resolve(self, message_id: int | MessageID) -> Optional[ProxyMetadata]:
        """
        Return the proxy metadata for ``message_id``, or None.

        None covers every failure (not found, network error, malformed body);
        the caller treats it as "not a proxied message".
        """
        await asyncio.sleep(self.settle_delay)
        return await asyncio.to_thread(self._fetch, MessageID(message_id))

    def _fetch(self, message_id: MessageID) -> Optional[ProxyMetadata]:
        url = f"{self.api_base}/messages/{message_id}"
        try:
            response = requests.get(url, timeout=self.timeout, headers={"User-Agent": USER_AGENT})
        except requests.RequestException as exc:
            logger.error("[PROXY] Lookup for message %s failed: %s", message_id, exc)
            return None

        if response.status_code == 404:
            logger.debug("[PROXY] Message %s is not a proxied message", message_id)
            return None
        if not response.ok:
            logger.warning("[PROXY] Lookup for message %s returned HTTP %s", message_id, response.status_code)
            return None

        try:
            metadata = ProxyMetadata.from_payload(response.json())
        except ValueError as exc:
            logger.warning("[PROXY] Malformed payload for message %s: %s", message_id, exc)
            return None

        logger.debug("[PROXY] Message %s was proxied for %s as %r", message_id, metadata.sender_id, metadata.label)
        return metadata
