"""
Identity-proxy metadata as returned by the PluralKit message endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from mediakeeper.datatypes.discord_datatypes import UserID
from mediakeeper.util.format_utils import persona_label


@dataclass(frozen=True)
class ProxyMetadata:
    """
    Who is really behind a proxied message and which persona it was sent as.

    Attributes:
        sender_id: The Discord account that triggered the proxy.
        display_name: Persona name used to attribute relocated content.
        group_tag: Optional system tag appended to the persona name.
        member_id: Proxy-service id of the persona, if reported.
        system_id: Proxy-service id of the system, if reported.
    """

    sender_id: UserID
    display_name: str
    group_tag: Optional[str] = None
    member_id: Optional[str] = None
    system_id: Optional[str] = None

    @property
    def label(self) -> str:
        return persona_label(self.display_name, self.group_tag)

    @classmethod
    def from_payload(cls, payload: Any) -> "ProxyMetadata":
        """
        Build metadata from a ``/messages/{id}`` response body.

        Raises:
            ValueError: If the payload lacks a usable sender or persona name.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("proxy payload is not an object")

        sender = payload.get("sender")
        if sender is None:
            raise ValueError("proxy payload has no sender")
        sender_id = UserID(sender)

        member = payload.get("member") or {}
        system = payload.get("system") or {}
        if not isinstance(member, Mapping) or not isinstance(system, Mapping):
            raise ValueError("proxy payload has malformed member/system")

        display_name = member.get("display_name") or member.get("name")
        if not display_name:
            raise ValueError("proxy payload has no member name")

        return cls(
            sender_id=sender_id,
            display_name=str(display_name),
            group_tag=system.get("tag") or None,
            member_id=member.get("id"),
            system_id=system.get("id"),
        )
