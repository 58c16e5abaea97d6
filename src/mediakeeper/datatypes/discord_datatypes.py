"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers that arrive as ints from the client
library and as strings from JSON (the channel file, the proxy service). These
wrappers normalise both forms so ids can be compared and hashed consistently.
"""

from __future__ import annotations

from typing import Any, Union


class _Snowflake:
    """
    Shared behaviour of the snowflake wrappers.

    The value is kept as a canonical decimal string. Instances compare equal to
    other instances of the same class and to the equivalent ``int`` or ``str``.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "_Snowflake"]) -> None:
        if isinstance(value, _Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            if value < 0:
                raise ValueError(f"Snowflake must be positive: {value}")
            self._value = str(value)
        elif isinstance(value, str):
            parsed = int(value.strip())
            if parsed < 0:
                raise ValueError(f"Snowflake must be positive: {value}")
            self._value = str(parsed)
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    def to_int(self) -> int:
        """Convert to an integer for Discord API calls."""
        return int(self._value)

    def __int__(self) -> int:
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, type(self)):
            return self._value == other._value
        if isinstance(other, bool):
            return NotImplemented
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class UserID(_Snowflake):
    """Snowflake of a Discord user (or of the webhook author of a proxied message)."""

    __slots__ = ()

    @classmethod
    def from_user(cls, user: Any) -> "UserID":
        return cls(user.id)


class ChannelID(_Snowflake):
    """Snowflake of a guild channel or thread."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel: Any) -> "ChannelID":
        return cls(channel.id)


class MessageID(_Snowflake):
    """Snowflake of a message."""

    __slots__ = ()

    @classmethod
    def from_message(cls, message: Any) -> "MessageID":
        return cls(message.id)
