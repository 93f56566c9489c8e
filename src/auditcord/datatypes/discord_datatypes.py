"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are unsigned 64-bit integers. The wrappers keep guild,
channel, message and user ids from being mixed up at call sites while still
comparing equal to the plain ``int`` they wrap, so fakes and rows coming
back from the database can be compared directly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Union

import discord

# Largest value a Discord snowflake can take
SNOWFLAKE_MAX = (1 << 64) - 1


class Snowflake:
    """
    Base wrapper for a Discord snowflake ID.

    Attributes:
        _value (int): The snowflake as an unsigned integer.

    Example:
        >>> gid = GuildID(123456789012345678)
        >>> int(gid)
        123456789012345678
        >>> gid == 123456789012345678
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int, or another wrapper.

        Raises:
            ValueError: If the value is not a valid unsigned 64-bit integer.
        """
        if isinstance(value, Snowflake):
            parsed = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool")
        elif isinstance(value, int):
            parsed = value
        elif isinstance(value, str):
            parsed = int(value.strip())
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

        if not 0 <= parsed <= SNOWFLAKE_MAX:
            raise ValueError(f"{type(self).__name__} outside the snowflake range: {parsed}")
        self._value = parsed

    def to_int(self) -> int:
        """Return the snowflake as an integer for Discord API calls."""
        return self._value

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    @property
    def created_at(self) -> datetime:
        """UTC creation time encoded in the snowflake."""
        return discord.utils.snowflake_time(self._value)


class GuildID(Snowflake):
    """Snowflake of a Discord guild (community)."""

    __slots__ = ()

    @classmethod
    def from_guild(cls, guild: discord.Guild) -> "GuildID":
        return cls(guild.id)


class ChannelID(Snowflake):
    """Snowflake of a guild channel or thread."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel: discord.abc.Snowflake) -> "ChannelID":
        return cls(channel.id)


class MessageID(Snowflake):
    """Snowflake of a message. Its ``created_at`` is the message's send time."""

    __slots__ = ()

    @classmethod
    def from_message(cls, message: discord.Message) -> "MessageID":
        return cls(message.id)


class UserID(Snowflake):
    """Snowflake of a user or member."""

    __slots__ = ()

    @classmethod
    def from_user(cls, member: Union[discord.Member, discord.User]) -> "UserID":
        return cls(member.id)
