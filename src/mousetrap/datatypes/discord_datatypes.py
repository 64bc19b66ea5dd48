"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers, but the guard configuration stores them
as strings for JSON parity. These wrappers give one consistent interface for
both representations throughout the guard.
"""

from __future__ import annotations

from typing import Union


class Snowflake:
    """
    Base wrapper for a Discord snowflake ID.

    Attributes:
        _value (str): The snowflake ID stored as a string for JSON parity.

    Example:
        >>> cid = ChannelID.from_int(123456789012345678)
        >>> cid.to_int()
        123456789012345678
        >>> str(cid)
        '123456789012345678'
        >>> ChannelID(" 42 ") == 42
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int, or another wrapper of the same kind.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, type(self)):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            self._value = str(value)
        elif isinstance(value, str):
            # Validate that it's a valid integer string
            self._value = str(int(value.strip()))
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    def to_int(self) -> int:
        """Convert to an integer for Discord API calls."""
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, type(self)):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class GuildID(Snowflake):
    """Snowflake of a Discord guild (community)."""

    __slots__ = ()


class ChannelID(Snowflake):
    """Snowflake of a Discord channel."""

    __slots__ = ()

    def mention(self) -> str:
        """Render the clickable ``<#id>`` channel mention."""
        return f"<#{self._value}>"


class UserID(Snowflake):
    """Snowflake of a Discord user or member."""

    __slots__ = ()

    def mention(self) -> str:
        """Render the clickable ``<@id>`` user mention."""
        return f"<@{self._value}>"


class MessageID(Snowflake):
    """Snowflake of a Discord message."""

    __slots__ = ()
