"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers, but JSON object keys must be strings.
These wrappers store the snowflake as a string, compare and hash like the
matching ``int``, and convert back with ``to_int()`` for API calls, so the
state snapshot and the transport code agree on one representation.
"""

from __future__ import annotations

from typing import Union


class Snowflake:
    """
    Base wrapper for a Discord snowflake ID.

    Example:
        >>> uid = UserID(123456789012345678)
        >>> uid.to_int()
        123456789012345678
        >>> str(uid)
        '123456789012345678'
        >>> uid == 123456789012345678
        True
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int, or another wrapper of the same kind.

        Raises:
            ValueError: If the value is not a non-negative integer snowflake.
        """
        if isinstance(value, type(self)):
            self._value = value._value
            return
        if isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool")
        if isinstance(value, int):
            number = value
        elif isinstance(value, str):
            number = int(value.strip())
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")
        if number < 0:
            raise ValueError(f"{type(self).__name__} must be non-negative, got {number}")
        self._value = str(number)

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
        if isinstance(other, bool):
            return NotImplemented
        if isinstance(other, int):
            return self.to_int() == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.to_int())

    def __lt__(self, other: "Snowflake") -> bool:
        return self.to_int() < other.to_int()


class UserID(Snowflake):
    """Snowflake of a Discord user (members, admins, banned users, reactors)."""

    __slots__ = ()

    @classmethod
    def from_user(cls, user) -> "UserID":
        """Create a UserID from a Discord Member or User object."""
        return cls(user.id)


class ChannelID(Snowflake):
    """Snowflake of a Discord text channel."""

    __slots__ = ()


class MessageID(Snowflake):
    """Snowflake of a Discord message."""

    __slots__ = ()
