"""
Conversions between Discord snowflakes and SQLite INTEGER columns.

Snowflakes are unsigned 64-bit but SQLite stores signed 64-bit integers, so
every id is range-checked before it is bound into a statement, and every id
read back is checked before it is wrapped again.
"""

from __future__ import annotations

from typing import Optional, Type, TypeVar

from auditcord.datatypes.discord_datatypes import Snowflake
from auditcord.errors import MalformedRecord, ValueOutOfRange

I64_MAX = (1 << 63) - 1
I64_MIN = -(1 << 63)

S = TypeVar("S", bound=Snowflake)


def to_db_int(field: str, value: int) -> int:
    """Return ``value`` as an int that fits a signed 64-bit column.

    Raises:
        ValueOutOfRange: If the value does not fit.
    """
    number = int(value)
    if not I64_MIN <= number <= I64_MAX:
        raise ValueOutOfRange(field, number)
    return number


def to_db_int_optional(field: str, value: Optional[int]) -> Optional[int]:
    return None if value is None else to_db_int(field, value)


def from_db_id(field: str, raw: object, cls: Type[S]) -> S:
    """Wrap a stored id, rejecting values no snowflake can have.

    Raises:
        MalformedRecord: If the column is not a non-negative integer.
    """
    if not isinstance(raw, int) or isinstance(raw, bool) or raw < 0:
        raise MalformedRecord(f"{field} row value is not a valid snowflake: {raw!r}")
    return cls(raw)


def from_db_id_optional(field: str, raw: object, cls: Type[S]) -> Optional[S]:
    return None if raw is None else from_db_id(field, raw, cls)
