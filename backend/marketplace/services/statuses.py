from __future__ import annotations
import enum
from typing import TypeVar

from marketplace.core.errors import InvalidStatusError

E = TypeVar("E", bound=enum.Enum)


def parse_status(enum_cls: type[E], value) -> E:
    """Accept only canonical (lower-case) values; never coerce casing."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(s.value for s in enum_cls)
        raise InvalidStatusError(f"Invalid status {value!r}; expected one of: {allowed}")
