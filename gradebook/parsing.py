"""Coercion of loosely typed input (form fields, stored JSON) into typed values.

Numbers arrive as strings from forms and from older stored documents. Every
value goes through one of these helpers before it reaches the aggregation
code, so NaN and infinities never end up in a sum.
"""
from __future__ import annotations

import math
import typing as t


def parse_number(value: t.Any, default: t.Optional[float] = 0.0) -> t.Optional[float]:
    """Return ``value`` as a finite float, or ``default``.

    Booleans are rejected even though ``bool`` is an ``int`` subclass.
    Blank strings give ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        try:
            number = float(text)
        except ValueError:
            return default
    else:
        return default
    if not math.isfinite(number):
        return default
    return number


def is_finite_number(value: t.Any) -> bool:
    """True for real ints/floats that are finite."""
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def parse_weight(value: t.Any) -> float:
    return parse_number(value, 0.0)


def parse_credits(value: t.Any) -> float:
    return parse_number(value, 0.0)


def parse_score(value: t.Any) -> t.Optional[float]:
    """A score, or None when the item is ungraded or the input is junk."""
    return parse_number(value, None)


def parse_year(value: t.Any) -> int:
    return int(parse_number(value, 0.0))


def parse_bool(value: t.Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def parse_text(value: t.Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # ids written by older clients may be numbers
        return str(int(value)) if float(value).is_integer() else str(value)
    return default


def as_list(value: t.Any) -> list:
    """Lists and tuples pass through as a new list; anything else is empty."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return []
