"""Conversion between recording timestamps in seconds and microseconds."""

from __future__ import annotations

import math
from decimal import Decimal

from .events import AsciicastError

_U64_MAX = 2**64 - 1


def parse_time(value: object) -> int:
    """Convert a JSON number of seconds to whole microseconds.

    The decimal digits beyond the sixth are cut off, not rounded.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AsciicastError("expected number")

    number = float(value)

    if not math.isfinite(number):
        raise AsciicastError(f"invalid time format: {value}")

    text = format(Decimal(repr(number)), "f")
    left, dot, right = text.partition(".")

    if not (left.isascii() and left.isdigit()):
        raise AsciicastError(f"invalid time value: {text}")

    secs = int(left)

    if secs > _U64_MAX:
        raise AsciicastError(f"time value out of range: {text}")

    if not dot:
        return secs * 1_000_000

    right = right.strip()[:6].ljust(6, "0")

    if not (right.isascii() and right.isdigit()):
        raise AsciicastError(f"invalid time value: {text}")

    return secs * 1_000_000 + int(right)


def format_time(time: int) -> str:
    """Format microseconds as seconds with exactly six decimal places."""
    return f"{time // 1_000_000}.{time % 1_000_000:06d}"