"""Recording events, headers and time transformations over event streams."""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace

from .theme import Theme

OUTPUT = "o"
INPUT = "i"
RESIZE = "r"
MARKER = "m"

_U64_MAX = 2**64 - 1


class AsciicastError(Exception):
    """Raised when a recording cannot be read or is malformed."""


@dataclass(frozen=True, slots=True)
class Event:
    """A single timed event; ``time`` is in microseconds.

    ``code`` is the one-character event code. ``data`` is text for every
    kind of event except resize, where it is a ``(cols, rows)`` pair.
    """

    time: int
    code: str
    data: str | tuple[int, int]

    @classmethod
    def output(cls, time: int, text: str) -> Event:
        return cls(time, OUTPUT, text)

    @classmethod
    def input(cls, time: int, text: str) -> Event:
        return cls(time, INPUT, text)

    @classmethod
    def resize(cls, time: int, size: tuple[int, int]) -> Event:
        cols, rows = size
        return cls(time, RESIZE, (cols, rows))

    @classmethod
    def marker(cls, time: int, label: str) -> Event:
        return cls(time, MARKER, label)


@dataclass
class Header:
    """Recording metadata."""

    version: int
    cols: int
    rows: int
    timestamp: int | None = None
    idle_time_limit: float | None = None
    command: str | None = None
    title: str | None = None
    env: dict[str, str] | None = None
    theme: Theme | None = None


@dataclass
class Asciicast:
    """A recording: its header and a lazy iterator over its events."""

    header: Header
    events: Iterator[Event]


def _to_u64(value: float) -> int | float:
    """Convert to a non-negative integer, saturating like an unsigned cast."""
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return math.inf if value > 0 else 0
    return min(max(int(value), 0), _U64_MAX)


def limit_idle_time(events: Iterable[Event], limit: float) -> Iterator[Event]:
    """Shorten every pause between events to at most ``limit`` seconds."""
    limit_us = _to_u64(limit * 1_000_000.0)
    prev_time = 0
    offset = 0

    for event in events:
        delay = event.time - prev_time

        if delay > limit_us:
            offset += delay - limit_us

        prev_time = event.time
        yield replace(event, time=event.time - offset)


def accelerate(events: Iterable[Event], speed: float) -> Iterator[Event]:
    """Scale event times by ``1 / speed``."""
    for event in events:
        time = _to_u64(event.time / speed)
        yield replace(event, time=_U64_MAX if math.isinf(time) else time)