"""Opening recordings of either format from streams and files."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from typing import TextIO

from . import v1, v2
from .events import Asciicast, AsciicastError, Event


def _line_body(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def _decoded(lines: Iterable[str]) -> Iterator[str]:
    try:
        yield from lines
    except UnicodeDecodeError as exc:
        raise AsciicastError(f"stream did not contain valid UTF-8: {exc}") from exc


def open_stream(reader: Iterable[str]) -> Asciicast:
    """Read a recording from an iterable of text lines.

    A version 2 header on the first line selects the line-based format;
    otherwise the whole input is loaded as a version 1 document.
    """
    lines = _decoded(reader)
    first = next(lines, None)

    if first is None:
        raise AsciicastError("empty file")

    try:
        parser = v2.open_header(_line_body(first))
    except AsciicastError:
        text = _line_body(first) + "".join(_line_body(line) for line in lines)
        return v1.load(text)

    return parser.parse(lines)


def _closing(file: TextIO, events: Iterator[Event]) -> Iterator[Event]:
    with file:
        yield from events


def open_from_path(path: str | os.PathLike[str]) -> Asciicast:
    """Open a recording file; its events are read lazily."""
    try:
        file = open(path, encoding="utf-8")
    except OSError as exc:
        raise AsciicastError(f"can't open asciicast file: {exc}") from exc

    try:
        recording = open_stream(file)
    except AsciicastError as exc:
        file.close()
        raise AsciicastError(f"can't open asciicast file: {exc}") from exc
    except BaseException:
        file.close()
        raise

    recording.events = _closing(file, recording.events)
    return recording


def get_duration(path: str | os.PathLike[str]) -> int:
    """Return the time of the last event in microseconds, or 0."""
    time = 0

    for event in open_from_path(path).events:
        time = event.time

    return time