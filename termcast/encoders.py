"""Encoders that write recorded events in the supported output formats."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from time import time as _unix_time
from typing import TextIO

from .events import OUTPUT, Asciicast, Event, Header
from .theme import Theme
from .v2 import Writer


@dataclass
class Metadata:
    """Header fields an asciicast encoder writes besides size and time."""

    idle_time_limit: float | None = None
    command: str | None = None
    title: str | None = None
    env: dict[str, str] | None = None
    theme: Theme | None = None

    @classmethod
    def from_header(cls, header: Header) -> Metadata:
        return cls(
            idle_time_limit=header.idle_time_limit,
            command=header.command,
            title=header.title,
            env=dict(header.env) if header.env is not None else None,
            theme=header.theme,
        )


class Encoder(ABC):
    """Receives a terminal size once, then a series of events.

    ``tty_size`` is a ``(cols, rows)`` pair.
    """

    @abstractmethod
    def start(self, timestamp: int | None, tty_size: tuple[int, int]) -> None:
        """Begin the output for a terminal of the given size."""

    @abstractmethod
    def event(self, event: Event) -> None:
        """Write one event."""

    def finish(self) -> None:
        """Complete the output."""

    def encode(self, recording: Asciicast) -> None:
        """Write a whole recording."""
        header = recording.header
        self.start(header.timestamp, (header.cols, header.rows))

        for event in recording.events:
            self.event(event)

        self.finish()

    def start_recording(self, tty_size: tuple[int, int]) -> None:
        """Begin a live recording stamped with the current time."""
        self.start(int(_unix_time()), tty_size)

    def output(self, time: int, text: str) -> None:
        self.event(Event.output(time, text))

    def input(self, time: int, text: str) -> None:
        self.event(Event.input(time, text))

    def resize(self, time: int, size: tuple[int, int]) -> None:
        self.event(Event.resize(time, size))

    def marker(self, time: int) -> None:
        self.event(Event.marker(time, ""))


class AsciicastEncoder(Encoder):
    """Writes the version 2 recording format.

    In append mode the header is left out and event times are shifted by
    ``time_offset`` microseconds.
    """

    def __init__(
        self,
        writer: TextIO,
        append: bool = False,
        time_offset: int = 0,
        metadata: Metadata | None = None,
    ) -> None:
        self._writer = Writer(writer, time_offset)
        self.append = append
        self.metadata = metadata if metadata is not None else Metadata()

    def _build_header(self, timestamp: int | None, tty_size: tuple[int, int]) -> Header:
        cols, rows = tty_size
        meta = self.metadata

        return Header(
            version=2,
            cols=cols,
            rows=rows,
            timestamp=timestamp,
            idle_time_limit=meta.idle_time_limit,
            command=meta.command,
            title=meta.title,
            env=dict(meta.env) if meta.env is not None else None,
            theme=meta.theme,
        )

    def start(self, timestamp: int | None, tty_size: tuple[int, int]) -> None:
        if not self.append:
            self._writer.write_header(self._build_header(timestamp, tty_size))

    def event(self, event: Event) -> None:
        self._writer.write_event(event)


class RawEncoder(Encoder):
    """Writes only the output text, preceded by a terminal resize sequence."""

    def __init__(self, writer: TextIO, append: bool = False) -> None:
        self._writer = writer
        self.append = append

    def start(self, timestamp: int | None, tty_size: tuple[int, int]) -> None:
        if not self.append:
            cols, rows = tty_size
            self._writer.write(f"\x1b[8;{rows};{cols}t")
            self._writer.flush()

    def event(self, event: Event) -> None:
        if event.code == OUTPUT:
            self._writer.write(event.data)
            self._writer.flush()