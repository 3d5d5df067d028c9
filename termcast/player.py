"""Replaying a recording on the terminal with keyboard control."""

from __future__ import annotations

import select
import sys
import time
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

from .events import MARKER, OUTPUT, Asciicast, Event, accelerate, limit_idle_time


class _InputTty(Protocol):
    def read(self, size: int) -> bytes: ...

    def fileno(self) -> int: ...


@dataclass
class KeyBindings:
    """Keys that control playback; ``None`` disables a binding."""

    quit: bytes | None = b"\x03"
    pause: bytes | None = b" "
    step: bytes | None = b"."
    next_marker: bytes | None = b"]"


def _matches(key: bytes | None, data: bytes) -> bool:
    return key is not None and key == data


def open_recording(
    recording: Asciicast, speed: float, idle_time_limit: float | None
) -> Iterator[Event]:
    """Return the recording's events with idle time limited and speed applied."""
    limit = idle_time_limit
    if limit is None:
        limit = recording.header.idle_time_limit
    if limit is None:
        limit = sys.float_info.max

    return accelerate(limit_idle_time(recording.events, limit), speed)


def _read_input(tty: _InputTty, timeout_us: int) -> bytes | None:
    readable, _, _ = select.select([tty.fileno()], [], [], max(timeout_us, 0) / 1_000_000)

    if not readable:
        return None

    data = bytearray()

    while True:
        try:
            chunk = tty.read(1024)
        except OSError:
            break

        if not chunk:
            break

        data += chunk

    return bytes(data) or None


def play(
    recording: Asciicast,
    tty: _InputTty,
    speed: float,
    idle_time_limit: float | None,
    pause_on_markers: bool,
    keys: KeyBindings,
) -> bool:
    """Replay a recording to standard output.

    Returns ``True`` if playback reached the end, ``False`` if it was quit.
    """
    events = open_recording(recording, speed, idle_time_limit)
    stdout = sys.stdout.buffer
    epoch = time.monotonic()
    pause_elapsed: int | None = None
    next_event = next(events, None)

    def elapsed_us() -> int:
        return int((time.monotonic() - epoch) * 1_000_000)

    while next_event is not None:
        if pause_elapsed is not None:
            data = _read_input(tty, 1_000_000)

            if data is None:
                continue

            if _matches(keys.quit, data):
                stdout.write(b"\r\n")
                stdout.flush()
                return False

            if _matches(keys.pause, data):
                epoch = time.monotonic() - pause_elapsed / 1_000_000
                pause_elapsed = None
            elif _matches(keys.step, data):
                pause_elapsed = next_event.time

                if next_event.code == OUTPUT:
                    stdout.write(next_event.data.encode("utf-8"))
                    stdout.flush()

                next_event = next(events, None)
            elif _matches(keys.next_marker, data):
                while next_event is not None:
                    event = next_event
                    next_event = next(events, None)

                    if event.code == OUTPUT:
                        stdout.write(event.data.encode("utf-8"))
                    elif event.code == MARKER:
                        pause_elapsed = event.time
                        break

                stdout.flush()
        else:
            while next_event is not None:
                delay = next_event.time - elapsed_us()

                if delay > 0:
                    stdout.flush()
                    data = _read_input(tty, delay)

                    if data is not None:
                        if _matches(keys.quit, data):
                            stdout.write(b"\r\n")
                            stdout.flush()
                            return False

                        if _matches(keys.pause, data):
                            pause_elapsed = elapsed_us()
                            break

                        continue

                if next_event.code == OUTPUT:
                    stdout.write(next_event.data.encode("utf-8"))
                elif next_event.code == MARKER and pause_on_markers:
                    pause_elapsed = next_event.time
                    next_event = next(events, None)
                    break

                next_event = next(events, None)

    stdout.flush()
    return True