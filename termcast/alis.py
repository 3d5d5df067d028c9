"""Binary messages of the live stream protocol sent over WebSocket."""

from __future__ import annotations

import math
import struct

from .theme import Theme

HEADER = b"ALiS\x01"
_SECOND = 1_000_000.0


def _time(time: int) -> bytes:
    seconds = time / _SECOND

    try:
        return struct.pack("<f", seconds)
    except OverflowError:
        return struct.pack("<f", math.copysign(math.inf, seconds))


def encode_init(
    tty_size: tuple[int, int],
    time: int,
    theme: Theme | None = None,
    init: str | None = None,
) -> bytes:
    """Encode the message that starts a stream with the current screen state."""
    cols, rows = tty_size
    data = (init or "").encode("utf-8")
    parts = [b"\x01", struct.pack("<HH", cols, rows), _time(time)]

    if theme is None:
        parts.append(b"\x00")
    else:
        parts.append(b"\x01")
        parts.append(bytes(theme.fg))
        parts.append(bytes(theme.bg))
        parts.extend(bytes(color) for color in theme.palette)

    parts.append(struct.pack("<I", len(data)))
    parts.append(data)
    return b"".join(parts)


def encode_output(time: int, text: str) -> bytes:
    """Encode a piece of terminal output."""
    data = text.encode("utf-8")
    return b"o" + _time(time) + struct.pack("<I", len(data)) + data


def encode_resize(time: int, tty_size: tuple[int, int]) -> bytes:
    """Encode a terminal resize."""
    cols, rows = tty_size
    return b"r" + _time(time) + struct.pack("<HH", cols, rows)