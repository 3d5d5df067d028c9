"""Terminals that a recorded session talks to: the controlling TTY or nothing."""

from __future__ import annotations

import fcntl
import os
import re
import select
import struct
import termios
from typing import NamedTuple

from .theme import Theme, parse_color

COLORS_QUERY = b"\x1b]10;?\x07\x1b]11;?\x07" + b"".join(
    b"\x1b]4;%d;?\x07" % index for index in range(16)
)

_THEME_REPLIES = 18
_THEME_TIMEOUT = 0.1
_DEFAULT_COLS = 80
_DEFAULT_ROWS = 24


class TtySize(NamedTuple):
    """Terminal size in character cells."""

    cols: int
    rows: int


def _raw_attrs(attrs: list) -> list:
    """Return a copy of terminal attributes switched to raw mode."""
    iflag, oflag, cflag, lflag, ispeed, ospeed, cc = attrs
    iflag &= ~(
        termios.IGNBRK
        | termios.BRKINT
        | termios.PARMRK
        | termios.ISTRIP
        | termios.INLCR
        | termios.IGNCR
        | termios.ICRNL
        | termios.IXON
    )
    oflag &= ~termios.OPOST
    lflag &= ~(termios.ECHO | termios.ECHONL | termios.ICANON | termios.ISIG | termios.IEXTEN)
    cflag &= ~(termios.CSIZE | termios.PARENB)
    cflag |= termios.CS8
    cc = list(cc)
    cc[termios.VMIN] = 1
    cc[termios.VTIME] = 0
    return [iflag, oflag, cflag, lflag, ispeed, ospeed, cc]


def _parse_theme(response: str) -> Theme | None:
    starts = [match.end() for match in re.finditer("rgb:", response)]

    if len(starts) < _THEME_REPLIES:
        return None

    colors = [parse_color(response[start:]) for start in starts[:_THEME_REPLIES]]

    if any(color is None for color in colors):
        return None

    return Theme(fg=colors[0], bg=colors[1], palette=colors[2:])


class DevTty:
    """A terminal device in raw mode.

    ``saved_attrs``, when given, are restored on :meth:`close`.
    """

    def __init__(self, fd: int, saved_attrs: list | None = None) -> None:
        self._fd = fd
        self._saved_attrs = saved_attrs
        self._closed = False

    @classmethod
    def open(cls) -> DevTty:
        """Open the controlling terminal, switching it to non-blocking raw mode."""
        fd = os.open("/dev/tty", os.O_RDWR)

        try:
            saved = termios.tcgetattr(fd)
            termios.tcsetattr(fd, termios.TCSANOW, _raw_attrs(saved))
            os.set_blocking(fd, False)
        except BaseException:
            os.close(fd)
            raise

        return cls(fd, saved)

    def get_size(self) -> TtySize:
        try:
            packed = fcntl.ioctl(self._fd, termios.TIOCGWINSZ, bytes(8))
            rows, cols, _, _ = struct.unpack("HHHH", packed)
        except OSError:
            rows, cols = _DEFAULT_ROWS, _DEFAULT_COLS

        return TtySize(cols, rows)

    def get_theme(self) -> Theme | None:
        """Ask the terminal for its colours; ``None`` if it doesn't answer in time."""
        query = COLORS_QUERY
        response = bytearray()
        replies = 0

        while True:
            wanted_write = [self._fd] if query else []

            try:
                readable, writable, _ = select.select(
                    [self._fd], wanted_write, [], _THEME_TIMEOUT
                )
            except OSError:
                return None

            if not readable and not writable:
                return None

            if readable:
                try:
                    chunk = os.read(self._fd, 1024)
                except OSError:
                    return None

                if not chunk:
                    return None

                response += chunk
                replies += sum(1 for byte in chunk if byte in (0x07, 0x5C))

                if replies == _THEME_REPLIES:
                    break

            if writable:
                try:
                    written = os.write(self._fd, query)
                except OSError:
                    return None

                query = query[written:]

        return _parse_theme(response.decode("utf-8", errors="replace"))

    def read(self, size: int) -> bytes:
        return os.read(self._fd, size)

    def write(self, data: bytes) -> int:
        return os.write(self._fd, data)

    def fileno(self) -> int:
        return self._fd

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True

        if self._saved_attrs is not None:
            try:
                termios.tcsetattr(self._fd, termios.TCSANOW, self._saved_attrs)
            except termios.error:
                pass

        os.close(self._fd)

    def __enter__(self) -> DevTty:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class NullTty:
    """A stand-in terminal that swallows output and never has input."""

    def __init__(self, rx: int, tx: int) -> None:
        self._rx = rx
        self._tx = tx
        self._theme: Theme | None = None
        self._closed = False

    @classmethod
    def open(cls) -> NullTty:
        rx, tx = os.pipe()
        return cls(rx, tx)

    def get_size(self) -> TtySize:
        return TtySize(_DEFAULT_COLS, _DEFAULT_ROWS)

    def get_theme(self) -> Theme | None:
        """A null terminal has no colours to report."""
        return self._theme

    def read(self, size: int) -> bytes:
        if self._closed:
            raise ValueError("I/O operation on closed NullTty")

        raise RuntimeError(f"read attempt of {size} bytes from NullTty")

    def write(self, data: bytes) -> int:
        return len(data)

    def fileno(self) -> int:
        return self._tx

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        os.close(self._tx)
        os.close(self._rx)

    def __enter__(self) -> NullTty:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()