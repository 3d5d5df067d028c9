"""Terminal colour themes and colour string parsing."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import NamedTuple

_HEX_BYTE = re.compile(r"[0-9a-fA-F]{2}")


class RGB(NamedTuple):
    """An 8-bit-per-channel colour."""

    r: int
    g: int
    b: int

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


@dataclass(frozen=True)
class Theme:
    """Foreground, background and palette colours of a terminal."""

    fg: RGB
    bg: RGB
    palette: Sequence[RGB]

    def __post_init__(self) -> None:
        object.__setattr__(self, "palette", tuple(self.palette))


def _hex_byte(text: str) -> int | None:
    if _HEX_BYTE.fullmatch(text):
        return int(text, 16)
    return None


def parse_color(rgb: str) -> RGB | None:
    """Parse an X11 ``rr../gg../bb..`` colour as sent in OSC replies."""
    parts = rgb.split("/")

    if len(parts) < 3:
        return None

    components = parts[:3]

    if any(len(part) < 2 for part in components):
        return None

    values = [_hex_byte(part[:2]) for part in components]

    if any(value is None for value in values):
        return None

    return RGB(*values)


def parse_hex_color(rgb: str) -> RGB | None:
    """Parse a ``#rrggbb`` hex triplet."""
    if len(rgb) != 7 or not rgb.isascii():
        return None

    values = [_hex_byte(rgb[i : i + 2]) for i in (1, 3, 5)]

    if any(value is None for value in values):
        return None

    return RGB(*values)