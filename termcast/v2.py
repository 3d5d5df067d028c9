"""Reading and writing of the newline-delimited JSON recording format, version 2."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Iterator
from dataclasses import replace
from typing import Any, TextIO

from .events import (
    INPUT,
    MARKER,
    OUTPUT,
    RESIZE,
    Asciicast,
    AsciicastError,
    Event,
    Header,
)
from .theme import RGB, Theme, parse_hex_color
from .timefmt import format_time, parse_time

_U8_MAX = 2**8 - 1
_U16_MAX = 2**16 - 1
_U64_MAX = 2**64 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")


def _int_field(obj: dict[str, Any], key: str, maximum: int, required: bool) -> int | None:
    value = obj.get(key)

    if value is None:
        if required:
            raise AsciicastError(f"missing field `{key}`")
        return None

    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise AsciicastError(f"invalid value for `{key}`: {value!r}")

    return value


def _float_field(obj: dict[str, Any], key: str) -> float | None:
    value = obj.get(key)

    if value is None:
        return None

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AsciicastError(f"invalid value for `{key}`: {value!r}")

    return float(value)


def _str_field(obj: dict[str, Any], key: str) -> str | None:
    value = obj.get(key)

    if value is not None and not isinstance(value, str):
        raise AsciicastError(f"invalid value for `{key}`: {value!r}")

    return value


def _env_field(obj: dict[str, Any]) -> dict[str, str] | None:
    value = obj.get("env")

    if value is None:
        return None

    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise AsciicastError(f"invalid value for `env`: {value!r}")

    return dict(value)


def _color(value: Any) -> RGB:
    color = parse_hex_color(value) if isinstance(value, str) else None

    if color is None:
        raise AsciicastError("invalid hex triplet")

    return color


def parse_palette(value: str) -> tuple[RGB, ...]:
    """Parse a colon-separated list of 8 or 16 hex triplets.

    An 8-colour palette is repeated to fill 16 entries; invalid triplets
    are skipped.
    """
    colors = tuple(c for c in map(parse_hex_color, value.split(":")) if c is not None)

    if len(colors) == 8:
        return colors * 2

    if len(colors) != 16:
        raise AsciicastError("expected 8 or 16 hex triplets")

    return colors


def format_palette(palette: Iterable[RGB]) -> str:
    """Join colours into a colon-separated list of hex triplets."""
    return ":".join(color.to_hex() for color in palette)


def _theme_field(obj: dict[str, Any]) -> Theme | None:
    value = obj.get("theme")

    if value is None:
        return None

    if not isinstance(value, dict):
        raise AsciicastError(f"invalid value for `theme`: {value!r}")

    for key in ("fg", "bg", "palette"):
        if key not in value:
            raise AsciicastError(f"missing field `{key}`")

    palette = value["palette"]

    if not isinstance(palette, str):
        raise AsciicastError("expected 8 or 16 hex triplets")

    return Theme(_color(value["fg"]), _color(value["bg"]), parse_palette(palette))


class Parser:
    """Turns the remaining lines of a recording into events."""

    def __init__(self, header: Header) -> None:
        self.header = header

    def parse(self, lines: Iterable[str]) -> Asciicast:
        env = self.header.env
        header = replace(self.header, env=dict(env) if env is not None else None)
        return Asciicast(header=header, events=_parse_lines(lines))


def _strip_line_ending(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def _parse_lines(lines: Iterable[str]) -> Iterator[Event]:
    for line in lines:
        line = _strip_line_ending(line)

        if line:
            yield parse_event(line)


def open_header(header_line: str) -> Parser:
    """Parse the first line of a recording as a version 2 header."""
    try:
        obj = json.loads(header_line)
    except json.JSONDecodeError as exc:
        raise AsciicastError(f"invalid header: {exc}") from exc

    if not isinstance(obj, dict):
        raise AsciicastError("invalid header: expected a JSON object")

    version = _int_field(obj, "version", _U8_MAX, required=True)
    width = _int_field(obj, "width", _U16_MAX, required=True)
    height = _int_field(obj, "height", _U16_MAX, required=True)

    header = Header(
        version=2,
        cols=width,
        rows=height,
        timestamp=_int_field(obj, "timestamp", _U64_MAX, required=False),
        idle_time_limit=_float_field(obj, "idle_time_limit"),
        command=_str_field(obj, "command"),
        title=_str_field(obj, "title"),
        env=_env_field(obj),
        theme=_theme_field(obj),
    )

    if version != 2:
        raise AsciicastError("unsupported asciicast version")

    return Parser(header)


def _parse_u16(text: str, name: str) -> int:
    if not _UNSIGNED.fullmatch(text) or int(text) > _U16_MAX:
        raise AsciicastError(f"invalid {name} value in resize event: {text!r}")
    return int(text)


def parse_event(line: str) -> Event:
    """Parse one ``[time, code, data]`` event line."""
    try:
        raw = json.loads(line)
    except json.JSONDecodeError as exc:
        raise AsciicastError(f"invalid event: {exc}") from exc

    if isinstance(raw, list):
        if len(raw) != 3:
            raise AsciicastError(f"invalid event: expected 3 elements, got {len(raw)}")
        time, code, data = raw
    elif isinstance(raw, dict):
        try:
            time, code, data = raw["time"], raw["code"], raw["data"]
        except KeyError as exc:
            raise AsciicastError(f"missing field `{exc.args[0]}`") from exc
    else:
        raise AsciicastError("invalid event: expected a JSON array")

    micros = parse_time(time)

    if not isinstance(code, str):
        raise AsciicastError(f"invalid event code: {code!r}")

    if not code:
        raise AsciicastError("missing event code")

    if not isinstance(data, str):
        raise AsciicastError(f"invalid event data: {data!r}")

    code = code[0]

    if code == RESIZE:
        cols, sep, rows = data.partition("x")

        if not sep:
            raise AsciicastError("invalid size value in resize event")

        return Event.resize(micros, (_parse_u16(cols, "cols"), _parse_u16(rows, "rows")))

    return Event(micros, code, data)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _header_to_json(header: Header) -> dict[str, Any]:
    obj: dict[str, Any] = {"version": 2, "width": header.cols, "height": header.rows}

    if header.timestamp is not None:
        obj["timestamp"] = header.timestamp

    if header.idle_time_limit is not None:
        obj["idle_time_limit"] = float(header.idle_time_limit)

    if header.command is not None:
        obj["command"] = header.command

    if header.title is not None:
        obj["title"] = header.title

    if header.env:
        obj["env"] = dict(header.env)

    if header.theme is not None:
        obj["theme"] = {
            "fg": header.theme.fg.to_hex(),
            "bg": header.theme.bg.to_hex(),
            "palette": format_palette(header.theme.palette),
        }

    return obj


class Writer:
    """Writes a header and events line by line to a text stream.

    Event times are shifted by ``time_offset`` microseconds.
    """

    def __init__(self, writer: TextIO, time_offset: int = 0) -> None:
        self._writer = writer
        self.time_offset = time_offset

    def write_header(self, header: Header) -> None:
        line = json.dumps(_header_to_json(header), ensure_ascii=False, separators=(",", ":"))
        self._write_line(line)

    def write_event(self, event: Event) -> None:
        self._write_line(self.serialize_event(event))

    def serialize_event(self, event: Event) -> str:
        if isinstance(event.data, tuple):
            cols, rows = event.data
            data = f"{cols}x{rows}"
        else:
            data = event.data

        time = format_time(event.time + self.time_offset).rstrip("0")
        return f"[{time}, {_dumps(event.code)}, {_dumps(data)}]"

    def _write_line(self, line: str) -> None:
        self._writer.write(line + "\n")
        self._writer.flush()


__all__ = [
    "INPUT",
    "MARKER",
    "OUTPUT",
    "Parser",
    "Writer",
    "format_palette",
    "open_header",
    "parse_event",
    "parse_palette",
]