"""Loading of the single-document JSON recording format, version 1."""

from __future__ import annotations

import json
from typing import Any

from .events import Asciicast, AsciicastError, Event, Header
from .timefmt import parse_time

_U8_MAX = 2**8 - 1
_U16_MAX = 2**16 - 1


def _uint(obj: dict[str, Any], key: str, maximum: int) -> int:
    if key not in obj:
        raise AsciicastError(f"missing field `{key}`")

    value = obj[key]

    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise AsciicastError(f"invalid value for `{key}`: {value!r}")

    return value


def _optional_str(obj: dict[str, Any], key: str) -> str | None:
    value = obj.get(key)

    if value is not None and not isinstance(value, str):
        raise AsciicastError(f"invalid value for `{key}`: {value!r}")

    return value


def _env(obj: dict[str, Any]) -> dict[str, str] | None:
    value = obj.get("env")

    if value is None:
        return None

    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise AsciicastError(f"invalid value for `env`: {value!r}")

    return dict(value)


def _output_event(item: Any) -> Event:
    if isinstance(item, list):
        if len(item) != 2:
            raise AsciicastError(f"invalid stdout entry: expected 2 elements, got {len(item)}")
        time, data = item
    elif isinstance(item, dict):
        try:
            time, data = item["time"], item["data"]
        except KeyError as exc:
            raise AsciicastError(f"missing field `{exc.args[0]}`") from exc
    else:
        raise AsciicastError(f"invalid stdout entry: {item!r}")

    micros = parse_time(time)

    if not isinstance(data, str):
        raise AsciicastError(f"invalid stdout data: {data!r}")

    return Event.output(micros, data)


def load(json_text: str) -> Asciicast:
    """Parse a complete version 1 recording document."""
    try:
        obj = json.loads(json_text)
    except json.JSONDecodeError as exc:
        raise AsciicastError(f"invalid recording: {exc}") from exc

    if not isinstance(obj, dict):
        raise AsciicastError("invalid recording: expected a JSON object")

    version = _uint(obj, "version", _U8_MAX)
    width = _uint(obj, "width", _U16_MAX)
    height = _uint(obj, "height", _U16_MAX)
    command = _optional_str(obj, "command")
    title = _optional_str(obj, "title")
    env = _env(obj)

    if "stdout" not in obj:
        raise AsciicastError("missing field `stdout`")

    stdout = obj["stdout"]

    if not isinstance(stdout, list):
        raise AsciicastError(f"invalid value for `stdout`: {stdout!r}")

    events = [_output_event(item) for item in stdout]

    if version != 1:
        raise AsciicastError("unsupported asciicast version")

    header = Header(
        version=1,
        cols=width,
        rows=height,
        command=command,
        title=title,
        env=env,
    )

    return Asciicast(header=header, events=iter(events))