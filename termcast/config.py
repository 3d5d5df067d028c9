"""Layered configuration: files, environment and command-line overrides."""

from __future__ import annotations

import os
import tomllib
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

try:
    import readline
except ImportError:  # not available on every platform
    readline = None

SYSTEM_CONFIG_PATH = Path("/etc/termcast/config.toml")
ENV_PREFIX = "TERMCAST_"
DEFAULT_SERVER_URL = "https://"
INSTALL_ID_FILENAME = "install-id"

_TRUE = {"true", "on", "yes", "1"}
_FALSE = {"false", "off", "no", "0"}


class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


@dataclass
class RecSettings:
    command: str | None = None
    input: bool = False
    env: str | None = None
    idle_time_limit: float | None = None
    prefix_key: str | None = None
    pause_key: str | None = None
    add_marker_key: str | None = None


@dataclass
class PlaySettings:
    speed: float | None = None
    idle_time_limit: float | None = None
    pause_key: str | None = None
    step_key: str | None = None
    next_marker_key: str | None = None


@dataclass
class StreamSettings:
    command: str | None = None
    input: bool = False
    env: str | None = None
    prefix_key: str | None = None
    pause_key: str | None = None


@dataclass
class Notifications:
    enabled: bool = True
    command: str | None = None


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise ConfigError(f"invalid value for `{key}`: expected a boolean, got {value!r}")


def _as_float(value: Any, key: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    raise ConfigError(f"invalid value for `{key}`: expected a number, got {value!r}")


def _as_str(value: Any, key: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise ConfigError(f"invalid value for `{key}`: expected a string, got {value!r}")


def _section(data: Mapping[str, Any], key: str, name: str) -> Mapping[str, Any]:
    value = data.get(key)

    if value is None:
        return {}

    if not isinstance(value, Mapping):
        raise ConfigError(f"invalid value for `{name}`: expected a table")

    return value


def _merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    for key, value in source.items():
        key = key.lower()

        if isinstance(value, Mapping):
            node = target.get(key)
            if not isinstance(node, dict):
                node = target[key] = {}
            _merge(node, value)
        else:
            target[key] = value


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}

    try:
        with path.open("rb") as file:
            return tomllib.load(file)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc


def _env_source(environ: Mapping[str, str]) -> dict[str, Any]:
    result: dict[str, Any] = {}

    for name, value in environ.items():
        if not name.upper().startswith(ENV_PREFIX):
            continue

        parts = name[len(ENV_PREFIX) :].lower().split("_")

        if not all(parts):
            continue

        nested: Any = value
        for part in reversed(parts):
            nested = {part: nested}

        _merge(result, nested)

    return result


def config_home() -> Path:
    """Return the directory holding the user's configuration."""
    if (home := os.environ.get("TERMCAST_CONFIG_HOME")) is not None:
        return Path(home)

    if (xdg := os.environ.get("XDG_CONFIG_HOME")) is not None:
        return Path(xdg) / "termcast"

    if (home := os.environ.get("HOME")) is not None:
        return Path(home) / ".config" / "termcast"

    raise ConfigError("need $HOME or $XDG_CONFIG_HOME or $TERMCAST_CONFIG_HOME")


def parse_server_url(s: str) -> str:
    """Validate a server URL and return it in normalised form."""
    try:
        parts = urlsplit(s.strip())
        parts.port
    except ValueError as exc:
        raise ConfigError(f"invalid server URL: {exc}") from exc

    if not parts.scheme:
        raise ConfigError("invalid server URL: relative URL without a base")

    if not parts.hostname:
        raise ConfigError("server URL is missing a host")

    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", parts.query, parts.fragment))


def parse_key(key: str) -> bytes | None:
    """Turn a key definition into the bytes the terminal sends for it.

    An empty definition yields ``None``, meaning the binding is disabled.
    Accepted forms are a single character, ``^x``, ``C-x`` and ``C+x``.
    """
    match len(key):
        case 0:
            return None
        case 1:
            return key.encode("utf-8")
        case 2:
            caret, letter = key
            if caret == "^" and letter.isascii() and letter.isalpha():
                return bytes([ord(letter.upper()) - 0x40])
        case 3:
            ctrl, sep, letter = key
            if ctrl.upper() == "C" and sep in "+-" and letter.isascii() and letter.isalpha():
                return bytes([ord(letter.upper()) - 0x40])

    raise ConfigError(f"invalid key definition '{key}'")


def _ask_for_server_url() -> str:
    print("No server configured for this CLI.")

    if readline is not None:
        readline.set_pre_input_hook(lambda: (readline.insert_text(DEFAULT_SERVER_URL), readline.redisplay()))

    try:
        url = input("Enter the server URL to use by default: ")
    except EOFError as exc:
        raise ConfigError("no server URL given") from exc
    finally:
        if readline is not None:
            readline.set_pre_input_hook(None)

    print()
    return url or DEFAULT_SERVER_URL


def _save_default_server_url(url: str) -> None:
    path = config_home() / "defaults.toml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f'[server]\nurl = "{url}"\n', encoding="utf-8")


@dataclass
class Config:
    """Effective settings of the command-line tool."""

    server_url: str | None = None
    rec: RecSettings = field(default_factory=RecSettings)
    play: PlaySettings = field(default_factory=PlaySettings)
    stream: StreamSettings = field(default_factory=StreamSettings)
    notifications: Notifications = field(default_factory=Notifications)

    @classmethod
    def load(cls, server_url: str | None = None) -> Config:
        """Merge the system file, user files, environment and ``server_url``.

        Later sources take precedence over earlier ones.
        """
        home = config_home()

        if os.environ.get("TERMCAST_SERVER_URL") is None:
            api_url = os.environ.get("TERMCAST_API_URL")
            if api_url is not None:
                os.environ["TERMCAST_SERVER_URL"] = api_url

        data: dict[str, Any] = {}

        for path in (SYSTEM_CONFIG_PATH, home / "defaults.toml", home / "config.toml"):
            _merge(data, _read_toml(path))

        _merge(data, _env_source(os.environ))

        if server_url is not None:
            _merge(data, {"server": {"url": server_url}})

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Mapping[str, Any]) -> Config:
        server = _section(data, "server", "server")
        cmd = _section(data, "cmd", "cmd")
        rec = _section(cmd, "rec", "cmd.rec")
        play = _section(cmd, "play", "cmd.play")
        stream = _section(cmd, "stream", "cmd.stream")
        notifications = _section(data, "notifications", "notifications")

        return cls(
            server_url=_as_str(server.get("url"), "server.url"),
            rec=RecSettings(
                command=_as_str(rec.get("command"), "cmd.rec.command"),
                input=_as_bool(rec.get("input", False), "cmd.rec.input"),
                env=_as_str(rec.get("env"), "cmd.rec.env"),
                idle_time_limit=_as_float(rec.get("idle_time_limit"), "cmd.rec.idle_time_limit"),
                prefix_key=_as_str(rec.get("prefix_key"), "cmd.rec.prefix_key"),
                pause_key=_as_str(rec.get("pause_key"), "cmd.rec.pause_key"),
                add_marker_key=_as_str(rec.get("add_marker_key"), "cmd.rec.add_marker_key"),
            ),
            play=PlaySettings(
                speed=_as_float(play.get("speed"), "cmd.play.speed"),
                idle_time_limit=_as_float(play.get("idle_time_limit"), "cmd.play.idle_time_limit"),
                pause_key=_as_str(play.get("pause_key"), "cmd.play.pause_key"),
                step_key=_as_str(play.get("step_key"), "cmd.play.step_key"),
                next_marker_key=_as_str(play.get("next_marker_key"), "cmd.play.next_marker_key"),
            ),
            stream=StreamSettings(
                command=_as_str(stream.get("command"), "cmd.stream.command"),
                input=_as_bool(stream.get("input", False), "cmd.stream.input"),
                env=_as_str(stream.get("env"), "cmd.stream.env"),
                prefix_key=_as_str(stream.get("prefix_key"), "cmd.stream.prefix_key"),
                pause_key=_as_str(stream.get("pause_key"), "cmd.stream.pause_key"),
            ),
            notifications=Notifications(
                enabled=_as_bool(notifications.get("enabled", True), "notifications.enabled"),
                command=_as_str(notifications.get("command"), "notifications.command"),
            ),
        )

    def get_server_url(self) -> str:
        """Return the server URL, asking for one and saving it if none is set."""
        if self.server_url is not None:
            return parse_server_url(self.server_url)

        url = parse_server_url(_ask_for_server_url())
        _save_default_server_url(url)
        self.server_url = url
        return url

    def get_install_id(self) -> str:
        """Return this installation's identifier, creating it on first use."""
        path = config_home() / INSTALL_ID_FILENAME

        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            pass

        install_id = str(uuid.uuid4())
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(install_id, encoding="utf-8")
        return install_id