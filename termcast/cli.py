"""Command-line argument definitions and value parsers."""

from __future__ import annotations

import argparse
import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import urlsplit

VERSION = "0.1.0"
DEFAULT_LISTEN_ADDR = "127.0.0.1:8080"

_U16_MAX = 2**16 - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")


class Format(str, Enum):
    """Output file formats."""

    ASCIICAST = "asciicast"
    RAW = "raw"
    TXT = "txt"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RelayTarget:
    """Where a stream is relayed: a server stream id or a WebSocket URL."""

    stream_id: str | None = None
    ws_producer_url: str | None = None


def _parse_u16(text: str) -> int:
    if not text:
        raise argparse.ArgumentTypeError("cannot parse integer from empty string")

    if not _UNSIGNED.fullmatch(text):
        raise argparse.ArgumentTypeError("invalid digit found in string")

    value = int(text)

    if value > _U16_MAX:
        raise argparse.ArgumentTypeError("number too large to fit in target type")

    return value


def parse_tty_size(s: str) -> tuple[int | None, int | None]:
    """Parse ``COLSxROWS``, where either side may be left empty."""
    cols, sep, rows = s.partition("x")

    if not sep:
        raise argparse.ArgumentTypeError(s)

    if not rows:
        return _parse_u16(cols), None

    if not cols:
        return None, _parse_u16(rows)

    return _parse_u16(cols), _parse_u16(rows)


def validate_relay_target(s: str) -> RelayTarget:
    """Accept either a WebSocket URL or a stream id."""
    s = s.strip()

    try:
        parts = urlsplit(s)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc

    if not parts.scheme:
        return RelayTarget(stream_id=s)

    if parts.scheme.lower() not in ("ws", "wss"):
        raise argparse.ArgumentTypeError("must be a WebSocket URL (ws:// or wss://)")

    if not parts.hostname:
        raise argparse.ArgumentTypeError("empty host")

    return RelayTarget(ws_producer_url=s)


def _parse_socket_addr(s: str) -> tuple[str, int]:
    error = argparse.ArgumentTypeError("invalid socket address syntax")

    try:
        if s.startswith("["):
            host, sep, port = s[1:].partition("]:")
            if not sep:
                raise error
            address: ipaddress.IPv4Address | ipaddress.IPv6Address = ipaddress.IPv6Address(host)
        else:
            host, sep, port = s.rpartition(":")
            if not sep:
                raise error
            address = ipaddress.IPv4Address(host)
    except ValueError as exc:
        raise error from exc

    if not port.isascii() or not port.isdigit() or int(port) > _U16_MAX:
        raise error

    return str(address), int(port)


def _format_arg(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument(
        "-f",
        "--format",
        type=Format,
        choices=list(Format),
        default=None,
        help=help_text,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(prog="termcast", description="Terminal session recorder")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--server-url", default=None, help="server URL")
    parser.add_argument(
        "-q", "--quiet", action="store_true", default=False, help="suppress diagnostic messages"
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--server-url", default=argparse.SUPPRESS, help="server URL")
    common.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=argparse.SUPPRESS,
        help="suppress diagnostic messages",
    )

    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    rec = commands.add_parser("rec", parents=[common], help="Record a terminal session")
    rec.add_argument("filename")
    rec.add_argument("-I", "--input", "--stdin", action="store_true", help="enable input recording")
    mode = rec.add_mutually_exclusive_group()
    mode.add_argument("-a", "--append", action="store_true", help="append to an existing recording")
    mode.add_argument(
        "--overwrite", action="store_true", help="overwrite target file if it already exists"
    )
    _format_arg(rec, "recording file format [default: asciicast]")
    rec.add_argument("--raw", action="store_true", help=argparse.SUPPRESS)
    rec.add_argument("-c", "--command", help="command to record [default: $SHELL]")
    rec.add_argument("--env", help="list of env vars to save [default: TERM,SHELL]")
    rec.add_argument("-t", "--title", help="title of the recording")
    rec.add_argument(
        "-i", "--idle-time-limit", type=float, metavar="SECS", help="limit idle time"
    )
    rec.add_argument("--headless", action="store_true", help="don't use TTY for input/output")
    rec.add_argument(
        "--tty-size", type=parse_tty_size, metavar="COLSxROWS", help="override terminal size"
    )
    rec.add_argument("--cols", type=_parse_u16, help=argparse.SUPPRESS)
    rec.add_argument("--rows", type=_parse_u16, help=argparse.SUPPRESS)

    play = commands.add_parser("play", parents=[common], help="Replay a terminal session")
    play.add_argument("filename", metavar="FILENAME_OR_URL")
    play.add_argument(
        "-i", "--idle-time-limit", type=float, metavar="SECS", help="limit idle time"
    )
    play.add_argument("-s", "--speed", type=float, help="set playback speed")
    play.add_argument("-l", "--loop", dest="loop_", action="store_true", help="loop playback")
    play.add_argument(
        "-m", "--pause-on-markers", action="store_true", help="automatically pause on markers"
    )

    stream = commands.add_parser("stream", parents=[common], help="Stream a terminal session")
    stream.add_argument("-I", "--input", "--stdin", action="store_true", help="enable input capture")
    stream.add_argument("-c", "--command", help="command to stream [default: $SHELL]")
    stream.add_argument(
        "-s",
        "--serve",
        nargs="?",
        const=DEFAULT_LISTEN_ADDR,
        type=_parse_socket_addr,
        metavar="IP:PORT",
        help="serve the stream with the built-in HTTP server",
    )
    stream.add_argument(
        "-r",
        "--relay",
        nargs="?",
        const="",
        type=validate_relay_target,
        metavar="STREAM-ID|WS-URL",
        help="relay the stream via a server",
    )
    stream.add_argument("--headless", action="store_true", help="don't use TTY for input/output")
    stream.add_argument(
        "--tty-size", type=parse_tty_size, metavar="COLSxROWS", help="override terminal size"
    )
    stream.add_argument("--log-file", type=Path, help="log file path")

    cat = commands.add_parser("cat", parents=[common], help="Concatenate multiple recordings")
    cat.add_argument("filename", nargs="+")

    convert = commands.add_parser(
        "convert", parents=[common], help="Convert a recording into another format"
    )
    convert.add_argument("input_filename", metavar="INPUT_FILENAME_OR_URL")
    convert.add_argument("output_filename")
    _format_arg(convert, "output file format [default: asciicast]")
    convert.add_argument(
        "--overwrite", action="store_true", help="overwrite target file if it already exists"
    )

    upload = commands.add_parser("upload", parents=[common], help="Upload a recording to a server")
    upload.add_argument("filename", help="path of the recording to upload")

    commands.add_parser(
        "auth", parents=[common], help="Authenticate this CLI with a server account"
    )

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)