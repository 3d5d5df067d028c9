# termcast

A Python library for terminal session recordings in the asciicast format:
reading and writing them, transforming their timing, replaying them on a
terminal, running a command in a pseudo-terminal while capturing what passes
through it, and talking to a recording server's HTTP API.

Recordings are written in asciicast v2 (newline-delimited JSON: a header line,
then one `[time, code, data]` line per event). Recordings in the older v1
format (a single JSON document) can be read as well.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Reading recordings

```python
from termcast.reader import open_from_path

recording = open_from_path("demo.cast")
print(recording.header.cols, recording.header.rows, recording.header.title)

for event in recording.events:
    print(event.time, event.code, event.data)
```

`open_from_path` detects the format from the first line and reads events
lazily. `open_stream` does the same for any iterable of text lines, and
`get_duration` returns the time of the last event. Times are integer
microseconds. An `Event` has a one-character `code` (`"o"` output, `"i"`
input, `"r"` resize, `"m"` marker, or any other character) and `data`, which
is text, or a `(cols, rows)` pair for resize events. Malformed input raises
`termcast.events.AsciicastError`.

`termcast.events.limit_idle_time(events, limit)` shortens pauses to at most
`limit` seconds, and `accelerate(events, speed)` divides event times by
`speed`.

## Writing recordings

`termcast.v2.Writer` writes a `Header` and events to a text stream, shifting
event times by an optional offset in microseconds. This is enough to join
recordings, each one continuing where the previous ended:

```python
import sys
from termcast.reader import open_from_path
from termcast.v2 import Writer

offset = 0
for index, path in enumerate(["part1.cast", "part2.cast"]):
    recording = open_from_path(path)
    writer = Writer(sys.stdout, offset)
    if index == 0:
        writer.write_header(recording.header)
    last = 0
    for event in recording.events:
        writer.write_event(event)
        last = event.time
    offset += last
```

`termcast.encoders` has two encoders sharing one interface (`start`,
`event`, `finish`, and `encode` for a whole recording):

- `AsciicastEncoder(writer, append=False, time_offset=0, metadata=None)`
  writes the v2 format; in append mode the header is left out.
- `RawEncoder(writer, append=False)` writes only output text, preceded by
  a terminal resize sequence, so the result can be replayed with `cat`.

```python
from termcast.encoders import RawEncoder
from termcast.reader import open_from_path

with open("demo.raw", "w", encoding="utf-8") as out:
    RawEncoder(out).encode(open_from_path("demo.cast"))
```

## Capturing a command

`termcast.pty.exec_command(command, extra_env, tty, tty_size_override,
recorder)` runs a command in a new pseudo-terminal attached to `tty`
(`termcast.tty.DevTty.open()` for the controlling terminal in raw mode, or
`NullTty.open()` for none) and returns its exit code, or 128 plus the signal
number if it was killed. The `recorder` is a `PtyRecorder` subclass that
receives the initial size, each output and input chunk (returning whether to
pass input on) and size changes:

```python
import time
from termcast.encoders import AsciicastEncoder
from termcast.pty import PtyRecorder, exec_command
from termcast.tty import NullTty


class FileRecorder(PtyRecorder):
    def __init__(self, encoder):
        self.encoder = encoder
        self.t0 = time.monotonic()

    def _now(self):
        return int((time.monotonic() - self.t0) * 1_000_000)

    def start(self, size):
        self.t0 = time.monotonic()
        self.encoder.start_recording(size)

    def output(self, data):
        self.encoder.output(self._now(), data.decode("utf-8", "replace"))

    def input(self, data):
        return True

    def resize(self, size):
        self.encoder.resize(self._now(), size)


with open("demo.cast", "w", encoding="utf-8") as out, NullTty.open() as tty:
    exec_command(["sh", "-c", "echo hello"], {}, tty, None, FileRecorder(AsciicastEncoder(out)))
```

`DevTty.get_theme()` asks the terminal for its colours and returns a
`termcast.theme.Theme`, or `None` if it does not answer in time.

## Replaying

```python
from termcast.player import KeyBindings, play
from termcast.reader import open_from_path
from termcast.tty import DevTty

with DevTty.open() as tty:
    finished = play(open_from_path("demo.cast"), tty, 1.0, None, False, KeyBindings())
```

Output goes to standard output. By default space pauses and resumes, `.`
steps one event while paused, `]` jumps to the next marker and `<ctrl+c>`
quits; `play` returns `False` when quit. The idle time limit falls back to the
one in the recording's header.

## Configuration

`termcast.config.Config.load(server_url=None)` merges, in increasing
precedence, `/etc/termcast/config.toml`, `defaults.toml` and `config.toml` in
the configuration directory, `TERMCAST_*` environment variables (underscores
separate nesting levels, e.g. `TERMCAST_SERVER_URL`), and the `server_url`
argument. `TERMCAST_API_URL` is used when `TERMCAST_SERVER_URL` is unset. The
directory is `$TERMCAST_CONFIG_HOME`, else `$XDG_CONFIG_HOME/termcast`, else
`$HOME/.config/termcast`.

```toml
[server]
url = "https://server.example.com"

[cmd.rec]
input = true
idle_time_limit = 2.0
pause_key = "^p"

[cmd.play]
speed = 1.5

[notifications]
enabled = true
```

`parse_key` turns key definitions (a single character, `^x`, `C-x` or `C+x`)
into the bytes a terminal sends. `Config.get_server_url()` prompts for a URL
and saves it to `defaults.toml` when none is configured;
`Config.get_install_id()` creates a random identifier on first use.

## Server API

`termcast.api` offers `upload_asciicast(path, config)`,
`get_user_stream(stream_id, config)` and `get_auth_url(config)`. Failures
raise `ApiError`.

## Other pieces

- `termcast.cli.build_parser()` / `parse_args(argv)`: an argparse parser for
  the `rec`, `play`, `stream`, `cat`, `convert`, `upload` and `auth`
  subcommands, with `parse_tty_size` and `validate_relay_target`.
- `termcast.alis`: encoders for the binary live-stream messages
  (`encode_init`, `encode_output`, `encode_resize`).
- `termcast.localecheck.check_utf8_locale()`: raises `LocaleError` unless the
  locale's character set is ASCII or UTF-8.
- `termcast.logger`: `info` prints `::: message`; `disable` silences it.

## What it does not do

- There is no `termcast` command installed. The argument parser exists, but
  nothing dispatches the parsed subcommands; use the library functions above.
- There is no ready-made recorder linking a pseudo-terminal session to a file,
  with pause and marker keys; the capture example above is the way to do it.
- Desktop notifications are not sent, even though the configuration reads a
  `[notifications]` section.
- Live streaming is limited to encoding messages: there is no HTTP/WebSocket
  server and no relay client.
- Plain-text (`txt`) output is accepted by the parser's `--format` option but
  has no encoder.