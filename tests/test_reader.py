import io
import json

import pytest

from termcast.events import AsciicastError, Event
from termcast.reader import get_duration, open_from_path, open_stream
from termcast.theme import RGB

PALETTE = "#241f31:#c01c28:#2ec27e:#f5c211:#1e78e4:#9841bb:#0ab9dc:#c0bfbc"


@pytest.fixture
def casts(tmp_path):
    minimal_json = tmp_path / "minimal.json"
    minimal_json.write_text(
        json.dumps({"version": 1, "width": 100, "height": 50, "stdout": [[1.23, "hello"]]}),
        encoding="utf-8",
    )

    full_json = tmp_path / "full.json"
    full_json.write_text(
        json.dumps(
            {
                "version": 1,
                "width": 100,
                "height": 50,
                "duration": 10.5,
                "command": "/bin/bash",
                "title": None,
                "env": {"TERM": "xterm-256color", "SHELL": "/bin/bash"},
                "stdout": [[0.000001, "ż"], [1.0, "ółć"], [10.5, "\r\n"]],
            },
            indent=2,
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )

    minimal_cast = tmp_path / "minimal.cast"
    minimal_cast.write_text(
        json.dumps({"version": 2, "width": 100, "height": 50})
        + "\n"
        + json.dumps([1.23, "o", "hello"])
        + "\n",
        encoding="utf-8",
    )

    header = {
        "version": 2,
        "width": 100,
        "height": 50,
        "theme": {"fg": "#000000", "bg": "#ffffff", "palette": PALETTE},
    }
    events = [
        [0.000001, "o", "ż"],
        [1.0, "o", "ółć"],
        [2.3, "i", "\n"],
        [5.600001, "r", "80x40"],
        [10.5, "o", "\r\n"],
    ]
    full_cast = tmp_path / "full.cast"
    full_cast.write_text(
        "\n".join(json.dumps(item, ensure_ascii=False) for item in [header, *events]) + "\n",
        encoding="utf-8",
    )

    return tmp_path


def test_open_v1_minimal(casts):
    recording = open_from_path(casts / "minimal.json")
    events = list(recording.events)

    assert recording.header.version == 1
    assert (recording.header.cols, recording.header.rows) == (100, 50)
    assert recording.header.theme is None
    assert events[0] == Event.output(1230000, "hello")


def test_open_v1_full(casts):
    recording = open_from_path(casts / "full.json")
    events = list(recording.events)

    assert recording.header.version == 1
    assert (recording.header.cols, recording.header.rows) == (100, 50)
    assert events[0] == Event.output(1, "ż")
    assert events[1] == Event.output(1000000, "ółć")
    assert events[2] == Event.output(10500000, "\r\n")


def test_open_v2_minimal(casts):
    recording = open_from_path(casts / "minimal.cast")
    events = list(recording.events)

    assert (recording.header.cols, recording.header.rows) == (100, 50)
    assert recording.header.theme is None
    assert events[0] == Event.output(1230000, "hello")


def test_open_v2_full(casts):
    recording = open_from_path(casts / "full.cast")
    events = list(recording.events)[:5]
    theme = recording.header.theme

    assert (recording.header.cols, recording.header.rows) == (100, 50)
    assert theme.fg == RGB(0, 0, 0)
    assert theme.bg == RGB(0xFF, 0xFF, 0xFF)
    assert theme.palette[0] == RGB(0x24, 0x1F, 0x31)

    assert events[0] == Event.output(1, "ż")
    assert events[1] == Event.output(1_000_000, "ółć")
    assert events[2] == Event.input(2_300_000, "\n")
    assert events[3] == Event.resize(5_600_001, (80, 40))
    assert events[4] == Event.output(10_500_000, "\r\n")


def test_open_stream_from_text():
    text = json.dumps({"version": 2, "width": 80, "height": 24}) + "\n\n" + json.dumps([0.5, "m", "x"]) + "\n"
    recording = open_stream(io.StringIO(text))

    assert recording.header.version == 2
    assert list(recording.events) == [Event.marker(500000, "x")]


def test_open_stream_empty():
    with pytest.raises(AsciicastError, match="empty file"):
        open_stream(io.StringIO(""))


def test_open_from_path_empty_file(tmp_path):
    path = tmp_path / "empty.cast"
    path.write_text("", encoding="utf-8")

    with pytest.raises(AsciicastError, match="^can't open asciicast file: empty file"):
        open_from_path(path)


def test_open_from_path_missing_file(tmp_path):
    with pytest.raises(AsciicastError, match="^can't open asciicast file"):
        open_from_path(tmp_path / "nope.cast")


def test_open_from_path_invalid_utf8(tmp_path):
    path = tmp_path / "bad.cast"
    path.write_bytes(b"\xff\xfe\xfd\n")

    with pytest.raises(AsciicastError):
        open_from_path(path)


def test_open_from_path_garbage(tmp_path):
    path = tmp_path / "garbage.cast"
    path.write_text("hello world\n", encoding="utf-8")

    with pytest.raises(AsciicastError, match="^can't open asciicast file"):
        open_from_path(path)


def test_get_duration(casts):
    assert get_duration(casts / "minimal.cast") == 1230000
    assert get_duration(casts / "full.cast") == 10_500_000
    assert get_duration(casts / "full.json") == 10500000


def test_get_duration_without_events(tmp_path):
    path = tmp_path / "header.cast"
    path.write_text(json.dumps({"version": 2, "width": 80, "height": 24}) + "\n", encoding="utf-8")

    assert get_duration(path) == 0