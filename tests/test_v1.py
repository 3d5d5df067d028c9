import json

import pytest

from termcast.events import AsciicastError, Event
from termcast.v1 import load


def _document(**overrides):
    doc = {
        "version": 1,
        "width": 100,
        "height": 50,
        "duration": 10.5,
        "command": "/bin/bash",
        "title": None,
        "env": {"TERM": "xterm-256color", "SHELL": "/bin/bash"},
        "stdout": [[0.000001, "ż"], [1.0, "ółć"], [10.5, "\r\n"]],
    }
    doc.update(overrides)
    return json.dumps(doc)


def test_load_minimal():
    recording = load(json.dumps({"version": 1, "width": 100, "height": 50, "stdout": [[1.23, "hello"]]}))
    events = list(recording.events)

    assert recording.header.version == 1
    assert (recording.header.cols, recording.header.rows) == (100, 50)
    assert recording.header.theme is None
    assert events == [Event.output(1230000, "hello")]


def test_load_full():
    recording = load(_document())
    events = list(recording.events)

    assert recording.header.command == "/bin/bash"
    assert recording.header.title is None
    assert recording.header.env == {"TERM": "xterm-256color", "SHELL": "/bin/bash"}
    assert [e.time for e in events] == [1, 1000000, 10500000]
    assert [e.data for e in events] == ["ż", "ółć", "\r\n"]
    assert all(e.code == "o" for e in events)


def test_load_accepts_object_events():
    recording = load(_document(stdout=[{"time": 1.23, "data": "hello"}]))

    assert list(recording.events) == [Event.output(1230000, "hello")]


def test_load_rejects_other_version():
    with pytest.raises(AsciicastError, match="unsupported asciicast version"):
        load(_document(version=2))


def test_load_requires_stdout():
    doc = json.loads(_document())
    del doc["stdout"]

    with pytest.raises(AsciicastError, match="stdout"):
        load(json.dumps(doc))


def test_load_rejects_invalid_json():
    with pytest.raises(AsciicastError):
        load("{not json")


def test_load_rejects_bad_event():
    with pytest.raises(AsciicastError):
        load(_document(stdout=[["soon", "hello"]]))