import sys

import pytest

from termcast.events import (
    INPUT,
    MARKER,
    OUTPUT,
    RESIZE,
    Event,
    accelerate,
    limit_idle_time,
)


def _outputs(events):
    return [(e.time, e.data) for e in events if e.code == OUTPUT]


def _exploding_events():
    yield Event.output(100, "a")
    raise RuntimeError("boom")


def test_accelerate():
    events = [Event.output(t, s) for t, s in [(0, "foo"), (20, "bar"), (50, "baz")]]

    output = _outputs(accelerate(iter(events), 2.0))

    assert output[0] == (0, "foo")
    assert output[1] == (10, "bar")
    assert output[2] == (25, "baz")


def test_limit_idle_time():
    events = [
        Event.output(t, s)
        for t, s in [
            (0, "foo"),
            (1_000_000, "bar"),
            (3_500_000, "baz"),
            (4_000_000, "qux"),
            (7_500_000, "quux"),
        ]
    ]

    output = _outputs(limit_idle_time(iter(events), 2.0))

    assert output[0] == (0, "foo")
    assert output[1] == (1_000_000, "bar")
    assert output[2] == (3_000_000, "baz")
    assert output[3] == (3_500_000, "qux")
    assert output[4] == (5_500_000, "quux")


def test_limit_idle_time_with_max_float_keeps_times():
    events = [Event.output(t, "x") for t in (0, 1_000_000, 90_000_000)]

    result = list(limit_idle_time(events, sys.float_info.max))

    assert [e.time for e in result] == [0, 1_000_000, 90_000_000]


def test_transformations_keep_event_payload():
    events = [
        Event.input(1_000_000, " "),
        Event.resize(5_000_000, (100, 40)),
        Event.marker(9_000_000, "chapter"),
    ]

    result = list(accelerate(limit_idle_time(events, 1.0), 1.0))

    assert [(e.code, e.data) for e in result] == [
        (INPUT, " "),
        (RESIZE, (100, 40)),
        (MARKER, "chapter"),
    ]
    assert [e.time for e in result] == [1_000_000, 2_000_000, 3_000_000]


def test_event_constructors():
    assert Event.output(1, "a") == Event(1, OUTPUT, "a")
    assert Event.input(2, "b") == Event(2, INPUT, "b")
    assert Event.resize(3, (80, 24)) == Event(3, RESIZE, (80, 24))
    assert Event.marker(4, "m") == Event(4, MARKER, "m")


def test_accelerate_is_lazy():
    stream = accelerate(_exploding_events(), 4.0)

    assert next(stream).time == 25

    with pytest.raises(RuntimeError):
        next(stream)