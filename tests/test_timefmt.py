import pytest

from termcast.events import AsciicastError
from termcast.timefmt import format_time, parse_time


@pytest.mark.parametrize(
    "value, expected",
    [
        (1.23, 1_230_000),
        (0.000001, 1),
        (1, 1_000_000),
        (10.5, 10_500_000),
        (2.3, 2_300_000),
        (5.600001, 5_600_001),
    ],
)
def test_parse_time(value, expected):
    assert parse_time(value) == expected


def test_parse_time_truncates_beyond_microseconds():
    assert parse_time(1.0000019) == 1_000_001


def test_parse_time_integral_float_matches_int():
    assert parse_time(7.0) == parse_time(7)


@pytest.mark.parametrize("value", ["1.5", None, True, [1], {"t": 1}])
def test_parse_time_rejects_non_numbers(value):
    with pytest.raises(AsciicastError, match="expected number"):
        parse_time(value)


@pytest.mark.parametrize("value", [-1.5, -1, float("inf"), float("nan")])
def test_parse_time_rejects_invalid_numbers(value):
    with pytest.raises(AsciicastError):
        parse_time(value)


def test_format_time():
    assert format_time(1_000_001) == "1.000001"


@pytest.mark.parametrize("time", [0, 1, 999_999, 1_000_001, 4_000_004, 123_456_789])
def test_format_time_round_trip(time):
    text = format_time(time)

    assert len(text.split(".")[1]) == 6
    assert parse_time(float(text)) == time