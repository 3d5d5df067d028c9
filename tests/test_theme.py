import pytest

from termcast.theme import RGB, Theme, parse_color, parse_hex_color

COLOR = RGB(0xAA, 0xBB, 0xCC)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("aa11/bb22/cc33", COLOR),
        ("aa11/bb22/cc33\x07", COLOR),
        ("aa11/bb22/cc33\x1b\\", COLOR),
        ("aa11/bb22/cc33..", COLOR),
        ("aa1/bb2/cc3", COLOR),
        ("aa1/bb2/cc3\x07", COLOR),
        ("aa1/bb2/cc3\x1b\\", COLOR),
        ("aa1/bb2/cc3..", COLOR),
        ("aa/bb/cc", COLOR),
        ("aa/bb/cc\x07", COLOR),
        ("aa/bb/cc\x1b\\", COLOR),
        ("aa/bb/cc..", COLOR),
        ("aa11/bb22", None),
        ("xxxx/yyyy/zzzz", None),
        ("xxx/yyy/zzz", None),
        ("xx/yy/zz", None),
        ("foo", None),
        ("", None),
    ],
)
def test_parse_color(text, expected):
    assert parse_color(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("#000102", RGB(0, 1, 2)),
        ("#0064c8", RGB(0, 100, 200)),
        ("#ffffff", RGB(0xFF, 0xFF, 0xFF)),
        ("#241f31", RGB(0x24, 0x1F, 0x31)),
    ],
)
def test_parse_hex_color(text, expected):
    assert parse_hex_color(text) == expected


@pytest.mark.parametrize("text", ["", "#fff", "#0064c", "#0064c80", "#gg0000", "#00żż0"])
def test_parse_hex_color_rejects_invalid(text):
    assert parse_hex_color(text) is None


def test_to_hex():
    assert RGB(0, 1, 2).to_hex() == "#000102"
    assert RGB(0, 100, 200).to_hex() == "#0064c8"


def test_to_hex_round_trip():
    for color in [RGB(0, 0, 0), RGB(10, 11, 12), RGB(150, 151, 152), RGB(255, 255, 255)]:
        assert parse_hex_color(color.to_hex()) == color


def test_theme_palette_becomes_tuple():
    theme = Theme(RGB(0, 0, 0), RGB(255, 255, 255), [RGB(1, 2, 3)])

    assert theme.palette == (RGB(1, 2, 3),)
    assert theme == Theme(RGB(0, 0, 0), RGB(255, 255, 255), (RGB(1, 2, 3),))