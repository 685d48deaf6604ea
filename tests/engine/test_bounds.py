from __future__ import annotations

import pytest

from stackview.engine.bounds import Bounds, format_bounds, parse_bounds


pytestmark = pytest.mark.engine


@pytest.mark.parametrize(
    "text, expected",
    [
        ("[0,0][1080,2400]", (0, 0, 1080, 2400)),
        ("[-12,-3][40,-1]", (-12, -3, 40, -1)),
        ("prefix [5,6][7,8] suffix", (5, 6, 7, 8)),
        ("[1,2][3,4][9,9][9,9]", (1, 2, 3, 4)),
    ],
)
def test_parse_bounds_recovers_edges(text, expected):
    b = parse_bounds(text)
    assert b is not None
    assert (b.left, b.top, b.right, b.bottom) == expected


@pytest.mark.parametrize("text", ["", "[0,0]", "[\u0661,0][5,5]", "[0,0][\uff15,5]", "[0 ,0][1,1]", "[a,b][c,d]", "[1.5,0][2,2]", None, 42, ["[0,0][1,1]"]])
def test_parse_bounds_rejects_malformed(text):
    assert parse_bounds(text) is None


def test_inverted_rectangle_is_kept():
    b = parse_bounds("[100,100][50,80]")
    assert b == Bounds(100, 100, 50, 80)
    assert b.width == -50
    assert b.height == -20
    assert b.area == 1000


def test_format_bounds_matches_source_grammar():
    b = Bounds(-2, 2, 30, 40)
    assert format_bounds(b) == "[-2,2][30,40]"
    assert parse_bounds(format_bounds(b)) == b
    assert b.center == (14.0, 21.0)
