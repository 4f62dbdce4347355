import pytest
from PIL import Image

from mandelanim.errors import ConfigurationError, OverlaySpecError
from mandelanim.geometry import Viewport, plane_to_image
from mandelanim.overlay import LINE_COLOR, draw_lines, parse_lines


@pytest.mark.parametrize("text,expected", [
    ("", []),
    ("   ", []),
    (None, []),
    ("0", [0.0]),
    ("-1.5, 0.25,2", [-1.5, 0.25, 2.0]),
])
def test_parse_lines(text, expected):
    assert parse_lines(text) == expected


def test_parse_lines_rejects_non_numbers():
    with pytest.raises(OverlaySpecError, match="x_lines"):
        parse_lines("1.0, abc", key="x_lines")
    assert issubclass(OverlaySpecError, ConfigurationError)


def test_draws_lines_inside_view_only():
    vp = Viewport(0.0, 0.0, 0.1, 0.0, 21, 11)
    img = Image.new("RGB", (21, 11))
    drawn = draw_lines(img, vp, [0.0, 50.0], [0.2])
    assert drawn == 2

    x, _ = plane_to_image(vp, 0.0, 0.0)
    assert all(img.getpixel((x, y)) == LINE_COLOR for y in range(11))
    _, y = plane_to_image(vp, 0.0, 0.2)
    assert all(img.getpixel((px, y)) == LINE_COLOR for px in range(21))
    assert img.getpixel((0, 0)) == (0, 0, 0)


def test_no_lines_leaves_image_untouched():
    vp = Viewport(0.0, 0.0, 0.1, 0.0, 5, 5)
    img = Image.new("RGB", (5, 5), (1, 2, 3))
    assert draw_lines(img, vp, [], []) == 0
    assert img.getpixel((2, 2)) == (1, 2, 3)
