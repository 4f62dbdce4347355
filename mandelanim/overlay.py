from __future__ import annotations

from typing import List, Sequence

from PIL import Image, ImageDraw

from mandelanim.errors import OverlaySpecError
from mandelanim.geometry import Viewport, plane_bounds, plane_to_image

LINE_COLOR = (255, 255, 255)


def parse_lines(text: str, *, key: str = "lines") -> List[float]:
    """Parse a comma-separated list of plane coordinates; empty means none."""
    text = (text or "").strip()
    if not text:
        return []
    values = []
    for item in text.split(","):
        try:
            values.append(float(item.strip()))
        except ValueError:
            raise OverlaySpecError(f"{key}: {item.strip()!r} is not a number") from None
    return values


def draw_lines(img: Image.Image, viewport: Viewport, x_lines: Sequence[float], y_lines: Sequence[float]) -> int:
    """Draw gridlines at constant real / imaginary values. Returns lines drawn."""
    if not x_lines and not y_lines:
        return 0
    min_a, max_a, min_b, max_b = plane_bounds(viewport)
    draw = ImageDraw.Draw(img)
    segments = []
    for a in x_lines:
        if min_a <= a <= max_a:
            segments.append(((a, min_b), (a, max_b)))
    for b in y_lines:
        if min_b <= b <= max_b:
            segments.append(((min_a, b), (max_a, b)))
    for (a1, b1), (a2, b2) in segments:
        start = plane_to_image(viewport, a1, b1)
        end = plane_to_image(viewport, a2, b2)
        draw.line([start, end], fill=LINE_COLOR, width=1)
    return len(segments)
