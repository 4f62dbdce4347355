from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from mandelanim.errors import ConfigurationError


@dataclass(frozen=True)
class Viewport:
    """Region of the complex plane shown by one image.

    ``scale`` is plane units per pixel; ``rotation`` is in radians and turns
    the image about its centre.
    """

    center_x: float
    center_y: float
    scale: float
    rotation: float
    width: int
    height: int

    def __post_init__(self) -> None:
        if not self.scale > 0:
            raise ConfigurationError(f"scale must be > 0, got {self.scale}")
        if self.width < 1 or self.height < 1:
            raise ConfigurationError(f"image size must be at least 1x1, got {self.width}x{self.height}")


def pixel_offset(viewport: Viewport, x: float, y: float) -> Tuple[float, float]:
    # Row index grows downwards, the imaginary axis grows upwards.
    a = (x - (viewport.width - 1) / 2) * viewport.scale
    b = ((viewport.height - 1) / 2 - y) * viewport.scale
    return a, b


def rotate_translate(viewport: Viewport, a: float, b: float) -> Tuple[float, float]:
    cos_r = math.cos(viewport.rotation)
    sin_r = math.sin(viewport.rotation)
    return (viewport.center_x + cos_r * a - sin_r * b,
            viewport.center_y + sin_r * a + cos_r * b)


def image_to_plane(viewport: Viewport, x: float, y: float) -> Tuple[float, float]:
    a, b = pixel_offset(viewport, x, y)
    return rotate_translate(viewport, a, b)


def plane_to_image(viewport: Viewport, a: float, b: float) -> Tuple[int, int]:
    rot_a = a - viewport.center_x
    rot_b = b - viewport.center_y
    cos_r = math.cos(viewport.rotation)
    sin_r = math.sin(viewport.rotation)
    da = cos_r * rot_a + sin_r * rot_b
    db = -sin_r * rot_a + cos_r * rot_b
    x = da / viewport.scale + (viewport.width - 1) / 2
    y = -db / viewport.scale + (viewport.height - 1) / 2
    return int(round(x)), int(round(y))


def image_corners(viewport: Viewport) -> List[Tuple[int, int]]:
    right = viewport.width - 1
    bottom = viewport.height - 1
    return [(0, 0), (right, 0), (0, bottom), (right, bottom)]


def corner_mappings(viewport: Viewport) -> List[Tuple[Tuple[int, int], Tuple[float, float]]]:
    return [((x, y), image_to_plane(viewport, x, y)) for x, y in image_corners(viewport)]


def plane_bounds(viewport: Viewport) -> Tuple[float, float, float, float]:
    """Axis-aligned box (min_a, max_a, min_b, max_b) around the image corners."""
    points = [plane for _, plane in corner_mappings(viewport)]
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), max(xs), min(ys), max(ys)
