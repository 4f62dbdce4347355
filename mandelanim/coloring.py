from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict

from mandelanim.errors import ConfigurationError
from mandelanim.palette import Color, Palette

BLACK: Color = (0, 0, 0)


@dataclass(frozen=True)
class SmoothColorMapper:
    """
    Continuous colouring: the smooth escape value walks a cyclic palette,
    blending linearly between neighbouring entries. Points in the set are black.
    """

    palette: Palette

    def __call__(self, in_set: bool, iteration: int, smooth: float) -> Color:
        if in_set:
            return BLACK
        n = len(self.palette)
        i = int(math.floor(smooth))
        s = smooth - i
        c1 = self.palette[(i + 1) % n]
        c2 = self.palette[i % n]
        return (
            int(c1[0] * s + c2[0] * (1.0 - s)),
            int(c1[1] * s + c2[1] * (1.0 - s)),
            int(c1[2] * s + c2[2] * (1.0 - s)),
        )


ColorMapper = Callable[[bool, int, float], Color]

COLOR_MAPPERS: Dict[str, Callable[[Palette], ColorMapper]] = {
    "smooth": SmoothColorMapper,
}


def get_color_mapper(name: str, palette: Palette) -> ColorMapper:
    try:
        factory = COLOR_MAPPERS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown color_calc {name!r}; expected one of: {', '.join(sorted(COLOR_MAPPERS))}"
        ) from None
    if not palette:
        raise ConfigurationError("Palette must contain at least one color.")
    return factory(tuple(palette))
