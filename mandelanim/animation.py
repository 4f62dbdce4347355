"""Viewport schedule for a zoom animation: initial hold, zoom, final hold."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, NamedTuple

from mandelanim.errors import ConfigurationError
from mandelanim.geometry import Viewport

PHASES = ("initial", "zoom", "final")


class AnimationFrame(NamedTuple):
    index: int
    phase: str
    viewport: Viewport


def frames_for(seconds: float, fps: int) -> int:
    """Frame count for a phase, rounding half up."""
    return max(0, int(math.floor(seconds * fps + 0.5)))


@dataclass(frozen=True)
class AnimationPlan:
    initial: Viewport
    final: Viewport
    initial_frames: int
    zoom_frames: int
    final_frames: int
    extra_turns: int = 0

    def __post_init__(self) -> None:
        for name in ("initial_frames", "zoom_frames", "final_frames"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0")

    @property
    def net_rotation(self) -> float:
        # Endpoint difference plus the extra full turns.
        return (self.final.rotation - self.initial.rotation) + self.extra_turns * 2.0 * math.pi

    @property
    def total_frames(self) -> int:
        return self.initial_frames + self.zoom_frames + self.final_frames


def plan_from_config(cfg: Dict[str, Any]) -> AnimationPlan:
    fps = int(cfg["frames_per_second"])
    width = int(cfg["image_width"])
    height = int(cfg["image_height"])
    center_x = float(cfg["center_x"])
    center_y = float(cfg["center_y"])
    initial = Viewport(center_x, center_y, float(cfg["initial_scale"]), float(cfg["initial_rotation"]), width, height)
    final = Viewport(center_x, center_y, float(cfg["scale"]), float(cfg["rotation"]), width, height)
    return AnimationPlan(
        initial=initial,
        final=final,
        initial_frames=frames_for(float(cfg["initial_image_time"]), fps),
        zoom_frames=frames_for(float(cfg["zoom_time"]), fps),
        final_frames=frames_for(float(cfg["final_image_time"]), fps),
        extra_turns=int(cfg["zoom_rotation"]),
    )


def _with(viewport: Viewport, scale: float, rotation: float) -> Viewport:
    return Viewport(viewport.center_x, viewport.center_y, scale, rotation, viewport.width, viewport.height)


def iter_frames(plan: AnimationPlan) -> Iterator[AnimationFrame]:
    """
    Yield every frame's viewport in output order.

    During the zoom the scale is multiplied by a constant ratio per frame, so
    the zoom depth grows linearly in time, and the rotation advances linearly
    by ``net_rotation``. The last zoom frame lands exactly on the final scale.

    The zoom never repeats the initial viewport: its first frame is already
    one step in, so with no initial hold the animation opens one step into the
    zoom. Its last frame carries the final scale but the rotation
    ``initial.rotation + net_rotation``, which differs from the final
    viewport's rotation by the extra full turns. With no final hold that is
    the rotation the animation ends on.
    """
    index = 0
    for _ in range(plan.initial_frames):
        yield AnimationFrame(index, "initial", plan.initial)
        index += 1

    n = plan.zoom_frames
    if n > 0:
        ratio = (plan.final.scale / plan.initial.scale) ** (1.0 / n)
        net = plan.net_rotation
        scale = plan.initial.scale
        for i in range(n):
            scale *= ratio
            if i == n - 1:
                scale = plan.final.scale
            rotation = plan.initial.rotation + (i + 1) / n * net
            yield AnimationFrame(index, "zoom", _with(plan.initial, scale, rotation))
            index += 1

    for _ in range(plan.final_frames):
        yield AnimationFrame(index, "final", plan.final)
        index += 1


def viewports(plan: AnimationPlan) -> List[Viewport]:
    return [frame.viewport for frame in iter_frames(plan)]
