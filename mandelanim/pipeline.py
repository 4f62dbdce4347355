from __future__ import annotations

from typing import Any, Dict, List, Optional, TextIO, Tuple

from tqdm import tqdm

from mandelanim.animation import AnimationPlan, iter_frames, plan_from_config
from mandelanim.coloring import ColorMapper, get_color_mapper
from mandelanim.geometry import Viewport, corner_mappings
from mandelanim.overlay import draw_lines, parse_lines
from mandelanim.palette import load_palette
from mandelanim.renderers.cpu_parallel import render_viewport
from mandelanim.util.logging_setup import get_logger
from mandelanim.video.png_stream import encode_png, to_image


def viewport_from_config(cfg: Dict[str, Any]) -> Viewport:
    return Viewport(
        center_x=float(cfg["center_x"]),
        center_y=float(cfg["center_y"]),
        scale=float(cfg["scale"]),
        rotation=float(cfg["rotation"]),
        width=int(cfg["image_width"]),
        height=int(cfg["image_height"]),
    )


def build_color_mapper(cfg: Dict[str, Any]) -> ColorMapper:
    palette = load_palette(str(cfg["colors_file_path"]))
    return get_color_mapper(str(cfg["color_calc"]), palette)


def run_test(cfg: Dict[str, Any], out: TextIO) -> List[Tuple[Tuple[int, int], Tuple[float, float]]]:
    mappings = corner_mappings(viewport_from_config(cfg))
    for (x, y), (a, b) in mappings:
        out.write(f"{x},{y} -> {a:f},{b:f}\n")
    return mappings


def run_image(cfg: Dict[str, Any], sink, *, engine: Optional[Dict[str, Any]] = None) -> bytes:
    logger = get_logger()
    engine = engine or {}

    # Everything that can fail on bad input is checked before rendering.
    viewport = viewport_from_config(cfg)
    x_lines = parse_lines(cfg["x_lines"], key="x_lines")
    y_lines = parse_lines(cfg["y_lines"], key="y_lines")
    color_mapper = build_color_mapper(cfg)

    buf = render_viewport(viewport, color_mapper, int(cfg["max_iteration"]), frame_id="image", **engine)
    img = to_image(buf)
    drawn = draw_lines(img, viewport, x_lines, y_lines)
    if drawn:
        logger.info("Drew %s overlay lines", drawn)

    data = encode_png(img)
    sink.write(0, data)
    sink.close()
    return data


def run_video(
    cfg: Dict[str, Any],
    sink,
    *,
    engine: Optional[Dict[str, Any]] = None,
    progress: Optional[bool] = None,
) -> Dict[str, Any]:
    """
    Render every frame of the zoom in order and hand each PNG to ``sink``.

    Consecutive frames with an identical viewport (the hold phases) reuse the
    previous encoding instead of rendering again.
    """
    logger = get_logger()
    engine = engine or {}

    plan: AnimationPlan = plan_from_config(cfg)
    color_mapper = build_color_mapper(cfg)
    max_iteration = int(cfg["max_iteration"])

    logger.info("Video start frames=%s (initial=%s zoom=%s final=%s) size=%sx%s scale=%s..%s turns=%s",
                plan.total_frames, plan.initial_frames, plan.zoom_frames, plan.final_frames,
                plan.initial.width, plan.initial.height, plan.initial.scale, plan.final.scale, plan.extra_turns)

    last_viewport: Optional[Viewport] = None
    last_png: Optional[bytes] = None
    rendered = 0
    disable = None if progress is None else not progress
    for frame in tqdm(iter_frames(plan), total=plan.total_frames, unit="frame", disable=disable):
        if frame.viewport != last_viewport or last_png is None:
            buf = render_viewport(frame.viewport, color_mapper, max_iteration,
                                  frame_id=f"{frame.index:06d}", **engine)
            last_png = encode_png(buf)
            last_viewport = frame.viewport
            rendered += 1
        sink.write(frame.index, last_png)
    sink.close()

    logger.info("Video complete frames=%s rendered=%s", plan.total_frames, rendered)
    return {"total_frames": plan.total_frames, "rendered_frames": rendered}
