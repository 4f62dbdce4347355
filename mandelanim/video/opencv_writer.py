from __future__ import annotations

import glob
import os

from natsort import natsorted

from mandelanim.errors import ConfigurationError, ResourceError
from mandelanim.util.logging_setup import get_logger


def collect_frames(input_dir: str) -> list:
    if not os.path.isdir(input_dir):
        raise ResourceError(f"Frames directory does not exist: {input_dir}")
    frames = natsorted(p for p in glob.glob(os.path.join(input_dir, "*")) if p.lower().endswith(".png"))
    if not frames:
        raise ResourceError(f"No PNG frames found in {input_dir}")
    return frames


def encode_with_opencv(*, input_dir: str, output_file: str, fps: int) -> int:
    """Encode a directory of PNG frames into an MP4 file. Returns frames written."""
    logger = get_logger()
    if fps <= 0:
        raise ConfigurationError("fps must be positive.")
    try:
        import cv2
    except ImportError as e:
        raise ResourceError(f"OpenCV not installed: {e}") from e

    frames = collect_frames(input_dir)
    first = cv2.imread(frames[0])
    if first is None:
        raise ResourceError(f"Failed to read first frame: {frames[0]}")
    h, w = first.shape[:2]

    fourcc = cv2.VideoWriter_fourcc(*"mp4v")
    out = cv2.VideoWriter(output_file, fourcc, fps, (w, h))
    if not out.isOpened():
        raise ResourceError(f"Failed to open VideoWriter for {output_file}")

    logger.info("Encoding video %s from %s frames (%sx%s @ %sfps)", output_file, len(frames), w, h, fps)
    try:
        for i, path in enumerate(frames):
            img = cv2.imread(path)
            if img is None:
                raise ResourceError(f"Failed to read frame: {path}")
            if img.shape[0] != h or img.shape[1] != w:
                raise ResourceError(f"Frame {path} is {img.shape[1]}x{img.shape[0]}, expected {w}x{h}")
            out.write(img)
            if i % 200 == 0:
                logger.info("Encoded %s/%s frames", i, len(frames))
    finally:
        out.release()
    logger.info("Video written: %s", output_file)
    return len(frames)
