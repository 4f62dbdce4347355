from __future__ import annotations

import io
import os
from typing import BinaryIO, Union

import numpy as np
from PIL import Image

from mandelanim.errors import ResourceError
from mandelanim.util.logging_setup import get_logger


def to_image(buf: np.ndarray) -> Image.Image:
    return Image.fromarray(buf)


def _write_file(path: str, data: bytes) -> None:
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise ResourceError(f"Cannot write {path}: {e}") from e


def encode_png(img: Union[Image.Image, np.ndarray]) -> bytes:
    if isinstance(img, np.ndarray):
        img = to_image(img)
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


class StreamSink:
    """Concatenates encoded frames onto a binary stream, in call order."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.frames = 0

    def write(self, frame_index: int, data: bytes) -> None:
        try:
            self.stream.write(data)
        except OSError as e:
            raise ResourceError(f"Cannot write frame {frame_index}: {e}") from e
        self.frames += 1

    def close(self) -> None:
        self.stream.flush()


class DirectorySink:
    """Writes one ``frame_NNNNNN.png`` per frame."""

    def __init__(self, frames_dir: str) -> None:
        try:
            os.makedirs(frames_dir, exist_ok=True)
        except OSError as e:
            raise ResourceError(f"Cannot create frames directory {frames_dir}: {e}") from e
        self.frames_dir = frames_dir
        self.frames = 0

    def path_for(self, frame_index: int) -> str:
        return os.path.join(self.frames_dir, f"frame_{frame_index:06d}.png")

    def write(self, frame_index: int, data: bytes) -> None:
        path = self.path_for(frame_index)
        _write_file(path, data)
        self.frames += 1
        get_logger().debug("Saved frame %s -> %s", frame_index, path)

    def close(self) -> None:
        pass


class FileSink:
    """Writes a single encoded image to ``path``; nothing is created until then."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.frames = 0

    def write(self, frame_index: int, data: bytes) -> None:
        _write_file(self.path, data)
        self.frames += 1

    def close(self) -> None:
        pass
