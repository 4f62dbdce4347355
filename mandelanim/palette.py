from __future__ import annotations

import re
from typing import Iterable, Tuple, Union

from mandelanim.errors import PaletteFormatError, ResourceError
from mandelanim.util.logging_setup import get_logger

Color = Tuple[int, int, int]
Palette = Tuple[Color, ...]

COMMENT_MARKER = "#"

_INTEGER = re.compile(r"[+-]?[0-9]+", re.ASCII)


def _parse_channel(token: str, line_number: int) -> int:
    if not _INTEGER.fullmatch(token):
        raise PaletteFormatError(f"Invalid color value {token!r}", line_number)
    value = int(token)
    if value < 0 or value > 255:
        raise PaletteFormatError(f"Color value {value} out of range 0-255", line_number)
    return value


def _decode(line: Union[str, bytes], line_number: int) -> str:
    if isinstance(line, str):
        return line
    try:
        return line.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise PaletteFormatError("Line is not valid UTF-8", line_number) from None


def parse_palette(lines: Iterable[Union[str, bytes]], *, comment: str = COMMENT_MARKER) -> Palette:
    """Parse ``R G B`` lines into a palette, skipping comments and blank lines."""
    colors = []
    for line_number, line in enumerate(lines, start=1):
        text = _decode(line, line_number).strip()
        if not text or text.startswith(comment):
            continue
        tokens = text.split()
        if len(tokens) != 3:
            raise PaletteFormatError(f"Expected 3 color values, found {len(tokens)}", line_number)
        colors.append(tuple(_parse_channel(t, line_number) for t in tokens))
    if not colors:
        raise PaletteFormatError("Palette has no colors")
    return tuple(colors)


def load_palette(path: str, *, comment: str = COMMENT_MARKER) -> Palette:
    logger = get_logger()
    try:
        with open(path, "rb") as f:
            palette = parse_palette(f, comment=comment)
    except OSError as e:
        raise ResourceError(f"Cannot read palette file {path}: {e}") from e
    logger.info("Loaded palette %s (%s colors)", path, len(palette))
    return palette
