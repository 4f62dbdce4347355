import io

import numpy as np
import pytest
from PIL import Image

from mandelanim.errors import ConfigurationError, OverlaySpecError, PaletteFormatError
from mandelanim.geometry import plane_to_image
from mandelanim.pipeline import run_image, run_test, run_video, viewport_from_config
from mandelanim.video.png_stream import DirectorySink, StreamSink

ENGINE = {"workers": 2, "backend": "thread"}


class ListSink:
    def __init__(self):
        self.frames = []
        self.closed = False

    def write(self, frame_index, data):
        self.frames.append((frame_index, data))

    def close(self):
        self.closed = True


def _decode(data):
    return Image.open(io.BytesIO(data)).convert("RGB")


def test_run_test_prints_corner_mappings(make_config):
    cfg = make_config(run_type="test", image_width=5, image_height=3, center_x=0.0, scale=0.5)
    out = io.StringIO()
    run_test(cfg, out)
    assert out.getvalue().splitlines() == [
        "0,0 -> -1.000000,0.500000",
        "4,0 -> 1.000000,0.500000",
        "0,2 -> -1.000000,-0.500000",
        "4,2 -> 1.000000,-0.500000",
    ]


def test_run_image_writes_png(make_config):
    cfg = make_config()
    stream = io.BytesIO()
    data = run_image(cfg, StreamSink(stream), engine=ENGINE)
    assert stream.getvalue() == data
    img = _decode(data)
    assert img.size == (12, 9)


def test_run_image_draws_overlay(make_config):
    cfg = make_config(x_lines="-0.5", y_lines="")
    sink = ListSink()
    run_image(cfg, sink, engine=ENGINE)
    img = _decode(sink.frames[0][1])
    x, _ = plane_to_image(viewport_from_config(cfg), -0.5, 0.0)
    assert all(img.getpixel((x, y)) == (255, 255, 255) for y in range(9))
    assert sink.closed


def test_run_image_validates_before_rendering(make_config, tmp_path):
    with pytest.raises(OverlaySpecError):
        run_image(make_config(y_lines="0.1, oops"), ListSink(), engine=ENGINE)

    bad = tmp_path / "bad.pal"
    bad.write_text("1 2 3\n4 5\n", encoding="utf-8")
    sink = ListSink()
    with pytest.raises(PaletteFormatError):
        run_image(make_config(colors_file_path=str(bad)), sink, engine=ENGINE)
    assert sink.frames == []

    with pytest.raises(ConfigurationError):
        run_image(make_config(color_calc="histogram"), ListSink(), engine=ENGINE)


def test_run_video_emits_every_frame_in_order(make_config):
    # fps 2: 2 initial + 3 zoom + 1 final frames
    cfg = make_config(run_type="video", scale=0.01, initial_scale=0.3)
    sink = ListSink()
    summary = run_video(cfg, sink, engine=ENGINE, progress=False)

    assert summary == {"total_frames": 6, "rendered_frames": 4}
    assert [i for i, _ in sink.frames] == list(range(6))
    frames = [np.asarray(_decode(data)) for _, data in sink.frames]
    assert all(f.shape == (9, 12, 3) for f in frames)
    assert sink.frames[0][1] == sink.frames[1][1]
    assert sink.frames[4][1] == sink.frames[5][1]
    assert not np.array_equal(frames[1], frames[2])


def test_run_video_to_stream_concatenates_pngs(make_config):
    cfg = make_config(run_type="video", frames_per_second=1, initial_image_time=1.0,
                      zoom_time=1.0, final_image_time=1.0, scale=0.1)
    stream = io.BytesIO()
    run_video(cfg, StreamSink(stream), engine=ENGINE, progress=False)
    assert stream.getvalue().count(b"\x89PNG\r\n\x1a\n") == 3


def test_run_video_to_directory(make_config, tmp_path):
    cfg = make_config(run_type="video", initial_image_time=0.5, zoom_time=0.0, final_image_time=0.5)
    frames_dir = tmp_path / "frames"
    run_video(cfg, DirectorySink(str(frames_dir)), engine=ENGINE, progress=False)
    assert sorted(p.name for p in frames_dir.iterdir()) == ["frame_000000.png", "frame_000001.png"]
