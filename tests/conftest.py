import json

import pytest

from mandelanim.config import normalise_config


@pytest.fixture
def palette_file(tmp_path):
    path = tmp_path / "test.pal"
    path.write_text("# test palette\n10 20 30\n200 100 50\n0 255 0\n", encoding="utf-8")
    return path


@pytest.fixture
def make_config(tmp_path, palette_file):
    def _make(**overrides):
        raw = {
            "run_type": "image",
            "max_iteration": 50,
            "colors_file_path": str(palette_file),
            "image_width": 12,
            "image_height": 9,
            "center_x": -0.5,
            "center_y": 0.0,
            "scale": 0.3,
            "initial_scale": 0.3,
            "frames_per_second": 2,
            "initial_image_time": 1.0,
            "zoom_time": 1.5,
            "final_image_time": 0.5,
        }
        raw.update(overrides)
        return normalise_config(raw)
    return _make


@pytest.fixture
def write_config(tmp_path, palette_file):
    def _write(**values):
        values.setdefault("colors_file_path", str(palette_file))
        path = tmp_path / "config.json"
        path.write_text(json.dumps(values), encoding="utf-8")
        return path
    return _write
