import json

import pytest

from mandelanim.config import DEFAULTS, load_config, normalise_config
from mandelanim.errors import ConfigurationError, ResourceError


def test_defaults_match_documented_values():
    cfg = normalise_config({})
    assert cfg == DEFAULTS
    assert cfg["max_iteration"] == 1000
    assert cfg["color_calc"] == "smooth"
    assert (cfg["image_width"], cfg["image_height"]) == (1920, 1080)


def test_load_json_file(tmp_path):
    path = tmp_path / "c.json"
    path.write_text(json.dumps({"run_type": "video", "scale": 1e-4}), encoding="utf-8")
    cfg = load_config(str(path), environ={})
    assert cfg == {"run_type": "video", "scale": 1e-4}


def test_environment_overrides_file_values(tmp_path):
    path = tmp_path / "c.json"
    path.write_text(json.dumps({"max_iteration": 10, "image_width": 5}), encoding="utf-8")
    env = {"max_iteration": "250", "center_x": "-0.75", "HOME": "/root"}
    cfg = normalise_config(load_config(str(path), environ=env))
    assert cfg["max_iteration"] == 250
    assert cfg["center_x"] == -0.75
    assert cfg["image_width"] == 5
    assert "HOME" not in cfg


def test_no_path_gives_environment_only():
    assert load_config(None, environ={"run_type": "test"}) == {"run_type": "test"}


def test_coerces_numeric_strings():
    cfg = normalise_config({"image_width": "64", "scale": "0.5", "zoom_rotation": 3.0})
    assert cfg["image_width"] == 64
    assert cfg["scale"] == 0.5
    assert cfg["zoom_rotation"] == 3


@pytest.mark.parametrize("raw", [
    {"run_type": "movie"},
    {"max_iteration": "many"},
    {"max_iteration": -1},
    {"image_width": 0},
    {"image_height": -5},
    {"scale": 0},
    {"initial_scale": -1.0},
    {"frames_per_second": 0},
    {"zoom_time": -1.0},
    {"zoom_rotation": 1.5},
    {"center_x": "nan"},
    {"max_iteration": True},
])
def test_invalid_values_rejected(raw):
    with pytest.raises(ConfigurationError):
        normalise_config(raw)


def test_unknown_keys_are_dropped():
    assert "extra" not in normalise_config({"extra": 1})


def test_malformed_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})


def test_json_must_be_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})


def test_missing_file(tmp_path):
    with pytest.raises(ResourceError):
        load_config(str(tmp_path / "nope.json"), environ={})


def test_non_utf8_config_is_a_configuration_error(tmp_path):
    path = tmp_path / "latin.json"
    path.write_bytes(b'{"run_type": "\xff"}')
    with pytest.raises(ConfigurationError):
        load_config(str(path), environ={})
