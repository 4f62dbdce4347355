import json
import math
import os
from typing import Any, Callable, Dict, Mapping, Optional

from mandelanim.errors import ConfigurationError, ResourceError
from mandelanim.util.logging_setup import get_logger

RUN_TYPES = ("image", "video", "test")

DEFAULTS: Dict[str, Any] = {
    "run_type": "image",
    "max_iteration": 1000,
    "colors_file_path": "default.pal",
    "color_calc": "smooth",
    "image_width": 1920,
    "image_height": 1080,
    "center_x": 0.0,
    "center_y": 0.0,
    "scale": 0.003,
    "rotation": 0.0,
    "x_lines": "",
    "y_lines": "",
    "frames_per_second": 60,
    "initial_image_time": 1.0,
    "initial_scale": 0.003,
    "initial_rotation": 0.0,
    "zoom_time": 10.0,
    "zoom_rotation": 0,
    "final_image_time": 1.0,
}


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("booleans are not integers")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value} is not a whole number")
        return int(value)
    return int(str(value).strip())


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    out = float(value)
    if not math.isfinite(out):
        raise ValueError(f"{value} is not finite")
    return out


def _to_str(value: Any) -> str:
    return "" if value is None else str(value)


_COERCE: Dict[str, Callable[[Any], Any]] = {
    "run_type": _to_str,
    "max_iteration": _to_int,
    "colors_file_path": _to_str,
    "color_calc": _to_str,
    "image_width": _to_int,
    "image_height": _to_int,
    "center_x": _to_float,
    "center_y": _to_float,
    "scale": _to_float,
    "rotation": _to_float,
    "x_lines": _to_str,
    "y_lines": _to_str,
    "frames_per_second": _to_int,
    "initial_image_time": _to_float,
    "initial_scale": _to_float,
    "initial_rotation": _to_float,
    "zoom_time": _to_float,
    "zoom_rotation": _to_int,
    "final_image_time": _to_float,
}


def load_config(config_path: Optional[str], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Read a JSON config object and layer environment overrides on top.

    An environment variable named exactly like a config key replaces the file
    value. Missing keys fall back to ``DEFAULTS`` in ``normalise_config``.
    """
    cfg: Dict[str, Any] = {}
    if config_path:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                cfg = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot parse config {config_path}: {e}") from e
        except OSError as e:
            raise ResourceError(f"Cannot read config {config_path}: {e}") from e
        if not isinstance(cfg, dict):
            raise ConfigurationError("Config JSON must be an object.")

    env = os.environ if environ is None else environ
    for key in DEFAULTS:
        if key in env:
            cfg[key] = env[key]
    return cfg


def normalise_config(cfg: Mapping[str, Any]) -> Dict[str, Any]:
    logger = get_logger()
    for key in cfg:
        if key not in DEFAULTS:
            logger.debug("Ignoring unknown config field: %s", key)

    out: Dict[str, Any] = {}
    for key, default in DEFAULTS.items():
        raw = cfg.get(key, default)
        try:
            out[key] = _COERCE[key](raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for {key}: {raw!r} ({e})") from e

    if out["run_type"] not in RUN_TYPES:
        raise ConfigurationError(f"Invalid run_type {out['run_type']!r}; expected one of: {', '.join(RUN_TYPES)}")
    if out["max_iteration"] < 0:
        raise ConfigurationError("max_iteration must be >= 0.")
    if out["image_width"] <= 0 or out["image_height"] <= 0:
        raise ConfigurationError("image_width/image_height must be positive.")
    for key in ("scale", "initial_scale"):
        if out[key] <= 0:
            raise ConfigurationError(f"{key} must be > 0.")
    if out["frames_per_second"] <= 0:
        raise ConfigurationError("frames_per_second must be positive.")
    for key in ("initial_image_time", "zoom_time", "final_image_time"):
        if out[key] < 0:
            raise ConfigurationError(f"{key} must be >= 0.")
    return out
