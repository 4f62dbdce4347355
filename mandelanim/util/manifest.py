import importlib.metadata as importlib_metadata
import json
import os
import platform
import sys
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from mandelanim.errors import ResourceError

_PACKAGES = ["numpy", "Pillow", "numba", "tqdm", "natsort", "opencv-python-headless"]


@dataclass(frozen=True)
class RunManifest:
    started_utc: str
    config: Dict[str, Any]
    python: Dict[str, Any]
    packages: Dict[str, str]
    system: Dict[str, Any]
    engine: Dict[str, Any]


def _utc_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def _pkg_version(name: str) -> Optional[str]:
    try:
        return importlib_metadata.version(name)
    except importlib_metadata.PackageNotFoundError:
        return None


def build_manifest(*, config: Dict[str, Any], engine_info: Dict[str, Any]) -> RunManifest:
    pkgs = {}
    for name in _PACKAGES:
        v = _pkg_version(name)
        if v:
            pkgs[name] = v

    return RunManifest(
        started_utc=_utc_iso(),
        config=config,
        python={"version": sys.version, "executable": sys.executable},
        packages=pkgs,
        system={"platform": platform.platform(), "machine": platform.machine(), "cpu_count": os.cpu_count()},
        engine=engine_info,
    )


def write_manifest(path: str, manifest: RunManifest) -> None:
    parent = os.path.dirname(path)
    try:
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(manifest), f, indent=2, sort_keys=True)
    except OSError as e:
        raise ResourceError(f"Cannot write manifest {path}: {e}") from e
