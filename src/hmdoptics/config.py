from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hmdoptics.core.optics import DEFAULT_FAR_MARGIN, DEFAULT_MAX_MAGNIFICATION
from hmdoptics.params import CARDBOARD, OpticalParameters, ParameterValidationError, parse_optical_params

SCHEMA_VERSION = "hmdoptics.hmd.v0"


class ConfigValidationError(ValueError):
    pass


@dataclass(frozen=True)
class HMDConfig:
    params: OpticalParameters = CARDBOARD
    far_margin: float = DEFAULT_FAR_MARGIN
    max_magnification: float = DEFAULT_MAX_MAGNIFICATION
    initial_position: tuple[float, float, float] = (0.0, 2.0, -5.0)
    initial_rotvec: tuple[float, float, float] = field(default=(0.0, 0.0, 0.0))


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigValidationError(msg)


def _float(raw: Any, name: str) -> float:
    _require(not isinstance(raw, bool), f"{name} must be a number")
    try:
        v = float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"{name} must be a number, got {raw!r}") from e
    _require(math.isfinite(v), f"{name} must be finite")
    return v


def _vec3(raw: Any, name: str) -> tuple[float, float, float]:
    _require(isinstance(raw, (list, tuple)) and len(raw) == 3, f"{name} must be [x,y,z]")
    x, y, z = (_float(v, f"{name}[{i}]") for i, v in enumerate(raw))
    return (x, y, z)


def parse_hmd_config(data: dict[str, Any]) -> HMDConfig:
    _require(isinstance(data, dict), "config must be an object")
    _require(data.get("schema_version") == SCHEMA_VERSION, f"schema_version must be {SCHEMA_VERSION}")

    try:
        params = parse_optical_params(data.get("optics", {}), data.get("mockup"))
    except ParameterValidationError as e:
        raise ConfigValidationError(f"invalid parameters: {e}") from e

    frustum = data.get("frustum", {})
    _require(isinstance(frustum, dict), "frustum must be an object")
    far_margin = _float(frustum.get("far_margin", DEFAULT_FAR_MARGIN), "frustum.far_margin")
    _require(far_margin > 0.0, "frustum.far_margin must be > 0")
    max_mag = _float(frustum.get("max_magnification", DEFAULT_MAX_MAGNIFICATION), "frustum.max_magnification")
    _require(max_mag > 1.0, "frustum.max_magnification must be > 1")

    pose = data.get("pose", {})
    _require(isinstance(pose, dict), "pose must be an object")
    position = _vec3(pose.get("position", [0.0, 2.0, -5.0]), "pose.position")
    rotvec = _vec3(pose.get("rotvec", [0.0, 0.0, 0.0]), "pose.rotvec")

    return HMDConfig(
        params=params,
        far_margin=far_margin,
        max_magnification=max_mag,
        initial_position=position,
        initial_rotvec=rotvec,
    )


def hmd_config_to_dict(cfg: HMDConfig) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "optics": cfg.params.optical_values(),
        "mockup": cfg.params.mockup_values(),
        "frustum": {"far_margin": float(cfg.far_margin), "max_magnification": float(cfg.max_magnification)},
        "pose": {"position": list(cfg.initial_position), "rotvec": list(cfg.initial_rotvec)},
    }


def load_hmd_config(path: Path) -> HMDConfig:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigValidationError(f"{path}: invalid JSON: {e}") from e
    return parse_hmd_config(data)


def save_hmd_config(path: Path, cfg: HMDConfig) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(hmd_config_to_dict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
