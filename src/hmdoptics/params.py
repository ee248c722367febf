from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, TypedDict


class ParameterValidationError(ValueError):
    pass


class SliderSpec(TypedDict):
    min: float
    max: float
    step: float


class ParamName(str, Enum):
    """Closed set of settable HMD parameters."""

    FOCAL_LENGTH = "focal_length"
    IPD = "ipd"
    EYE_RELIEF = "eye_relief"
    LENS_TO_DISPLAY_DISTANCE = "lens_to_display_distance"
    DISPLAY_WIDTH = "display_width"
    DISPLAY_HEIGHT = "display_height"
    # Physical extents of the mockup only.
    LENS_DIAMETER = "lens_diameter"
    LENS_DEPTH = "lens_depth"
    EYE_DIAMETER = "eye_diameter"
    DISPLAY_DEPTH = "display_depth"

    @property
    def affects_optics(self) -> bool:
        return self in OPTICAL_PARAMS


OPTICAL_PARAMS = (
    ParamName.FOCAL_LENGTH,
    ParamName.IPD,
    ParamName.EYE_RELIEF,
    ParamName.LENS_TO_DISPLAY_DISTANCE,
    ParamName.DISPLAY_WIDTH,
    ParamName.DISPLAY_HEIGHT,
)

MOCKUP_PARAMS = (
    ParamName.LENS_DIAMETER,
    ParamName.LENS_DEPTH,
    ParamName.EYE_DIAMETER,
    ParamName.DISPLAY_DEPTH,
)

SLIDER_SPECS: dict[ParamName, SliderSpec] = {
    ParamName.FOCAL_LENGTH: {"min": 0.1, "max": 2.0, "step": 0.01},
    ParamName.IPD: {"min": 0.001, "max": 2.0, "step": 0.01},
    ParamName.EYE_RELIEF: {"min": 0.001, "max": 10.0, "step": 0.01},
    ParamName.LENS_TO_DISPLAY_DISTANCE: {"min": 0.1, "max": 2.0, "step": 0.01},
    ParamName.DISPLAY_WIDTH: {"min": 0.5, "max": 5.0, "step": 0.01},
    ParamName.DISPLAY_HEIGHT: {"min": 0.5, "max": 5.0, "step": 0.01},
}


@dataclass(frozen=True)
class OpticalParameters:
    """
    Physical parameters of a single-thin-lens HMD, in scene units.

    The optical ones (first six) drive the projection; the rest only size
    the display/lens/eye mockup.
    """

    focal_length: float
    ipd: float
    eye_relief: float
    lens_to_display_distance: float
    display_width: float
    display_height: float
    lens_diameter: float = 0.34
    lens_depth: float = 0.05
    eye_diameter: float = 0.15
    display_depth: float = 0.05

    def __post_init__(self) -> None:
        for f in fields(self):
            _check_value(f.name, getattr(self, f.name))

    def get(self, name: ParamName | str) -> float:
        return float(getattr(self, resolve_param_name(name).value))

    def with_value(self, name: ParamName | str, value: Any) -> "OpticalParameters":
        key = resolve_param_name(name)
        return replace(self, **{key.value: _check_value(key.value, value)})

    def optical_values(self) -> dict[str, float]:
        return {p.value: self.get(p) for p in OPTICAL_PARAMS}

    def mockup_values(self) -> dict[str, float]:
        return {p.value: self.get(p) for p in MOCKUP_PARAMS}


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ParameterValidationError(msg)


def _check_value(name: str, value: Any) -> float:
    _require(not isinstance(value, bool), f"{name} must be a number")
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise ParameterValidationError(f"{name} must be a number, got {value!r}") from e
    _require(math.isfinite(v), f"{name} must be finite")
    _require(v > 0.0, f"{name} must be > 0")
    return v


def resolve_param_name(name: ParamName | str) -> ParamName:
    if isinstance(name, ParamName):
        return name
    try:
        return ParamName(str(name))
    except ValueError as e:
        raise ParameterValidationError(f"unknown parameter: {name!r}") from e


def slider_params() -> dict[str, SliderSpec]:
    return {name.value: SliderSpec(**spec) for name, spec in SLIDER_SPECS.items()}


def parse_optical_params(optics: dict[str, Any], mockup: dict[str, Any] | None = None) -> OpticalParameters:
    _require(isinstance(optics, dict), "optics must be an object")
    mockup = {} if mockup is None else mockup
    _require(isinstance(mockup, dict), "mockup must be an object")

    values: dict[str, float] = {}
    for p in OPTICAL_PARAMS:
        raw = optics.get(p.value)
        _require(raw is not None, f"optics.{p.value} is required")
        values[p.value] = _check_value(f"optics.{p.value}", raw)
    for p in MOCKUP_PARAMS:
        if p.value in mockup:
            values[p.value] = _check_value(f"mockup.{p.value}", mockup[p.value])

    unknown = (set(optics) - {p.value for p in OPTICAL_PARAMS}) | (set(mockup) - {p.value for p in MOCKUP_PARAMS})
    _require(not unknown, f"unknown parameters: {sorted(unknown)}")
    return OpticalParameters(**values)


# Google Cardboard 2.0 in decimeters (f 40mm, eye relief 18mm, lens to display 39mm,
# display 120.96 x 68.03mm), with a wider ipd so both eye frusta separate clearly.
CARDBOARD = OpticalParameters(
    focal_length=0.4,
    ipd=0.68,
    eye_relief=0.18,
    lens_to_display_distance=0.39,
    display_width=1.2096,
    display_height=0.6803,
)
