from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

from hmdoptics.config import HMDConfig
from hmdoptics.core.optics import EYES, DerivedOpticalState, Eye, compute_optical_state
from hmdoptics.core.projection import EyeProjections, build_eye_projections
from hmdoptics.core.transforms import look_at_lh, rigid_transform, rotation_matrix
from hmdoptics.params import OpticalParameters, ParamName, SliderSpec, resolve_param_name, slider_params

logger = logging.getLogger(__name__)

Listener = Callable[["HMD"], None]


@dataclass(frozen=True)
class EyePose:
    eye: Eye
    position: np.ndarray  # (3,) world
    forward: np.ndarray  # (3,) unit, world
    up: np.ndarray  # (3,) unit, world


class Subscription:
    """Handle returned by `HMD.subscribe`; `cancel()` removes the listener."""

    def __init__(self, owner: "HMD", listener: Listener) -> None:
        self._owner = owner
        self._listener = listener
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self._owner._unsubscribe(self)
            self.active = False


class HMD:
    """
    Head-mounted display: optical parameters, pose and the per-eye matrices
    derived from them.

    Convention:
    - the HMD is anchored at the display center (`position`)
    - in HMD-local space +x points to the right eye, +y up and +z from the eyes
      towards the display
    - eye i sits at (-/+ ipd/2, 0, -eye_to_display_distance) and looks down +z

    `set_parameter` is the single mutation entry point for the optics; it
    recomputes the derived state, rebuilds both projections and then notifies
    subscribers. Projections are not rebuilt on pose changes.
    """

    def __init__(self, params: OpticalParameters | None = None, config: HMDConfig | None = None) -> None:
        self.config = config if config is not None else HMDConfig()
        self._params = params if params is not None else self.config.params
        self._position = np.asarray(self.config.initial_position, dtype=np.float64).reshape(3).copy()
        self._rotvec = np.asarray(self.config.initial_rotvec, dtype=np.float64).reshape(3).copy()
        self._listeners: list[Subscription] = []
        self.version = 0

        self._recompute_optics()
        self._recompute_poses()

    # ------------------------------------------------------------------ state
    @property
    def params(self) -> OpticalParameters:
        return self._params

    @property
    def state(self) -> DerivedOpticalState:
        return self._state

    @property
    def projections(self) -> EyeProjections:
        return self._projections

    @property
    def renderable(self) -> bool:
        return not self._projections.degenerate

    @property
    def position(self) -> np.ndarray:
        return self._position.copy()

    @property
    def rotvec(self) -> np.ndarray:
        return self._rotvec.copy()

    @property
    def transform_matrix(self) -> np.ndarray:
        """HMD local -> world transform."""
        return rigid_transform(self._position, self._rotvec)

    def eye_pose(self, eye: Eye) -> EyePose:
        if eye not in self._poses:
            raise ValueError(f"eye must be 'left' or 'right', got {eye!r}")
        return self._poses[eye]

    def view_matrix(self, eye: Eye) -> np.ndarray:
        pose = self.eye_pose(eye)
        # Target in front of the eye, consistent with the LH projection (+z forward).
        return look_at_lh(pose.position, pose.position + pose.forward, pose.up)

    # --------------------------------------------------------------- mutation
    def set_parameter(self, name: ParamName | str, value: Any) -> None:
        """
        Validate and apply one parameter. On `ParameterValidationError` the
        previous state stays active.
        """
        key = resolve_param_name(name)
        new_params = self._params.with_value(key, value)
        self._params = new_params

        if key.affects_optics:
            self._recompute_optics()
        self._recompute_poses()
        self.version += 1
        logger.debug("set %s=%g (version %d)", key.value, new_params.get(key), self.version)
        self._notify()

    def update_position(self, position: np.ndarray) -> None:
        position = np.asarray(position, dtype=np.float64).reshape(3)
        if not np.all(np.isfinite(position)):
            raise ValueError("position must be finite")
        self._position[...] = position
        self._recompute_poses()
        self.version += 1

    def set_orientation(self, rotvec: np.ndarray) -> None:
        """Set the HMD orientation as an axis-angle vector (radians)."""
        rotvec = np.asarray(rotvec, dtype=np.float64).reshape(3)
        if not np.all(np.isfinite(rotvec)):
            raise ValueError("rotvec must be finite")
        self._rotvec[...] = rotvec
        self._recompute_poses()
        self.version += 1

    # ----------------------------------------------------------- observation
    def subscribe(self, listener: Listener) -> Subscription:
        """Call `listener(hmd)` after every parameter mutation, in registration order."""
        sub = Subscription(self, listener)
        self._listeners.append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        self._listeners = [s for s in self._listeners if s is not sub]

    def _notify(self) -> None:
        for sub in list(self._listeners):
            if sub.active:
                sub._listener(self)

    # ------------------------------------------------------------- UI metadata
    def slider_params(self) -> dict[str, SliderSpec]:
        return slider_params()

    def display_params(self) -> dict[str, float]:
        return self._params.optical_values()

    def display_calculated_values(self) -> dict[str, float]:
        return self._state.as_display_dict()

    # --------------------------------------------------------------- internal
    def _recompute_optics(self) -> None:
        was_degenerate = getattr(self, "_state", None) is not None and self._state.degenerate
        self._state = compute_optical_state(
            self._params,
            far_margin=self.config.far_margin,
            max_magnification=self.config.max_magnification,
        )
        self._projections = build_eye_projections(self._state)
        if self._state.degenerate and not was_degenerate:
            logger.warning(
                "optics degenerate (f=%g, lens-to-display=%g, magnification=%g): frustum not renderable",
                self._params.focal_length,
                self._params.lens_to_display_distance,
                self._state.magnification,
            )

    def _recompute_poses(self) -> None:
        R = rotation_matrix(self._rotvec)
        forward = R @ np.array([0.0, 0.0, 1.0])
        up = R @ np.array([0.0, 1.0, 0.0])
        half_ipd = 0.5 * self._params.ipd
        back = -self._state.eye_to_display_distance
        poses: dict[Eye, EyePose] = {}
        for eye, sx in zip(EYES, (-half_ipd, half_ipd)):
            local = np.array([sx, 0.0, back], dtype=np.float64)
            poses[eye] = EyePose(
                eye=eye,
                position=_frozen(self._position + R @ local),
                forward=_frozen(forward),
                up=_frozen(up),
            )
        self._poses = poses


def _frozen(a: np.ndarray) -> np.ndarray:
    out = np.array(a, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out
