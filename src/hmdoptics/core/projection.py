from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from hmdoptics.core.optics import DerivedOpticalState, Eye


def off_axis_projection(left: float, right: float, top: float, bottom: float, near: float, far: float) -> np.ndarray:
    """
    Left-handed off-axis perspective projection (row-vector convention).

    View space looks down +z; z in [near, far] maps to NDC depth [-1, 1] and
    the near-plane rectangle [left, right] x [bottom, top] maps to [-1, 1]^2.

      M = [ x 0 0 0
            0 y 0 0
            a b c 1
            0 0 d 0 ]

    With w = z_view, the horizontal and vertical shear terms take the
    left-handed sign a = (l+r)/(l-r), b = (t+b)/(b-t) so that x = right
    lands on NDC +1 (same as D3DXMatrixPerspectiveOffCenterLH).
    """
    vals = (left, right, top, bottom, near, far)
    if not all(math.isfinite(float(v)) for v in vals):
        raise ValueError("frustum bounds must be finite")
    if right == left or top == bottom:
        raise ValueError("frustum must have non-zero width and height")
    if far == near:
        raise ValueError("far must differ from near")

    x = 2.0 * near / (right - left)
    y = 2.0 * near / (top - bottom)
    a = (left + right) / (left - right)
    b = (top + bottom) / (bottom - top)
    c = (far + near) / (far - near)
    d = -2.0 * far * near / (far - near)
    return np.array(
        [
            [x, 0.0, 0.0, 0.0],
            [0.0, y, 0.0, 0.0],
            [a, b, c, 1.0],
            [0.0, 0.0, d, 0.0],
        ],
        dtype=np.float64,
    )


def perspective_fov_lh(fov_y_rad: float, aspect: float, near: float, far: float) -> np.ndarray:
    """Symmetric perspective for an ordinary camera (vertical FOV in radians, aspect = w/h)."""
    if not 0.0 < fov_y_rad < math.pi:
        raise ValueError("fov_y_rad must be in (0, pi)")
    if aspect <= 0:
        raise ValueError("aspect must be > 0")
    top = near * math.tan(0.5 * fov_y_rad)
    right = top * aspect
    return off_axis_projection(-right, right, top, -top, near, far)


@dataclass(frozen=True)
class EyeProjections:
    """
    Per-eye projection matrices. Both are None when the optics are degenerate,
    which a renderer must treat as "do not draw".
    """

    left: np.ndarray | None
    right: np.ndarray | None
    degenerate: bool = False

    def for_eye(self, eye: Eye) -> np.ndarray | None:
        if eye == "left":
            return self.left
        if eye == "right":
            return self.right
        raise ValueError(f"eye must be 'left' or 'right', got {eye!r}")


def build_eye_projections(state: DerivedOpticalState) -> EyeProjections:
    """
    Build both eye matrices from a derived state. Only (left, right) differ
    between the eyes; top/bottom/near/far are shared. The returned arrays are
    read-only.
    """
    if state.degenerate:
        return EyeProjections(left=None, right=None, degenerate=True)

    mats = []
    for eye in ("left", "right"):
        b = state.eye_bounds(eye)
        m = off_axis_projection(b.left, b.right, b.top, b.bottom, b.near, b.far)
        # Shared by every consumer of the cache; rebuilds replace, never patch.
        m.setflags(write=False)
        mats.append(m)
    return EyeProjections(left=mats[0], right=mats[1], degenerate=False)
