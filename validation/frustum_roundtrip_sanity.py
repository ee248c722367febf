"""
Sanity check for the frustum reconstruction across the optical parameter space.

For a grid of focal lengths and eye reliefs (including the inverted-image side
of f = d), it rebuilds both eye frustums and verifies that the 8 corners map
back onto the clip-space cube through view @ proj. Degenerate states must be
reported as non-renderable instead of producing NaN geometry.
"""
from __future__ import annotations

import numpy as np

from hmdoptics import HMD
from hmdoptics.core.frustum import CLIP_CORNERS, frustum_corners
from hmdoptics.core.transforms import transform_coordinates


def main():
    hmd = HMD()
    d = hmd.params.lens_to_display_distance
    worst = 0.0
    n_ok = 0
    n_degenerate = 0
    for f in np.concatenate([np.linspace(0.2, 2.0, 37), [d]]):
        hmd.set_parameter("focal_length", float(f))
        for relief in (0.01, 0.18, 1.0):
            hmd.set_parameter("eye_relief", relief)
            if not hmd.renderable:
                n_degenerate += 1
                continue
            for eye in ("left", "right"):
                proj = hmd.projections.for_eye(eye)
                view = hmd.view_matrix(eye)
                corners = frustum_corners(proj, view)
                back = transform_coordinates(corners, view @ proj)
                worst = max(worst, float(np.max(np.abs(back - CLIP_CORNERS))))
                n_ok += 1

    print(f"frustums checked: {n_ok}, degenerate states: {n_degenerate}")
    print(f"max clip-space round-trip error: {worst:.3e}")
    if worst > 1e-5 or n_degenerate == 0:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
