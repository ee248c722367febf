"""
HMD optics API demo.

It does:
1) build a Cardboard-like HMD and print the derived optics,
2) sweep the focal length across the lens-to-display distance to show the
   magnification sign flip (and the degenerate point in between),
3) animate the HMD for a few frames and report how the left-eye frustum moves,
4) (optional) save a matplotlib wireframe plot.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import numpy as np

from hmdoptics import HMD, CARDBOARD, compute_optical_state
from hmdoptics.sim.animation import OscillationDriver


def sweep_focal_length(lo: float, hi: float, num: int) -> list[dict[str, float]]:
    rows = []
    for f in np.linspace(lo, hi, num):
        st = compute_optical_state(CARDBOARD.with_value("focal_length", float(f)))
        rows.append({"f": float(f), "magnification": st.magnification, "degenerate": st.degenerate})
    return rows


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--frames", type=int, default=240)
    ap.add_argument("--plot", type=Path, default=None, help="Optional PNG output.")
    args = ap.parse_args()

    hmd = HMD()
    print(json.dumps(hmd.display_calculated_values(), indent=2, sort_keys=True))

    # Crossing f = d: the virtual image flips (magnification changes sign).
    for row in sweep_focal_length(0.37, 0.41, 5):
        print(json.dumps(row, sort_keys=True))

    driver = OscillationDriver(hmd)
    hmd.subscribe(driver.rebuild)
    start = driver.wireframes["left"].corners.copy()
    xs = driver.run(args.frames)
    shift = driver.wireframes["left"].corners - start
    print(f"HMD x range over {args.frames} frames: [{xs.min():.4f}, {xs.max():.4f}]")
    print(f"left frustum shift (mean): {shift.mean(axis=0).round(4).tolist()}")

    if args.plot is not None:
        from hmdoptics.viz.plot import save_hmd_plot

        print(f"Wrote {save_hmd_plot(hmd, args.plot)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
