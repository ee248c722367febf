from __future__ import annotations

import logging
import math

import numpy as np

from hmdoptics.api.hmd import HMD
from hmdoptics.core.frustum import FrustumReconstructionError, FrustumWireframe
from hmdoptics.core.optics import EYES, Eye

logger = logging.getLogger(__name__)


def build_wireframes(hmd: HMD) -> dict[Eye, FrustumWireframe]:
    """
    One wireframe per eye from the HMD's current matrices. Raises
    `FrustumReconstructionError` when the optics are degenerate.
    """
    if not hmd.renderable:
        raise FrustumReconstructionError("optics are degenerate; no finite frustum to build")
    out: dict[Eye, FrustumWireframe] = {}
    for eye in EYES:
        proj = hmd.projections.for_eye(eye)
        if proj is None:
            raise FrustumReconstructionError(f"no projection for the {eye} eye")
        out[eye] = FrustumWireframe(proj, hmd.view_matrix(eye), hmd.transform_matrix, name=f"frustum_{eye}")
    return out


class OscillationDriver:
    """
    Per-frame driver: swings the HMD sideways, x = sin(elapsed * rate) * amplitude,
    then refreshes the eye frustums from the updated view matrices.
    """

    def __init__(
        self,
        hmd: HMD,
        wireframes: dict[Eye, FrustumWireframe] | None = None,
        *,
        amplitude: float = 0.5,
        rate: float = 0.1,
    ) -> None:
        self.hmd = hmd
        self.wireframes = build_wireframes(hmd) if wireframes is None else dict(wireframes)
        self.amplitude = float(amplitude)
        self.rate = float(rate)
        self.elapsed_s = 0.0
        self._base_position = hmd.position

    def tick(self, dt_s: float) -> None:
        if dt_s < 0:
            raise ValueError("dt_s must be >= 0")
        self.elapsed_s += float(dt_s)
        pos = self._base_position.copy()
        pos[0] = math.sin(self.elapsed_s * self.rate) * self.amplitude
        self.hmd.update_position(pos)
        self.rebuild()

    def rebuild(self, _hmd: HMD | None = None) -> int:
        """
        Recompute the corners of every wireframe from the HMD. Returns the number
        of wireframes updated; a degenerate HMD leaves all of them untouched.
        Usable directly as an `HMD.subscribe` listener.
        """
        if not self.hmd.renderable:
            return 0
        n = 0
        transform = self.hmd.transform_matrix
        for eye, wf in self.wireframes.items():
            proj = self.hmd.projections.for_eye(eye)
            if proj is None:
                continue
            try:
                wf.update(proj, self.hmd.view_matrix(eye), transform)
            except FrustumReconstructionError:
                # Previous corners are retained; try again next frame.
                continue
            n += 1
        return n

    def run(self, frames: int, dt_s: float = 1.0 / 60.0) -> np.ndarray:
        """Advance `frames` ticks; returns the HMD x position after each one."""
        xs = np.empty((int(frames),), dtype=np.float64)
        for i in range(int(frames)):
            self.tick(dt_s)
            xs[i] = self.hmd.position[0]
        logger.debug("ran %d frames, elapsed %.3fs", frames, self.elapsed_s)
        return xs
