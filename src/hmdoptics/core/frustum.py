from __future__ import annotations

import logging
from typing import Literal

import numpy as np

from hmdoptics.core.transforms import SingularMatrixError, invert_checked, transform_coordinates

logger = logging.getLogger(__name__)

# Canonical clip-space corners: top-left, top-right, bottom-left, bottom-right;
# near plane (z=-1) first, then far plane (z=+1).
CLIP_CORNERS = np.array(
    [
        [-1.0, 1.0, -1.0],
        [1.0, 1.0, -1.0],
        [-1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0],
        [-1.0, 1.0, 1.0],
        [1.0, 1.0, 1.0],
        [-1.0, -1.0, 1.0],
        [1.0, -1.0, 1.0],
    ],
    dtype=np.float64,
)
CLIP_CORNERS.setflags(write=False)

EDGES = np.array(
    [
        # near plane
        [0, 1],
        [1, 3],
        [3, 2],
        [2, 0],
        # far plane
        [4, 5],
        [5, 7],
        [7, 6],
        [6, 4],
        # near to far
        [0, 4],
        [1, 5],
        [2, 6],
        [3, 7],
    ],
    dtype=np.intp,
)
EDGES.setflags(write=False)

# Corner index feeding each line-buffer vertex (two per edge).
EDGE_VERTEX_CORNERS = EDGES.reshape(-1)


class FrustumReconstructionError(RuntimeError):
    pass


def frustum_corners(
    proj: np.ndarray,
    view: np.ndarray,
    transform: np.ndarray | None = None,
    *,
    space: Literal["world", "local"] = "world",
) -> np.ndarray:
    """
    Recover the 8 corners of a perspective frustum from its matrices.

    The forward pipeline is clip = p_local @ transform @ view @ proj, so the
    clip-space cube is mapped back with inv(proj) then inv(view). The inverse
    transform is applied only for `space="local"`; a view matrix that already
    holds the eye pose must not be combined with the transform again.

    Works for any projection (off-axis or symmetric). Returns (8,3) in the
    order of `CLIP_CORNERS`. Raises `SingularMatrixError` for non-invertible
    input.
    """
    inv_proj = invert_checked(proj)
    inv_view = invert_checked(view)

    corners_view = transform_coordinates(CLIP_CORNERS, inv_proj)
    corners = transform_coordinates(corners_view, inv_view)

    if space == "local":
        if transform is None:
            raise ValueError("space='local' requires a transform")
        corners = transform_coordinates(corners, invert_checked(transform))
    elif space != "world":
        raise ValueError(f"space must be 'world' or 'local', got {space!r}")

    if not np.all(np.isfinite(corners)):
        raise SingularMatrixError("frustum corners are not finite")
    return corners


class FrustumWireframe:
    """
    Line-list geometry of a frustum: 12 edges, 24 vertices.

    The topology is fixed at construction; `update` only rewrites the 8
    corners and the vertex buffer in place. Visibility is a display flag that
    has no effect on the matrices.
    """

    def __init__(
        self,
        proj: np.ndarray,
        view: np.ndarray,
        transform: np.ndarray | None = None,
        *,
        name: str = "frustum",
    ) -> None:
        self.name = name
        try:
            corners = frustum_corners(proj, view, transform)
        except SingularMatrixError as e:
            raise FrustumReconstructionError(f"{name}: cannot build frustum: {e}") from e
        self._corners = corners
        self._vertices = np.empty((EDGE_VERTEX_CORNERS.shape[0], 3), dtype=np.float64)
        np.take(self._corners, EDGE_VERTEX_CORNERS, axis=0, out=self._vertices)
        self.visible = True
        self.updates = 0

    @property
    def corners(self) -> np.ndarray:
        v = self._corners.view()
        v.setflags(write=False)
        return v

    @property
    def vertices(self) -> np.ndarray:
        v = self._vertices.view()
        v.setflags(write=False)
        return v

    def segments(self) -> np.ndarray:
        """(12,2,3) view of the line buffer, one row per edge."""
        return self.vertices.reshape(EDGES.shape[0], 2, 3)

    def update(self, proj: np.ndarray, view: np.ndarray, transform: np.ndarray | None = None) -> None:
        try:
            corners = frustum_corners(proj, view, transform)
        except SingularMatrixError as e:
            logger.warning("%s: keeping previous corners, reconstruction failed: %s", self.name, e)
            raise FrustumReconstructionError(f"{self.name}: {e}") from e
        self._corners[...] = corners
        np.take(self._corners, EDGE_VERTEX_CORNERS, axis=0, out=self._vertices)
        self.updates += 1

    def set_visibility(self, visible: bool) -> None:
        self.visible = bool(visible)

    def toggle_visibility(self) -> bool:
        self.visible = not self.visible
        return self.visible
