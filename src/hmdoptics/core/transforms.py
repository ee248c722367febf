from __future__ import annotations

import numpy as np
from scipy.spatial.transform import Rotation

# Matrices follow the row-vector convention: p' = [x, y, z, 1] @ M.
# The full pipeline is clip = p_local @ transform @ view @ proj.

MAX_CONDITION_NUMBER = 1e12


class SingularMatrixError(np.linalg.LinAlgError):
    pass


def translation(xyz: np.ndarray) -> np.ndarray:
    xyz = np.asarray(xyz, dtype=np.float64).reshape(3)
    m = np.eye(4, dtype=np.float64)
    m[3, :3] = xyz
    return m


def rotation_matrix(rotvec: np.ndarray | None) -> np.ndarray:
    """3x3 rotation (column-vector convention) from an axis-angle vector in radians."""
    if rotvec is None:
        return np.eye(3, dtype=np.float64)
    rotvec = np.asarray(rotvec, dtype=np.float64).reshape(3)
    return Rotation.from_rotvec(rotvec).as_matrix()


def rigid_transform(position: np.ndarray, rotvec: np.ndarray | None = None) -> np.ndarray:
    """Local -> world transform for a body at `position` rotated by `rotvec`."""
    m = translation(position)
    m[:3, :3] = rotation_matrix(rotvec).T
    return m


def look_at_lh(eye: np.ndarray, target: np.ndarray, up: np.ndarray) -> np.ndarray:
    """
    Left-handed look-at view matrix: the camera looks down +z in view space,
    +x to the right and +y up.
    """
    eye = np.asarray(eye, dtype=np.float64).reshape(3)
    target = np.asarray(target, dtype=np.float64).reshape(3)
    up = np.asarray(up, dtype=np.float64).reshape(3)

    z_axis = target - eye
    n = np.linalg.norm(z_axis)
    if n < 1e-12:
        raise ValueError("eye and target must differ")
    z_axis = z_axis / n
    x_axis = np.cross(up, z_axis)
    n = np.linalg.norm(x_axis)
    if n < 1e-12:
        raise ValueError("up must not be parallel to the viewing direction")
    x_axis = x_axis / n
    y_axis = np.cross(z_axis, x_axis)

    m = np.eye(4, dtype=np.float64)
    m[:3, 0] = x_axis
    m[:3, 1] = y_axis
    m[:3, 2] = z_axis
    m[3, 0] = -float(x_axis @ eye)
    m[3, 1] = -float(y_axis @ eye)
    m[3, 2] = -float(z_axis @ eye)
    return m


def invert_checked(m: np.ndarray) -> np.ndarray:
    """
    Inverse of a 4x4 matrix, raising `SingularMatrixError` instead of returning
    garbage for non-finite or numerically singular input.
    """
    m = np.asarray(m, dtype=np.float64)
    if m.shape != (4, 4):
        raise ValueError("matrix must have shape (4,4)")
    if not np.all(np.isfinite(m)):
        raise SingularMatrixError("matrix has non-finite entries")
    cond = np.linalg.cond(m)
    if not np.isfinite(cond) or cond > MAX_CONDITION_NUMBER:
        raise SingularMatrixError(f"matrix is singular (condition number {cond:.3g})")
    return np.linalg.inv(m)


def transform_coordinates(points: np.ndarray, m: np.ndarray) -> np.ndarray:
    """
    Apply a homogeneous transform to (N,3) points, including the divide by w.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    hom = np.concatenate([points, np.ones((points.shape[0], 1), dtype=np.float64)], axis=1)
    out = hom @ np.asarray(m, dtype=np.float64)
    w = out[:, 3:4]
    with np.errstate(divide="ignore", invalid="ignore"):
        return out[:, :3] / w


def transform_homogeneous(points: np.ndarray, m: np.ndarray) -> np.ndarray:
    """Apply a transform to (N,3) points without the perspective divide; returns (N,4)."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    hom = np.concatenate([points, np.ones((points.shape[0], 1), dtype=np.float64)], axis=1)
    return hom @ np.asarray(m, dtype=np.float64)
