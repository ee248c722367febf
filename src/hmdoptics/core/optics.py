from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from hmdoptics.params import OpticalParameters

Eye = Literal["left", "right"]
EYES: tuple[Eye, Eye] = ("left", "right")

DEFAULT_FAR_MARGIN = 8.0
DEFAULT_MAX_MAGNIFICATION = 1e6


@dataclass(frozen=True)
class FrustumBounds:
    left: float
    right: float
    top: float
    bottom: float
    near: float
    far: float


@dataclass(frozen=True)
class DerivedOpticalState:
    """
    Thin-lens quantities derived from `OpticalParameters`.

    Sign conventions:
    - magnification > 0 when the display sits inside the focal length (f > d),
      which gives an upright virtual image on the display side (magnifying glass)
    - virtual_image_distance < 0 in that case; its magnitude is used for distances
    - crossing f = d flips the sign of both and inverts the image

    Frustum bounds are at the near plane, in view-space distance units.
    """

    magnification: float
    virtual_image_distance: float
    eye_to_display_distance: float
    eye_to_virtual_image_distance: float
    virtual_image_height: float
    virtual_image_width: float
    near: float
    far: float
    top: float
    bottom: float
    image_width_nasal: float
    image_width_temporal: float
    left_for_left_eye: float
    right_for_left_eye: float
    left_for_right_eye: float
    right_for_right_eye: float
    fov_vertical_deg: float
    fov_nasal_deg: float
    fov_temporal_deg: float
    fov_horizontal_deg: float
    aspect_ratio: float
    eye_aspect_ratio: float
    ipd: float
    degenerate: bool

    def eye_bounds(self, eye: Eye) -> FrustumBounds:
        if eye == "left":
            left, right = self.left_for_left_eye, self.right_for_left_eye
        elif eye == "right":
            left, right = self.left_for_right_eye, self.right_for_right_eye
        else:
            raise ValueError(f"eye must be 'left' or 'right', got {eye!r}")
        return FrustumBounds(left=left, right=right, top=self.top, bottom=self.bottom, near=self.near, far=self.far)

    def image_extent(self, eye: Eye) -> tuple[float, float]:
        """
        Horizontal extent of an eye's virtual image in HMD-lateral coordinates.

        The eye sits at -ipd/2 (left) or +ipd/2 (right); the nasal half-width
        extends towards the HMD center and the temporal one away from it.
        """
        if eye == "left":
            a = -0.5 * self.ipd - self.image_width_temporal
            b = -0.5 * self.ipd + self.image_width_nasal
        elif eye == "right":
            a = 0.5 * self.ipd - self.image_width_nasal
            b = 0.5 * self.ipd + self.image_width_temporal
        else:
            raise ValueError(f"eye must be 'left' or 'right', got {eye!r}")
        return (min(a, b), max(a, b))

    def horizontal_overlap(self) -> float:
        """Signed shared width of both eyes' image extents (negative: gap between them)."""
        l_min, l_max = self.image_extent("left")
        r_min, r_max = self.image_extent("right")
        return min(l_max, r_max) - max(l_min, r_min)

    def as_display_dict(self) -> dict[str, float]:
        return {
            "magnification": self.magnification,
            "virtual_image_height": self.virtual_image_height,
            "virtual_image_distance": self.virtual_image_distance,
            "eye_to_virtual_image_distance": self.eye_to_virtual_image_distance,
            "eye_to_display_distance": self.eye_to_display_distance,
            "near": self.near,
            "far": self.far,
            "fov_vertical_deg": self.fov_vertical_deg,
            "fov_nasal_deg": self.fov_nasal_deg,
            "fov_temporal_deg": self.fov_temporal_deg,
            "fov_horizontal_deg": self.fov_horizontal_deg,
            "aspect_ratio": self.aspect_ratio,
            "top": self.top,
            "bottom": self.bottom,
            "image_width_nasal": self.image_width_nasal,
            "image_width_temporal": self.image_width_temporal,
            "left_for_left_eye": self.left_for_left_eye,
            "right_for_left_eye": self.right_for_left_eye,
            "left_for_right_eye": self.left_for_right_eye,
            "right_for_right_eye": self.right_for_right_eye,
        }


def compute_optical_state(
    params: OpticalParameters,
    *,
    far_margin: float = DEFAULT_FAR_MARGIN,
    max_magnification: float = DEFAULT_MAX_MAGNIFICATION,
) -> DerivedOpticalState:
    """
    Full recomputation of the derived optics; there is no partial update since
    every output depends on the magnification term.

    Never raises on f == d: the division yields signed infinities / NaN and the
    result is flagged `degenerate` instead.
    """
    if far_margin <= 0:
        raise ValueError("far_margin must be > 0")

    f = np.float64(params.focal_length)
    d = np.float64(params.lens_to_display_distance)
    ipd = np.float64(params.ipd)
    w = np.float64(params.display_width)
    h = np.float64(params.display_height)
    relief = np.float64(params.eye_relief)

    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        eye_to_display = relief + d
        m = f / (f - d)
        img_h = h * m
        img_w = w * m
        dist_lens_to_img = 1.0 / (1.0 / f - 1.0 / d)
        dist_eye_to_img = np.abs(dist_lens_to_img) + relief

        near = eye_to_display
        far = near + np.float64(far_margin)

        fov_v = 2.0 * np.arctan((img_h / 2.0) / dist_eye_to_img)
        fov_nasal = np.arctan((m * ipd / 2.0) / dist_eye_to_img)
        fov_temporal = np.arctan((m * (w - ipd) / 2.0) / dist_eye_to_img)

        top = near * img_h / (2.0 * dist_eye_to_img)
        bottom = -top
        nasal = m * ipd / 2.0
        temporal = m * (w - ipd) / 2.0

        # Scale the virtual-image half-widths back onto the near plane.
        s = near / dist_eye_to_img
        right_l = s * nasal
        left_l = -s * temporal
        right_r = s * temporal
        left_r = -s * nasal

        eye_aspect = (right_l - left_l) / (top - bottom)

    bounds = (m, dist_lens_to_img, dist_eye_to_img, top, left_l, right_l, left_r, right_r, eye_aspect)
    degenerate = (not all(np.isfinite(v) for v in bounds)) or bool(np.abs(m) > max_magnification)

    return DerivedOpticalState(
        magnification=float(m),
        virtual_image_distance=float(dist_lens_to_img),
        eye_to_display_distance=float(eye_to_display),
        eye_to_virtual_image_distance=float(dist_eye_to_img),
        virtual_image_height=float(img_h),
        virtual_image_width=float(img_w),
        near=float(near),
        far=float(far),
        top=float(top),
        bottom=float(bottom),
        image_width_nasal=float(nasal),
        image_width_temporal=float(temporal),
        left_for_left_eye=float(left_l),
        right_for_left_eye=float(right_l),
        left_for_right_eye=float(left_r),
        right_for_right_eye=float(right_r),
        fov_vertical_deg=float(np.degrees(fov_v)),
        fov_nasal_deg=float(np.degrees(fov_nasal)),
        fov_temporal_deg=float(np.degrees(fov_temporal)),
        fov_horizontal_deg=float(np.degrees(fov_nasal + fov_temporal)),
        aspect_ratio=float(w / h),
        eye_aspect_ratio=float(eye_aspect),
        ipd=float(ipd),
        degenerate=degenerate,
    )
