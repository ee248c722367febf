import math

import numpy as np
import pytest

from hmdoptics.core.optics import DEFAULT_FAR_MARGIN, compute_optical_state
from hmdoptics.params import CARDBOARD


def test_cardboard_baseline():
    st = compute_optical_state(CARDBOARD)
    assert st.magnification == pytest.approx(0.4 / (0.4 - 0.39))
    assert st.magnification == pytest.approx(40.0)
    assert st.near == pytest.approx(0.57)
    assert st.far == st.near + DEFAULT_FAR_MARGIN
    assert not st.degenerate


def test_thin_lens_relations():
    st = compute_optical_state(CARDBOARD)
    f, d = CARDBOARD.focal_length, CARDBOARD.lens_to_display_distance
    assert st.virtual_image_distance == pytest.approx(1.0 / (1.0 / f - 1.0 / d))
    # Magnifying glass: virtual image on the display side.
    assert st.virtual_image_distance < 0
    assert st.eye_to_virtual_image_distance == pytest.approx(CARDBOARD.eye_relief + abs(st.virtual_image_distance))
    assert st.virtual_image_height == pytest.approx(CARDBOARD.display_height * st.magnification)
    assert st.virtual_image_width == pytest.approx(CARDBOARD.display_width * st.magnification)
    assert st.bottom == -st.top


@pytest.mark.parametrize(
    "f, d",
    [(0.4, 0.39), (0.4, 0.41), (1.0, 0.2), (0.2, 1.5), (0.05, 0.049)],
)
def test_magnification_sign_matches_f_minus_d(f, d):
    p = CARDBOARD.with_value("focal_length", f).with_value("lens_to_display_distance", d)
    st = compute_optical_state(p)
    assert st.magnification == pytest.approx(f / (f - d))
    assert math.copysign(1.0, st.magnification) == math.copysign(1.0, f - d)


def test_eye_to_display_distance_is_exact_after_repeated_updates():
    p = CARDBOARD
    for relief in (0.1, 0.33, 0.07, 0.18, 1.23):
        p = p.with_value("eye_relief", relief)
        st = compute_optical_state(p)
        assert st.eye_to_display_distance == p.eye_relief + p.lens_to_display_distance
        assert st.near == st.eye_to_display_distance


def test_custom_far_margin():
    st = compute_optical_state(CARDBOARD, far_margin=2.5)
    assert st.far == st.near + 2.5
    with pytest.raises(ValueError):
        compute_optical_state(CARDBOARD, far_margin=0.0)


def test_idempotent():
    a = compute_optical_state(CARDBOARD)
    b = compute_optical_state(CARDBOARD)
    assert a == b


def test_per_eye_bounds_swap_nasal_and_temporal():
    st = compute_optical_state(CARDBOARD)
    left = st.eye_bounds("left")
    right = st.eye_bounds("right")
    assert left.right == -right.left
    assert left.left == -right.right
    # ipd > display_width / 2, so the nasal side is the wider one.
    assert abs(left.right) > abs(left.left)
    assert (left.top, left.bottom, left.near, left.far) == (right.top, right.bottom, right.near, right.far)
    s = st.near / st.eye_to_virtual_image_distance
    assert left.right == pytest.approx(s * st.image_width_nasal)
    assert left.left == pytest.approx(-s * st.image_width_temporal)
    with pytest.raises(ValueError):
        st.eye_bounds("center")  # type: ignore[arg-type]


def test_fov_in_degrees():
    st = compute_optical_state(CARDBOARD)
    D = st.eye_to_virtual_image_distance
    assert st.fov_vertical_deg == pytest.approx(math.degrees(2 * math.atan(st.virtual_image_height / 2 / D)))
    assert st.fov_horizontal_deg == pytest.approx(st.fov_nasal_deg + st.fov_temporal_deg)
    assert 0 < st.fov_vertical_deg < 180
    # Both eyes share the same frustum aspect.
    l, r = st.eye_bounds("left"), st.eye_bounds("right")
    assert (l.right - l.left) == pytest.approx(r.right - r.left)
    assert st.eye_aspect_ratio == pytest.approx((l.right - l.left) / (l.top - l.bottom))


def test_singularity_is_flagged_not_raised():
    p = CARDBOARD.with_value("focal_length", 0.39)
    st = compute_optical_state(p)
    assert st.degenerate
    assert math.isinf(st.magnification)


@pytest.mark.parametrize("side", [-1.0, 1.0])
def test_approaching_singularity_from_either_side(side):
    d = CARDBOARD.lens_to_display_distance
    mags = []
    for eps in (1e-2, 1e-4, 1e-6, 1e-9):
        st = compute_optical_state(CARDBOARD.with_value("focal_length", d + side * eps))
        mags.append(abs(st.magnification))
        assert math.copysign(1.0, st.magnification) == side
        assert not np.isnan(st.magnification)
    assert mags == sorted(mags)
    assert st.degenerate


def test_sign_flip_inverts_vertical_bounds():
    below = compute_optical_state(CARDBOARD.with_value("focal_length", 0.38))
    above = compute_optical_state(CARDBOARD.with_value("focal_length", 0.40))
    assert below.top < 0 < above.top
    assert not below.degenerate and not above.degenerate


def test_ipd_increase_separates_eye_images():
    st0 = compute_optical_state(CARDBOARD)
    assert st0.horizontal_overlap() > 0

    m = st0.magnification
    w = CARDBOARD.display_width
    # The left eye's image stops reaching the HMD center once ipd > m*w/(m-1).
    threshold = m * w / (m - 1.0)

    prev = st0
    for ipd in (0.8, 1.0, 1.2, threshold + 0.01, 1.4, 1.6):
        st = compute_optical_state(CARDBOARD.with_value("ipd", ipd))
        assert st.image_width_nasal > prev.image_width_nasal
        assert st.image_width_temporal < prev.image_width_temporal
        assert (st.image_width_nasal - st.image_width_temporal) > (prev.image_width_nasal - prev.image_width_temporal)
        prev = st

    assert prev.horizontal_overlap() < 0
    lx = prev.image_extent("left")
    rx = prev.image_extent("right")
    assert max(lx[0], rx[0]) > min(lx[1], rx[1])
    assert compute_optical_state(CARDBOARD.with_value("ipd", threshold - 0.01)).horizontal_overlap() > 0


def test_unit_magnification_eyes_split_display_at_center():
    # With m -> 1 (f much larger than d) each eye covers its own half of the display.
    st = compute_optical_state(CARDBOARD.with_value("focal_length", 1e6))
    lx = st.image_extent("left")
    rx = st.image_extent("right")
    assert lx[1] == pytest.approx(0.0, abs=1e-6)
    assert rx[0] == pytest.approx(0.0, abs=1e-6)
    assert lx[0] == pytest.approx(-CARDBOARD.display_width / 2, rel=1e-5)


def test_eye_relief_towards_zero_decreases_near():
    nears = []
    for relief in (0.5, 0.3, 0.18, 0.1, 0.01, 0.001):
        nears.append(compute_optical_state(CARDBOARD.with_value("eye_relief", relief)).near)
    assert all(a > b for a, b in zip(nears, nears[1:]))


def test_display_dict_has_readouts():
    st = compute_optical_state(CARDBOARD)
    vals = st.as_display_dict()
    assert vals["magnification"] == st.magnification
    assert vals["right_for_left_eye"] == st.right_for_left_eye
    assert "fov_vertical_deg" in vals
