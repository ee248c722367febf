import math

import pytest

from hmdoptics.params import (
    CARDBOARD,
    ParameterValidationError,
    ParamName,
    parse_optical_params,
    slider_params,
)


def test_parse_optical_params_ok():
    p = parse_optical_params(
        {
            "focal_length": 0.4,
            "ipd": 0.68,
            "eye_relief": 0.18,
            "lens_to_display_distance": 0.39,
            "display_width": 1.2096,
            "display_height": 0.6803,
        },
        {"lens_diameter": 0.3},
    )
    assert p.focal_length == 0.4
    assert p.lens_diameter == 0.3
    assert p.eye_diameter == CARDBOARD.eye_diameter


def test_parse_optical_params_rejects_missing_value():
    with pytest.raises(ParameterValidationError):
        parse_optical_params({"focal_length": 0.4, "ipd": 0.68})


def test_parse_optical_params_rejects_unknown_key():
    values = CARDBOARD.optical_values()
    values["zoom"] = 2.0
    with pytest.raises(ParameterValidationError):
        parse_optical_params(values)


@pytest.mark.parametrize("bad", [0.0, -0.1, math.nan, math.inf, "abc", None, True])
def test_with_value_rejects_invalid(bad):
    with pytest.raises(ParameterValidationError):
        CARDBOARD.with_value(ParamName.IPD, bad)


def test_with_value_accepts_string_names_and_keeps_original():
    p = CARDBOARD.with_value("ipd", 0.64)
    assert p.ipd == 0.64
    assert CARDBOARD.ipd == 0.68
    with pytest.raises(ParameterValidationError):
        CARDBOARD.with_value("not_a_param", 1.0)


def test_mockup_params_do_not_affect_optics():
    assert ParamName.FOCAL_LENGTH.affects_optics
    assert not ParamName.LENS_DIAMETER.affects_optics
    assert not ParamName.DISPLAY_DEPTH.affects_optics


def test_slider_params_cover_optical_params():
    sliders = slider_params()
    assert set(sliders) == set(CARDBOARD.optical_values())
    for spec in sliders.values():
        assert 0 < spec["min"] < spec["max"]
        assert spec["step"] > 0
