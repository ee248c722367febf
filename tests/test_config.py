import json
from pathlib import Path

import pytest

from hmdoptics.config import (
    ConfigValidationError,
    HMDConfig,
    hmd_config_to_dict,
    load_hmd_config,
    parse_hmd_config,
    save_hmd_config,
)
from hmdoptics.params import CARDBOARD


def test_save_and_load_config(tmp_path: Path) -> None:
    cfg = HMDConfig(params=CARDBOARD.with_value("ipd", 0.64), far_margin=4.0, initial_position=(1.0, 1.5, -2.0))
    path = save_hmd_config(tmp_path / "cfg" / "hmd.json", cfg)
    assert json.loads(path.read_text(encoding="utf-8"))["schema_version"] == "hmdoptics.hmd.v0"
    assert load_hmd_config(path) == cfg


def test_parse_config_defaults() -> None:
    data = {"schema_version": "hmdoptics.hmd.v0", "optics": CARDBOARD.optical_values()}
    cfg = parse_hmd_config(data)
    assert cfg == HMDConfig()


@pytest.mark.parametrize(
    "patch",
    [
        {"schema_version": "hmdoptics.hmd.v1"},
        {"optics": {"focal_length": 0.4}},
        {"frustum": {"far_margin": -1.0}},
        {"frustum": {"max_magnification": 0.5}},
        {"frustum": {"max_magnification": float("inf")}},
        {"frustum": {"far_margin": "abc"}},
        {"frustum": {"far_margin": None}},
        {"pose": {"position": [1.0, None, 2.0]}},
        {"pose": {"rotvec": [0.0, "x", 0.0]}},
        {"pose": {"position": [0.0, 1.0]}},
        {"pose": {"rotvec": [0.0, float("inf"), 0.0]}},
        {"mockup": {"lens_diameter": 0.0}},
    ],
)
def test_parse_config_rejects(patch) -> None:
    data = hmd_config_to_dict(HMDConfig())
    data.update(patch)
    with pytest.raises(ConfigValidationError):
        parse_hmd_config(data)


def test_load_config_rejects_malformed_json(tmp_path: Path) -> None:
    path = tmp_path / "hmd.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigValidationError):
        load_hmd_config(path)
