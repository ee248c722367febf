from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

from hmdoptics.api.hmd import HMD
from hmdoptics.config import ConfigValidationError, HMDConfig, load_hmd_config, save_hmd_config
from hmdoptics.core.frustum import FrustumReconstructionError, frustum_corners
from hmdoptics.core.optics import EYES, compute_optical_state
from hmdoptics.logging_config import setup_logging
from hmdoptics.params import ParameterValidationError, ParamName, resolve_param_name


def _parse_assignment(text: str) -> tuple[ParamName, float]:
    if "=" not in text:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    name, value = text.split("=", 1)
    try:
        return resolve_param_name(name.strip()), float(value)
    except (ParameterValidationError, ValueError) as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _add_hmd_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, default=None, help="HMD config JSON (hmdoptics.hmd.v0).")
    p.add_argument(
        "--set",
        dest="assignments",
        type=_parse_assignment,
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Override one parameter (repeatable), e.g. --set ipd=0.64.",
    )


def _build_hmd(args: argparse.Namespace) -> HMD:
    cfg = load_hmd_config(args.config) if args.config is not None else HMDConfig()
    hmd = HMD(config=cfg)
    for name, value in args.assignments:
        hmd.set_parameter(name, value)
    return hmd


def _describe(hmd: HMD) -> dict:
    return {
        "params": hmd.display_params(),
        "derived": hmd.display_calculated_values(),
        "degenerate": hmd.state.degenerate,
        "eyes": {eye: hmd.eye_pose(eye).position.tolist() for eye in EYES},
    }


def _frustums(hmd: HMD, eyes: tuple[str, ...]) -> dict:
    out: dict = {"degenerate": hmd.state.degenerate, "corners": {}}
    if not hmd.renderable:
        return out
    for eye in eyes:
        proj = hmd.projections.for_eye(eye)  # type: ignore[arg-type]
        corners = frustum_corners(proj, hmd.view_matrix(eye))  # type: ignore[arg-type]
        out["corners"][eye] = np.round(corners, 9).tolist()
    return out


def _sweep(hmd: HMD, name: ParamName, start: float, stop: float, num: int) -> list[dict]:
    rows = []
    for v in np.linspace(start, stop, num):
        params = hmd.params.with_value(name, float(v))
        st = compute_optical_state(
            params, far_margin=hmd.config.far_margin, max_magnification=hmd.config.max_magnification
        )
        rows.append(
            {
                name.value: float(v),
                "magnification": st.magnification,
                "near": st.near,
                "top": st.top,
                "fov_vertical_deg": st.fov_vertical_deg,
                "fov_horizontal_deg": st.fov_horizontal_deg,
                "horizontal_overlap": st.horizontal_overlap(),
                "degenerate": st.degenerate,
            }
        )
    return rows


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="hmdoptics")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    desc = sub.add_parser("describe", help="Print input parameters and derived optics as JSON.")
    _add_hmd_args(desc)

    fr = sub.add_parser("frustum", help="Print world-space frustum corners per eye as JSON.")
    _add_hmd_args(fr)
    fr.add_argument("--eye", default="both", choices=["left", "right", "both"])

    sw = sub.add_parser("sweep", help="Sweep one parameter and print derived optics (JSON lines).")
    _add_hmd_args(sw)
    sw.add_argument("--param", type=resolve_param_name, required=True)
    sw.add_argument("--start", type=float, required=True)
    sw.add_argument("--stop", type=float, required=True)
    sw.add_argument("--num", type=int, default=21)

    pl = sub.add_parser("plot", help="Render both eye frustums to an image (matplotlib).")
    _add_hmd_args(pl)
    pl.add_argument("--out", type=Path, required=True)

    wc = sub.add_parser("write-config", help="Write the default HMD config JSON.")
    wc.add_argument("--out", type=Path, required=True)

    args = parser.parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        if args.cmd == "write-config":
            print(f"Wrote {save_hmd_config(args.out, HMDConfig())}")
            return 0

        hmd = _build_hmd(args)

        if args.cmd == "describe":
            print(json.dumps(_describe(hmd), indent=2, sort_keys=True))
            return 0

        if args.cmd == "frustum":
            eyes = EYES if args.eye == "both" else (args.eye,)
            print(json.dumps(_frustums(hmd, eyes), indent=2, sort_keys=True))
            return 0

        if args.cmd == "sweep":
            if args.num < 2:
                raise ParameterValidationError("--num must be >= 2")
            for row in _sweep(hmd, args.param, args.start, args.stop, args.num):
                print(json.dumps(row, sort_keys=True))
            return 0

        if args.cmd == "plot":
            from hmdoptics.viz.plot import save_hmd_plot

            print(f"Wrote {save_hmd_plot(hmd, args.out)}")
            return 0
    except (ParameterValidationError, ConfigValidationError, FrustumReconstructionError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    raise AssertionError(f"Unhandled cmd: {args.cmd}")
