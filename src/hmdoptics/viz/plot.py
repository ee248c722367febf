from __future__ import annotations

from pathlib import Path
from typing import Any

from hmdoptics.api.hmd import HMD
from hmdoptics.core.frustum import FrustumWireframe
from hmdoptics.core.optics import EYES, Eye
from hmdoptics.sim.animation import build_wireframes

EYE_COLORS: dict[Eye, str] = {"left": "tab:red", "right": "tab:blue"}


def plot_hmd_frustums(hmd: HMD, ax: Any = None, wireframes: dict[Eye, FrustumWireframe] | None = None) -> Any:
    """
    Draw both eye frustums and eye positions on a 3D matplotlib axes.

    Hidden wireframes are skipped. World y (up) is drawn on the vertical axis.
    """
    import matplotlib.pyplot as plt  # type: ignore

    if ax is None:
        fig = plt.figure(figsize=(7.0, 5.5), dpi=120)
        ax = fig.add_subplot(projection="3d")
    if wireframes is None:
        wireframes = build_wireframes(hmd)

    for eye in EYES:
        wf = wireframes.get(eye)
        color = EYE_COLORS[eye]
        if wf is not None and wf.visible:
            for seg in wf.segments():
                ax.plot(seg[:, 0], seg[:, 2], seg[:, 1], color=color, linewidth=0.8)
        p = hmd.eye_pose(eye).position
        ax.scatter([p[0]], [p[2]], [p[1]], color=color, s=12, label=f"{eye} eye")

    c = hmd.position
    ax.scatter([c[0]], [c[2]], [c[1]], color="k", marker="s", s=12, label="display")
    ax.set_xlabel("x")
    ax.set_ylabel("z")
    ax.set_zlabel("y")
    m = hmd.state.magnification
    ax.set_title(f"magnification {m:.3g}, near {hmd.state.near:.3g}, far {hmd.state.far:.3g}")
    ax.legend(loc="upper left", fontsize="small")
    return ax


def save_hmd_plot(hmd: HMD, path: Path) -> Path:
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt  # type: ignore

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    ax = plot_hmd_frustums(hmd)
    fig = ax.get_figure()
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path
