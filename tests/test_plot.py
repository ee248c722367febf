from __future__ import annotations

from pathlib import Path

import pytest

from hmdoptics.api.hmd import HMD


def test_save_hmd_plot(tmp_path: Path) -> None:
    pytest.importorskip("matplotlib")
    from hmdoptics.viz.plot import save_hmd_plot

    out = save_hmd_plot(HMD(), tmp_path / "frustums.png")
    assert out.exists()
    assert out.stat().st_size > 0


def test_hidden_wireframe_is_not_drawn() -> None:
    pytest.importorskip("matplotlib")
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    from hmdoptics.sim.animation import build_wireframes
    from hmdoptics.viz.plot import plot_hmd_frustums

    hmd = HMD()
    wfs = build_wireframes(hmd)
    wfs["right"].set_visibility(False)
    fig = plt.figure()
    ax = plot_hmd_frustums(hmd, ax=fig.add_subplot(projection="3d"), wireframes=wfs)
    assert len(ax.lines) == 12
    plt.close(fig)
