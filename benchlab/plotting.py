"""Plot measured pH across a session.

Plotting receives a finished report and renders it; no chemistry is computed
here. Bars are colored with the indicator band of each measurement so the
figure matches what the learner saw on the pH paper.
"""

from __future__ import annotations

import os

import matplotlib.pyplot as plt
import numpy as np

from .chemistry.indicator import BAND_HEX, color_band_for_ph
from .results import ResultsReport

FIGURE_DPI = 300


def setup_plot_style() -> None:
    """Apply a serif, print-friendly matplotlib style."""
    plt.rcParams.update(
        {
            "font.family": "serif",
            "axes.spines.top": False,
            "axes.spines.right": False,
            "axes.linewidth": 1.0,
            "grid.linestyle": ":",
            "grid.alpha": 0.25,
            "savefig.dpi": FIGURE_DPI,
        }
    )


def plot_measurements(report: ResultsReport, output_dir: str = "output") -> str:
    """Render one bar per measurement label on the 0-14 pH scale.

    Args:
        report (ResultsReport): Report holding the measurement record.
        output_dir (str, optional): Directory for the PNG. Defaults to
            ``"output"``.

    Returns:
        str: Path to the saved PNG.

    Raises:
        ValueError: If the report has no measurements.
    """
    if not report.measurements:
        raise ValueError("No measurements recorded; nothing to plot.")

    setup_plot_style()
    os.makedirs(output_dir, exist_ok=True)

    labels = list(report.measurements.keys())
    values = np.asarray(list(report.measurements.values()), dtype=float)
    colors = [BAND_HEX[color_band_for_ph(v)] for v in values]

    fig, ax = plt.subplots(figsize=(6.0, 3.6))
    x = np.arange(len(labels))
    ax.bar(x, values, color=colors, edgecolor="black", linewidth=0.8)
    for xi, v in zip(x, values):
        ax.text(xi, v + 0.2, f"{v:.2f}", ha="center", va="bottom", fontsize=10)
    ax.axhline(7.0, color="#4A4A4A", linestyle="--", linewidth=0.9)
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=15, ha="right")
    ax.set_ylim(0, 14)
    ax.set_ylabel("pH")
    ax.grid(True, axis="y")

    path = os.path.join(output_dir, "measured_ph.png")
    fig.tight_layout()
    fig.savefig(path, dpi=FIGURE_DPI, bbox_inches="tight")
    plt.close(fig)
    return path
