# src/alphasim/analysis/figures.py
from __future__ import annotations

"""
Figures for the summary table.

Draws only from the summary DataFrame: one panel per correlation,
x = number of items, y = share of replications with alpha >= threshold,
one line per sample size. Missing percentages are left as gaps.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import matplotlib
import numpy as np
import pandas as pd

matplotlib.use("Agg")  # headless
import matplotlib.pyplot as plt

from .summary import PLOT_COLUMNS

__all__ = ["FigureStyle", "plot_percentage_good"]


@dataclass(frozen=True)
class FigureStyle:
    title: str = "Share of replications with Cronbach's alpha >= threshold"
    show_grid: bool = True
    ci_alpha: float = 0.15  # fill transparency for CI band
    panel_width: float = 3.6
    panel_height: float = 3.4
    cmap: str = "viridis"


def _savefig(fig: plt.Figure, out_path: Path, dpi: int = 250) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    if out_path.suffix.lower() == ".pdf":
        fig.savefig(out_path, bbox_inches="tight")
    else:
        fig.savefig(out_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)


def plot_percentage_good(
    summary: pd.DataFrame,
    out_path: Path,
    *,
    threshold: Optional[float] = None,
    style: FigureStyle = FigureStyle(),
) -> Path:
    """Write the percentage-good figure to ``out_path`` and return the path."""
    missing = [c for c in PLOT_COLUMNS if c not in summary.columns]
    if missing:
        raise ValueError(f"summary is missing required columns: {missing}")
    if summary.empty:
        raise ValueError("summary is empty; nothing to plot")

    out_path = Path(out_path)
    correlations = sorted(summary["correlation"].unique())
    sample_sizes = sorted(summary["sample_size"].unique())
    colors = plt.get_cmap(style.cmap)(np.linspace(0.0, 0.9, len(sample_sizes)))
    has_ci = {"percentage_ci_low", "percentage_ci_high"} <= set(summary.columns)

    fig, axes = plt.subplots(
        1,
        len(correlations),
        figsize=(style.panel_width * len(correlations), style.panel_height),
        sharey=True,
        squeeze=False,
    )
    for ax, r in zip(axes[0], correlations):
        panel = summary[summary["correlation"] == r]
        for color, n in zip(colors, sample_sizes):
            d = panel[panel["sample_size"] == n].sort_values("item_count")
            if d.empty:
                continue
            x = d["item_count"].to_numpy(dtype=float)
            y = d["percentage"].to_numpy(dtype=float)
            ax.plot(x, y, marker="o", ms=3, lw=1.4, color=color, label=f"N={n}")
            if has_ci:
                ax.fill_between(
                    x,
                    d["percentage_ci_low"].to_numpy(dtype=float),
                    d["percentage_ci_high"].to_numpy(dtype=float),
                    color=color,
                    alpha=style.ci_alpha,
                    lw=0,
                )
        ax.set_title(f"inter-item r = {r:.2f}")
        ax.set_xlabel("number of items")
        ax.set_ylim(-0.02, 1.02)
        if style.show_grid:
            ax.grid(True, alpha=0.3)
    axes[0][0].set_ylabel("proportion alpha >= threshold")
    axes[0][-1].legend(title="sample size", fontsize=8, loc="lower right")

    title = style.title if threshold is None else f"{style.title} ({threshold:.2f})"
    fig.suptitle(title)
    _savefig(fig, out_path)
    return out_path
