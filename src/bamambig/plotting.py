from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt
import numpy as np

from .models import ChromosomeReport, DepthSeries, SymbolCategory

logger = logging.getLogger(__name__)

# Stacking order, bottom to top
CATEGORY_COLOURS: Dict[SymbolCategory, str] = {
    SymbolCategory.A: "#60935D",
    SymbolCategory.C: "#1B5299",
    SymbolCategory.G: "#F5BB00",
    SymbolCategory.T: "#E63946",
    SymbolCategory.DELETION: "#000000",
    SymbolCategory.INSERTION: "#6A041D",
}

_FIGSIZE = (20, 10)
_DPI = 100


def plot_ambiguous_positions(
    report: ChromosomeReport,
    out_png: str | Path,
    *,
    labels: bool = True,
    title: str = "Ambiguous Bases",
) -> None:
    """Stacked bar chart of category proportions at every reported position."""
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    xs: List[str] = [str(p) for p in report.positions]
    bottom = np.zeros(len(xs), dtype=float)

    fig, ax = plt.subplots(figsize=_FIGSIZE)
    for category, colour in CATEGORY_COLOURS.items():
        values = np.array([props.get(category, 0.0) for props in report.positions.values()], dtype=float)
        bars = ax.bar(xs, values, bottom=bottom, color=colour, label=category.symbol)
        if labels and len(xs) > 0:
            ax.bar_label(
                bars,
                labels=[f"{v:.2f}" if v > 0 else "" for v in values],
                label_type="center",
                color="white",
                fontsize=8,
            )
        bottom += values

    ax.set_title(title)
    ax.set_xlabel("Position")
    ax.set_ylabel("Proportion")
    if xs:
        ax.legend(loc="upper right")
    plt.xticks(rotation=90)
    fig.tight_layout()
    fig.savefig(out_png, dpi=_DPI)
    plt.close(fig)
    logger.info("Plot written: %s", out_png)


def plot_depth(
    series: DepthSeries,
    out_png: str | Path,
    *,
    title: str = "Depth",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=_FIGSIZE)
    ax.plot(series.positions, series.depths, label="Depth")
    ax.set_title(f"{title} ({series.chrom})")
    ax.set_xlabel("Position")
    ax.set_ylabel("Depth")
    fig.tight_layout()
    fig.savefig(out_png, dpi=_DPI)
    plt.close(fig)
    logger.info("Plot written: %s", out_png)
