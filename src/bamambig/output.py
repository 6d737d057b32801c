from __future__ import annotations

import logging
from pathlib import Path

from .models import ChromosomeReport, DepthSeries, SymbolCategory

logger = logging.getLogger(__name__)


def write_bed(report: ChromosomeReport, path: str | Path) -> Path:
    """One BED row per reported position: chrom, pos, pos+1, name (= chrom)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wt", encoding="utf-8") as fh:
        for pos in report.positions:
            fh.write(f"{report.chrom}\t{pos}\t{pos + 1}\t{report.chrom}\n")
    logger.info("BED written: %s (%d rows)", path, len(report.positions))
    return path


def write_tsv(report: ChromosomeReport, path: str | Path) -> Path:
    """Proportion table: one row per reported position, one column per category."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    categories = list(SymbolCategory)
    with open(path, "wt", encoding="utf-8") as fh:
        fh.write("\t".join(["chrom", "pos"] + [c.symbol for c in categories]) + "\n")
        for pos, proportions in report.positions.items():
            values = [f"{proportions.get(c, 0.0):.4f}" for c in categories]
            fh.write("\t".join([report.chrom, str(pos)] + values) + "\n")
    logger.info("TSV written: %s", path)
    return path


def write_depth_tsv(series: DepthSeries, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wt", encoding="utf-8") as fh:
        fh.write("chrom\tpos\tdepth\n")
        for pos, depth in zip(series.positions, series.depths):
            fh.write(f"{series.chrom}\t{pos}\t{depth}\n")
    return path
