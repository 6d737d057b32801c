from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .models import ColumnObservations, DepthSeries
from .output import write_depth_tsv
from .pileup import ColumnSource, open_column_source
from .plotting import plot_depth
from .region import resolve_chromosomes, resolve_start_stop
from .utils import ensure_outdir, output_path

logger = logging.getLogger(__name__)


def extract_depth_series(chrom: str, columns: Iterable[ColumnObservations]) -> DepthSeries:
    """Collect (1-based position, raw depth) for every streamed column.

    Raw depth counts every read the column source placed at the position,
    including reads the quality gate would reject.
    """
    series = DepthSeries(chrom=chrom)
    for col in columns:
        series.positions.append(col.pos0 + 1)
        series.depths.append(col.depth)
    return series


def run_depth(
    *,
    output: str | Path,
    bam_path: Optional[str] = None,
    source: Optional[ColumnSource] = None,
    chrom: Optional[str] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
    tsv: bool = False,
) -> List[Dict[str, object]]:
    start0, stop = resolve_start_stop(start, end)
    ensure_outdir(Path(output).parent)

    results: List[Dict[str, object]] = []
    with open_column_source(bam_path, source) as source:
        targets = resolve_chromosomes(chrom, source.references())
        logger.info("Chromosomes: %s", ", ".join(targets))
        for target in targets:
            series = extract_depth_series(target, source.columns(target, start0, stop))
            png = output_path(output, target, ".png")
            plot_depth(series, png)
            entry: Dict[str, object] = {"chrom": target, "positions": len(series.positions), "plot": str(png)}
            if tsv:
                entry["tsv"] = str(write_depth_tsv(series, output_path(output, target, ".depth.tsv")))
            results.append(entry)
    return results
