from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from .models import ChromosomeReport, ColumnObservations, PileupColumn, SymbolCategory, ThresholdConfig
from .output import write_bed, write_tsv
from .pileup import ColumnSource, accumulate_column, open_column_source
from .plotting import plot_ambiguous_positions
from .region import resolve_chromosomes, resolve_start_stop
from .report import render_report
from .utils import ensure_outdir, output_path, round_half_away, write_json

logger = logging.getLogger(__name__)


def select_major_variant(column: PileupColumn) -> SymbolCategory:
    """Category with the highest count; on a tie the later category in scan order wins."""
    major = SymbolCategory.A
    best = -1
    for category in SymbolCategory:
        n = column.count(category)
        if n >= best:
            major, best = category, n
    return major


def _strand_biased(column: PileupColumn, major: SymbolCategory, threshold: float) -> Optional[SymbolCategory]:
    """Return the first minor category whose forward fraction is outside [t, 1 - t]."""
    for category in SymbolCategory:
        if category is major:
            continue
        ratio = column.strand_count(category).forward_ratio()
        if ratio is None:
            continue
        if ratio < threshold or ratio > 1.0 - threshold:
            return category
    return None


def filter_column(
    column: PileupColumn,
    config: ThresholdConfig,
) -> Optional[Tuple[int, Dict[SymbolCategory, float]]]:
    """Decide whether a column is ambiguous enough to report.

    Returns ``(1-based position, {category: proportion})`` for an accepted
    column and None otherwise. Proportions are rounded half away from zero
    to four decimals; zero-count categories are omitted.
    """
    if not column.is_ambiguous():
        return None

    total_count = column.total
    major = select_major_variant(column)

    minor_sum = total_count - column.count(major)
    if minor_sum < config.minor_allele_depth_floor:
        logger.debug("pos %d: minor depth %d below floor", column.pos0 + 1, minor_sum)
        return None

    biased = _strand_biased(column, major, config.strand_bias_threshold)
    if biased is not None:
        logger.debug("pos %d: strand bias in minor category %s", column.pos0 + 1, biased.symbol)
        return None

    proportions = {
        category: round_half_away(column.count(category) / total_count, 4)
        for category in column.nonzero_categories()
    }
    minor_proportion = sum(p for category, p in proportions.items() if category is not major)

    if minor_proportion > config.ambiguity_threshold:
        return column.pos0 + 1, proportions
    return None


def build_report(
    chrom: str,
    columns: Iterable[ColumnObservations],
    config: ThresholdConfig,
    *,
    progress: bool = False,
) -> ChromosomeReport:
    """Run every streamed column through gating, accumulation and filtering."""
    report = ChromosomeReport(chrom=chrom)

    it: Iterable[ColumnObservations] = columns
    if progress:
        it = tqdm(it, unit="column", desc=f"Scanning {chrom}")

    for col in it:
        report.columns_seen += 1
        pileup = accumulate_column(col, config)
        if not pileup.is_ambiguous():
            continue
        report.columns_ambiguous += 1

        result = filter_column(pileup, config)
        if result is None:
            continue
        pos1, proportions = result
        report.positions[pos1] = proportions
        report.columns_reported += 1

    return report


def run_ambig(
    *,
    config: ThresholdConfig,
    output: str | Path,
    bam_path: Optional[str] = None,
    source: Optional[ColumnSource] = None,
    chrom: Optional[str] = None,
    start: Optional[int] = None,
    end: Optional[int] = None,
    labels: bool = True,
    plot: bool = True,
    bed: bool = False,
    tsv: bool = False,
    html_report: bool = False,
    version: str = "",
    progress: bool = True,
) -> Dict[str, object]:
    """Scan one BAM for ambiguous positions and write the requested outputs.

    ``start``/``end`` are 1-based inclusive; ``chrom=None`` scans every
    reference in the BAM header. A ready-made ``source`` takes
    precedence over ``bam_path`` and is left open.
    """
    t0 = time.time()
    start0, stop = resolve_start_stop(start, end)
    ensure_outdir(Path(output).parent)

    chromosomes: List[Dict[str, object]] = []
    reports: List[ChromosomeReport] = []
    with open_column_source(bam_path, source) as source:
        targets = resolve_chromosomes(chrom, source.references())
        logger.info("Chromosomes: %s", ", ".join(targets))

        for target in targets:
            logger.info("Processing %s", target)
            report = build_report(target, source.columns(target, start0, stop), config, progress=progress)
            reports.append(report)

            outputs: Dict[str, str] = {}
            if plot:
                png = output_path(output, target, ".png")
                plot_ambiguous_positions(report, png, labels=labels)
                outputs["plot"] = str(png)
            if bed:
                bed_path = output_path(output, target, ".bed")
                write_bed(report, bed_path)
                outputs["bed"] = str(bed_path)
            if tsv:
                tsv_path = output_path(output, target, ".tsv")
                write_tsv(report, tsv_path)
                outputs["tsv"] = str(tsv_path)

            logger.info(
                "%s: %d columns, %d ambiguous, %d reported",
                target,
                report.columns_seen,
                report.columns_ambiguous,
                report.columns_reported,
            )
            chromosomes.append(
                {
                    "chrom": target,
                    "columns_seen": report.columns_seen,
                    "columns_ambiguous": report.columns_ambiguous,
                    "columns_reported": report.columns_reported,
                    "outputs": outputs,
                }
            )

    summary: Dict[str, object] = {
        "bam_path": str(bam_path) if bam_path is not None else None,
        "region": {"chrom": chrom, "start": start, "end": end},
        "thresholds": {
            "ambiguity_threshold": config.ambiguity_threshold,
            "strand_bias_threshold": config.strand_bias_threshold,
            "base_quality_floor": config.base_quality_floor,
            "map_quality_floor": config.map_quality_floor,
            "depth_floor": config.depth_floor,
            "minor_allele_depth_floor": config.minor_allele_depth_floor,
            "include_indels": config.include_indels,
        },
        "chromosomes": chromosomes,
        "runtime_seconds": float(time.time() - t0),
    }

    prefix = Path(output)
    write_json(prefix.parent / f"{prefix.name}_summary.json", summary)
    if html_report:
        summary["report"] = str(
            render_report(
                out_html=prefix.parent / f"{prefix.name}_report.html",
                version=version,
                summary=summary,
                reports=reports,
            )
        )
    return summary
