"""Pileup column streaming and per-column accumulation.

The accumulator works on :class:`~bamambig.models.ColumnObservations`, so it
can be fed by any :class:`ColumnSource`: the pysam-backed
:class:`BamColumnSource` in production, or a synthetic in-memory generator
in tests.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Protocol

import pysam

from .models import ColumnObservations, PileupColumn, ReadObservation, SymbolCategory, ThresholdConfig
from .quality import passes_quality_gate
from .validation import ensure_bam_index

logger = logging.getLogger(__name__)

# htslib's own pileup depth cap
DEFAULT_MAX_DEPTH = 8000


class RegionFetchError(RuntimeError):
    """Raised when a region cannot be fetched from the alignment file."""


class ColumnSource(Protocol):
    def references(self) -> List[str]:
        ...

    def columns(self, chrom: str, start: int, stop: Optional[int]) -> Iterator[ColumnObservations]:
        ...


def accumulate_column(column: ColumnObservations, config: ThresholdConfig) -> PileupColumn:
    """Fold the admitted reads of one column into strand-split category tallies."""
    pileup = PileupColumn(pos0=column.pos0)

    for obs in column.observations:
        if not passes_quality_gate(obs, column.depth, config):
            continue

        if obs.is_del or obs.is_refskip:
            if not config.include_indels:
                continue
            if obs.is_del:
                pileup.add(SymbolCategory.DELETION, obs.is_reverse)

        if obs.query_position is not None:
            category = SymbolCategory.from_base(obs.base)
            # N and other IUPAC codes are not tallied
            if category is not None:
                pileup.add(category, obs.is_reverse)

        # Insertion is reported on the base preceding it, independently of the base call
        if obs.indel > 0 and config.include_indels:
            pileup.add(SymbolCategory.INSERTION, obs.is_reverse)

    return pileup


def observation_from_pileupread(
    pread: pysam.PileupRead,
    base: Optional[str] = None,
    base_quality: Optional[int] = None,
) -> ReadObservation:
    """Convert one pysam pileup read.

    ``base`` and ``base_quality`` come from the column-level helpers so the
    read sequence is never decoded in full; both are dropped for deletion and
    reference-skip claims.
    """
    aln = pread.alignment
    qpos = pread.query_position
    if qpos is None:
        base, base_quality = None, None

    return ReadObservation(
        is_reverse=bool(aln.is_reverse),
        mapping_quality=int(aln.mapping_quality),
        is_del=bool(pread.is_del),
        is_refskip=bool(pread.is_refskip),
        query_position=qpos,
        base=base,
        base_quality=base_quality,
        indel=int(pread.indel),
        has_sequence=aln.query_length > 0,
    )


class BamColumnSource:
    """Stream pileup columns from an indexed BAM with pysam.

    Columns are restricted to the requested window up front (``truncate=True``).
    Read filtering is left at htslib defaults; base-quality, overlap and orphan
    filtering are disabled so that quality gating happens in one place.
    """

    def __init__(self, bam_path: str | Path, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        ensure_bam_index(bam_path)
        self.bam_path = str(bam_path)
        self.max_depth = int(max_depth)
        self._bam = pysam.AlignmentFile(self.bam_path, "rb")

    def __enter__(self) -> "BamColumnSource":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        self._bam.close()

    def references(self) -> List[str]:
        return list(self._bam.references)

    def columns(self, chrom: str, start: int, stop: Optional[int]) -> Iterator[ColumnObservations]:
        logger.debug("Fetching %s:%d-%s from %s", chrom, start, stop if stop is not None else "end", self.bam_path)
        try:
            it = self._bam.pileup(
                chrom,
                start,
                stop,
                truncate=True,
                stepper="all",
                min_base_quality=0,
                ignore_overlaps=False,
                ignore_orphans=False,
                max_depth=self.max_depth,
            )
        except (ValueError, KeyError) as e:
            raise RegionFetchError(f"Failed to fetch region {chrom}:{start + 1}-{stop or ''}: {e}") from e

        for col in it:
            # Aligned with col.pileups; absent qualities come back as 255
            bases = col.get_query_sequences(mark_matches=False, mark_ends=False, add_indels=False)
            quals = col.get_query_qualities()
            yield ColumnObservations(
                pos0=int(col.reference_pos),
                depth=int(col.nsegments),
                observations=[
                    observation_from_pileupread(p, b, int(q))
                    for p, b, q in zip(col.pileups, bases, quals)
                ],
            )


@contextmanager
def open_column_source(
    bam_path: Optional[str | Path] = None,
    source: Optional[ColumnSource] = None,
) -> Iterator[ColumnSource]:
    """Yield ``source`` as-is, or open (and later close) a BAM-backed source."""
    if source is not None:
        yield source
        return
    if bam_path is None:
        raise ValueError("Either a BAM path or a column source is required")
    with BamColumnSource(bam_path) as bam_source:
        yield bam_source
