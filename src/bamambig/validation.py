from __future__ import annotations

import logging
from pathlib import Path

import pysam

logger = logging.getLogger(__name__)


class IndexBuildError(RuntimeError):
    """Raised when a missing BAM index cannot be built."""


def check_threshold(value: float) -> float:
    """Ensure a proportion threshold lies in [0, 0.5]."""
    if not 0.0 <= value <= 0.5:
        raise ValueError(f"Threshold must be between 0 and 0.5 (got {value})")
    return value


def check_input_exists(path: str | Path) -> Path:
    p = Path(path)
    if not p.exists():
        raise ValueError(f"File does not exist: {p}")
    return p


def find_bam_index(bam_path: str | Path) -> Path | None:
    bam = Path(bam_path)
    for candidate in (
        bam.with_suffix(bam.suffix + ".bai"),
        bam.with_suffix(".bai"),
        bam.with_suffix(bam.suffix + ".csi"),
    ):
        if candidate.exists():
            return candidate
    return None


def ensure_bam_index(bam_path: str | Path) -> Path:
    """Return the BAM index path, building a .bai with pysam if none exists.

    A failed build raises IndexBuildError so the BAM is never opened unindexed.
    """
    existing = find_bam_index(bam_path)
    if existing is not None:
        return existing

    bam = Path(bam_path)
    logger.warning("No index found for %s; attempting to build one", bam)
    try:
        pysam.index(str(bam))
    except (pysam.utils.SamtoolsError, OSError) as e:
        raise IndexBuildError(
            f"Could not build an index for {bam}: {e}. Run: samtools index {bam}"
        ) from e

    built = find_bam_index(bam)
    if built is None:
        raise IndexBuildError(f"Index build for {bam} reported success but no index was written")
    logger.info("Index built: %s", built)
    return built
