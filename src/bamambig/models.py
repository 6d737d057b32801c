from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence


class SymbolCategory(enum.Enum):
    """Symbols tallied per pileup column.

    Member order is significant: it is the scan order used when picking the
    major variant.
    """

    A = "A"
    T = "T"
    C = "C"
    G = "G"
    DELETION = "-"
    INSERTION = "+"

    @property
    def symbol(self) -> str:
        return self.value

    @classmethod
    def from_base(cls, base: Optional[str]) -> Optional["SymbolCategory"]:
        """Map a read base to its category; anything but A/C/G/T gives None."""
        if not base:
            return None
        return _BASE_TO_CATEGORY.get(base.upper())


_BASE_TO_CATEGORY: Dict[str, SymbolCategory] = {
    "A": SymbolCategory.A,
    "T": SymbolCategory.T,
    "C": SymbolCategory.C,
    "G": SymbolCategory.G,
}


@dataclass
class StrandCount:
    total: int = 0
    forward: int = 0
    reverse: int = 0

    def add(self, is_reverse: bool) -> None:
        self.total += 1
        if is_reverse:
            self.reverse += 1
        else:
            self.forward += 1

    def forward_ratio(self) -> Optional[float]:
        if self.total == 0:
            return None
        return self.forward / self.total


@dataclass
class PileupColumn:
    """Strand-split tallies of every symbol category at one reference position."""

    pos0: int
    counts: Dict[SymbolCategory, StrandCount] = field(
        default_factory=lambda: {c: StrandCount() for c in SymbolCategory}
    )

    def strand_count(self, category: SymbolCategory) -> StrandCount:
        if not isinstance(category, SymbolCategory):
            raise TypeError(f"Not a symbol category: {category!r}")
        return self.counts[category]

    def count(self, category: SymbolCategory) -> int:
        return self.strand_count(category).total

    def add(self, category: SymbolCategory, is_reverse: bool) -> None:
        self.strand_count(category).add(is_reverse)

    @property
    def total(self) -> int:
        return sum(sc.total for sc in self.counts.values())

    def nonzero_categories(self) -> List[SymbolCategory]:
        return [c for c in SymbolCategory if self.counts[c].total > 0]

    def is_ambiguous(self) -> bool:
        return len(self.nonzero_categories()) > 1


@dataclass(frozen=True)
class ThresholdConfig:
    """Filtering thresholds for one run. Validated once, on construction.

    Attributes
    ----------
    ambiguity_threshold:
        Minor-allele proportion sum must be strictly greater than this.
    strand_bias_threshold:
        A minor category whose forward-read fraction falls outside
        ``[t, 1 - t]`` rejects the whole column.
    base_quality_floor, map_quality_floor:
        Per-read admission floors (Phred).
    depth_floor:
        Columns with a raw depth below this admit no reads.
    minor_allele_depth_floor:
        Minimum summed count of all non-major categories.
    include_indels:
        Count deletions and insertions as categories.
    """

    ambiguity_threshold: float = 0.1
    strand_bias_threshold: float = 0.1
    base_quality_floor: int = 20
    map_quality_floor: int = 60
    depth_floor: int = 100
    minor_allele_depth_floor: int = 20
    include_indels: bool = True

    def __post_init__(self) -> None:
        for name in ("ambiguity_threshold", "strand_bias_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 0.5:
                raise ValueError(f"{name} must be between 0 and 0.5 (got {value})")
        for name in ("base_quality_floor", "map_quality_floor", "depth_floor", "minor_allele_depth_floor"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0 (got {getattr(self, name)})")


@dataclass(frozen=True)
class ReadObservation:
    """One read as seen at one pileup column.

    ``query_position`` is None for deletion and reference-skip claims.
    ``base_quality`` is None when no quality is known for the base.
    ``indel`` is positive when an insertion follows this position.
    """

    is_reverse: bool
    mapping_quality: int
    is_del: bool = False
    is_refskip: bool = False
    query_position: Optional[int] = None
    base: Optional[str] = None
    base_quality: Optional[int] = None
    indel: int = 0
    has_sequence: bool = True


@dataclass(frozen=True)
class ColumnObservations:
    """A streamed pileup column: position, raw depth, and its reads."""

    pos0: int
    depth: int
    observations: Sequence[ReadObservation]


@dataclass
class ChromosomeReport:
    chrom: str
    positions: Dict[int, Dict[SymbolCategory, float]] = field(default_factory=dict)
    columns_seen: int = 0
    columns_ambiguous: int = 0
    columns_reported: int = 0


@dataclass
class DepthSeries:
    chrom: str
    positions: List[int] = field(default_factory=list)
    depths: List[int] = field(default_factory=list)
