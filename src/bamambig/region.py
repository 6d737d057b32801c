from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

_REGION_RE = re.compile(r"^(?P<chrom>[^:]+)(?::(?P<start>\d+)(?:-(?P<end>\d+))?)?$")


@dataclass(frozen=True)
class Region:
    """A region token as typed by the user (1-based, both ends inclusive)."""

    chrom: str
    start: Optional[int] = None
    end: Optional[int] = None


def parse_region(token: str) -> Region:
    """Parse ``CHROM``, ``CHROM:POS`` or ``CHROM:START-END``.

    A bare chromosome starts at position 1 with no end.
    """
    m = _REGION_RE.match(token.strip())
    if m is None:
        raise ValueError(f"Invalid region: {token!r} (expected CHROM, CHROM:POS or CHROM:START-END)")

    chrom = m.group("chrom")
    start = int(m.group("start")) if m.group("start") is not None else 1
    end = int(m.group("end")) if m.group("end") is not None else None

    if start < 1:
        raise ValueError(f"Region start must be >= 1: {token!r}")
    if end is not None and end < start:
        raise ValueError(f"Region end is before start: {token!r}")
    return Region(chrom=chrom, start=start, end=end)


def resolve_start_stop(start: Optional[int], end: Optional[int]) -> Tuple[int, Optional[int]]:
    """Convert a 1-based inclusive region to a 0-based half-open window.

    A None stop means the window runs to the end of the chromosome.
    """
    if start is None and end is None:
        return 0, None
    if start is None:
        raise ValueError("Region end given without a start")
    return start - 1, end


def resolve_chromosomes(chrom: Optional[str], references: Sequence[str]) -> List[str]:
    """Return the requested chromosome, or every reference in header order."""
    if chrom is not None:
        return [chrom]
    return list(references)
