from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any


def round_half_away(x: float, ndigits: int = 4) -> float:
    """Round to ``ndigits`` decimals with ties going away from zero.

    Python's built-in ``round`` rounds ties to even, which would shift
    proportions such as 0.00125 -> 0.0012.
    """
    scale = 10 ** ndigits
    return math.copysign(math.floor(abs(x) * scale + 0.5), x) / scale


def ensure_outdir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def output_path(output: str | Path, chrom: str, suffix: str) -> Path:
    """Build ``<dir>/<chrom>_<name><suffix>`` from an output prefix."""
    prefix = Path(output)
    return prefix.parent / f"{chrom}_{prefix.name}{suffix}"


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)
