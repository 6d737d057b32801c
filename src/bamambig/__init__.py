"""bamambig: find and plot ambiguous pileup columns in BAM files.

Public API is intentionally small; most users should use the CLI:

    bamambig ambig sample.bam chr1:1-16569 -o sample

"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.3.0"
