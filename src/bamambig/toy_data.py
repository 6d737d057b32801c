from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pysam

from .utils import ensure_outdir, write_json

TOY_CONTIG = "chr1"
TOY_CONTIG_LENGTH = 1000

# All reads start at position 5 (1-based) on the forward strand.
# Column 5 carries 3 A + 3 G; column 14 carries 1 deletion, 2 insertions and 5 G.
TOY_READS: List[str] = [
    # deletion at the end
    "read1\t3\tchr1\t5\t60\t9M1D\tchr1\t80\t10\tGGGGGGGGG\tFFFFFFFFF",
    # 2 bp insertion at the end
    "read2\t3\tchr1\t5\t60\t10M2I\tchr1\t80\t10\tGGGGGGGGGGAA\tFFFFFFFFFFFF",
    "read3\t3\tchr1\t5\t60\t10M2I\tchr1\t80\t10\tGGGGGGGGGGAA\tFFFFFFFFFFFF",
    # leading A mismatch
    "read4\t3\tchr1\t5\t60\t10M\tchr1\t80\t10\tAGGGGGGGGG\tFFFFFFFFFF",
    "read5\t3\tchr1\t5\t60\t10M\tchr1\t80\t10\tAGGGGGGGGG\tFFFFFFFFFF",
    "read6\t3\tchr1\t5\t60\t10M\tchr1\t80\t10\tAGGGGGGGGG\tFFFFFFFFFF",
]


def toy_header(contig: str = TOY_CONTIG, length: int = TOY_CONTIG_LENGTH) -> pysam.AlignmentHeader:
    return pysam.AlignmentHeader.from_dict(
        {
            "HD": {"VN": "1.6", "SO": "coordinate"},
            "SQ": [{"SN": contig, "LN": length}],
        }
    )


def write_sam_records(
    bam_path: str | Path,
    sam_lines: Sequence[str],
    *,
    header: Optional[pysam.AlignmentHeader] = None,
    index: bool = True,
) -> Path:
    """Write SAM text lines to a coordinate-sorted BAM (and index it)."""
    bam_path = Path(bam_path)
    bam_path.parent.mkdir(parents=True, exist_ok=True)
    header = header if header is not None else toy_header()

    reads = [pysam.AlignedSegment.fromstring(line, header) for line in sam_lines]
    reads.sort(key=lambda r: (r.reference_id, r.reference_start))

    with pysam.AlignmentFile(str(bam_path), "wb", header=header) as bam:
        for r in reads:
            bam.write(r)

    if index:
        pysam.index(str(bam_path))
    return bam_path


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny indexed BAM with one SNV-like and one indel-rich column.

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)
    bam_path = write_sam_records(outdir_p / "toy.bam", TOY_READS)

    summary = {
        "bam": str(bam_path),
        "contig": TOY_CONTIG,
        "outdir": str(outdir_p),
    }
    write_json(outdir_p / "toy_summary.json", summary)
    return summary
