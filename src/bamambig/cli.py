from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pysam

from . import __version__
from .ambiguity import run_ambig
from .depth import run_depth
from .models import ThresholdConfig
from .region import Region, parse_region, resolve_chromosomes
from .toy_data import make_toy_data
from .utils import output_path
from .validation import check_input_exists, check_threshold, find_bam_index


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    try:
        check_input_exists(p)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e
    return p


def _threshold(s: str) -> float:
    try:
        return check_threshold(float(s))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _region(s: str) -> Region:
    try:
        return parse_region(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _log_path(output: str, name: str) -> Path:
    return Path(output).parent / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    sys.stderr.write(f"{err.__class__.__name__}: {err}\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("input", type=_path_exists, help="Input BAM (coordinate sorted).")
    p.add_argument(
        "region",
        nargs="?",
        type=_region,
        default=None,
        help="Region as CHROM, CHROM:POS or CHROM:START-END (1-based, inclusive). Default: every chromosome.",
    )
    p.add_argument(
        "-o",
        "--output",
        default="ambig",
        help="Output prefix; files are written as <dir>/<chrom>_<name>.<ext>.",
    )
    p.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="bamambig",
        description="bamambig: visualise ambiguous bases and read depth in a BAM file.",
    )
    p.add_argument("--version", action="version", version=f"bamambig {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser("quickstart", help="Print ready-to-run recipes for common scenarios.")

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser("make-toy-data", help="Generate a tiny indexed BAM for demos/tests.")
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")

    # -----------------
    # depth
    # -----------------
    d = sub.add_parser("depth", help="Plot raw read depth along a region.")
    _add_common(d)
    d.add_argument("--tsv", action="store_true", help="Also write the depth series as TSV.")

    # -----------------
    # ambig
    # -----------------
    a = sub.add_parser("ambig", help="Find and plot ambiguous positions.")
    _add_common(a)
    a.add_argument(
        "-t",
        "--threshold",
        type=_threshold,
        default=0.1,
        help="Minor-allele proportion sum must exceed this (0-0.5).",
    )
    a.add_argument("-q", "--min-BQ", dest="min_bq", type=int, default=20, help="Minimum base quality.")
    a.add_argument("-Q", "--min-MQ", dest="min_mq", type=int, default=60, help="Minimum mapping quality.")
    a.add_argument("-d", "--depth", type=int, default=100, help="Minimum total depth of a column.")
    a.add_argument(
        "--minor-depth",
        type=int,
        default=20,
        help="Minimum summed depth of the minor alleles.",
    )
    a.add_argument(
        "-s",
        "--strand-bias",
        type=_threshold,
        default=0.1,
        help="Minor alleles with a forward-read fraction outside [s, 1-s] reject the position (0-0.5).",
    )
    a.add_argument("--no-indel", action="store_true", help="Do not count insertions and deletions.")
    a.add_argument("--no-label", action="store_true", help="Do not label bars with proportions.")
    a.add_argument("--no-plot", action="store_true", help="Do not write the bar chart.")
    a.add_argument("--bed", action="store_true", help="Write reported positions as BED.")
    a.add_argument("--tsv", action="store_true", help="Write reported proportions as TSV.")
    a.add_argument("--report", action="store_true", help="Write an HTML report.")

    return p


# -----------------
# Command handlers
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "bamambig quickstart (copy/paste):",
        "",
        "1) Ambiguous positions in one region, with BED output:",
        "   bamambig ambig sample.bam chrM:1-16569 -o results/sample --bed",
        "   Outputs: results/chrM_sample.png, results/chrM_sample.bed",
        "",
        "2) Low-coverage data (relax depth floors):",
        "   bamambig ambig sample.bam chr1:1000-2000 -d 20 --minor-depth 3 -t 0.2",
        "",
        "3) Depth profile of every chromosome:",
        "   bamambig depth sample.bam -o results/depth",
        "",
        "Tip: use --dry-run to validate inputs and list planned outputs.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def _region_parts(region: Optional[Region]) -> tuple[Optional[str], Optional[int], Optional[int]]:
    if region is None:
        return None, None, None
    return region.chrom, region.start, region.end


def _dry_run(args: argparse.Namespace, suffixes: List[str]) -> int:
    chrom, _, _ = _region_parts(args.region)
    with pysam.AlignmentFile(args.input, "rb") as bam:
        targets = resolve_chromosomes(chrom, list(bam.references))
    print("Dry-run: inputs look OK.")
    if find_bam_index(args.input) is None:
        print(f"No index found; one would be built for {args.input}")
    print("Planned outputs:")
    for target in targets:
        for suffix in suffixes:
            print(f"  {output_path(args.output, target, suffix)}")
    return 0


def cmd_depth(args: argparse.Namespace) -> int:
    log_path = _log_path(args.output, "depth.log")
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("bamambig")
    logger.info("bamambig %s", __version__)

    try:
        if args.dry_run:
            return _dry_run(args, [".png"] + ([".depth.tsv"] if args.tsv else []))

        chrom, start, end = _region_parts(args.region)
        results = run_depth(
            bam_path=args.input,
            output=args.output,
            chrom=chrom,
            start=start,
            end=end,
            tsv=bool(args.tsv),
        )
        for entry in results:
            print(entry["plot"])
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def cmd_ambig(args: argparse.Namespace) -> int:
    log_path = _log_path(args.output, "ambig.log")
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("bamambig")
    logger.info("bamambig %s", __version__)

    try:
        config = ThresholdConfig(
            ambiguity_threshold=float(args.threshold),
            strand_bias_threshold=float(args.strand_bias),
            base_quality_floor=int(args.min_bq),
            map_quality_floor=int(args.min_mq),
            depth_floor=int(args.depth),
            minor_allele_depth_floor=int(args.minor_depth),
            include_indels=not bool(args.no_indel),
        )

        if args.dry_run:
            suffixes = [] if args.no_plot else [".png"]
            suffixes += [".bed"] if args.bed else []
            suffixes += [".tsv"] if args.tsv else []
            return _dry_run(args, suffixes)

        chrom, start, end = _region_parts(args.region)
        summary = run_ambig(
            bam_path=args.input,
            config=config,
            output=args.output,
            chrom=chrom,
            start=start,
            end=end,
            labels=not bool(args.no_label),
            plot=not bool(args.no_plot),
            bed=bool(args.bed),
            tsv=bool(args.tsv),
            html_report=bool(args.report),
            version=__version__,
            progress=True,
        )

        for entry in summary["chromosomes"]:
            print(f"{entry['chrom']}\t{entry['columns_reported']}")
        if "report" in summary:
            print(summary["report"])
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "depth":
        return cmd_depth(args)
    if args.cmd == "ambig":
        return cmd_ambig(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
