import json
import subprocess
import sys
from pathlib import Path

from bamambig.toy_data import make_toy_data


def _run_cli(args: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "bamambig"] + args,
        check=False,
        capture_output=True,
        text=True,
    )


LOOSE_FLAGS = ["-d", "1", "-q", "1", "-Q", "1", "--minor-depth", "1", "-s", "0"]


def test_quickstart_output() -> None:
    cp = _run_cli(["quickstart"])
    assert cp.returncode == 0
    assert "bamambig ambig" in cp.stdout
    assert "bamambig depth" in cp.stdout


def test_make_toy_data(tmp_path: Path) -> None:
    cp = _run_cli(["make-toy-data", "--outdir", str(tmp_path / "toy")])
    assert cp.returncode == 0
    summary = json.loads(cp.stdout)
    assert Path(summary["bam"]).exists()
    assert (tmp_path / "toy" / "toy.bam.bai").exists()


def test_ambig_bed(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "out" / "sample"
    cp = _run_cli(["ambig", toy["bam"], "chr1:4-6", "-o", str(out), "-t", "0.2", "--bed"] + LOOSE_FLAGS)
    assert cp.returncode == 0, cp.stderr
    assert (tmp_path / "out" / "chr1_sample.png").exists()
    bed = (tmp_path / "out" / "chr1_sample.bed").read_text(encoding="utf-8")
    assert bed == "chr1\t5\t6\tchr1\n"
    assert (tmp_path / "out" / "logs" / "ambig.log").exists()


def test_ambig_html_report(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "out" / "sample"
    cp = _run_cli(["ambig", toy["bam"], "chr1:4-6", "-o", str(out), "-t", "0.2", "--report"] + LOOSE_FLAGS)
    assert cp.returncode == 0, cp.stderr
    report = tmp_path / "out" / "sample_report.html"
    assert report.exists()
    assert str(report) in cp.stdout
    html = report.read_text(encoding="utf-8")
    assert "chr1_sample.png" in html
    assert "<tr><td>5</td><td class=\"num\">0.5000</td>" in html


def test_ambig_no_indel_whole_chromosome(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "out" / "noindel"
    cp = _run_cli(["ambig", toy["bam"], "-o", str(out), "--no-indel", "--no-plot", "--tsv"] + LOOSE_FLAGS)
    assert cp.returncode == 0, cp.stderr
    rows = (tmp_path / "out" / "chr1_noindel.tsv").read_text(encoding="utf-8").splitlines()
    assert [r.split("\t")[1] for r in rows[1:]] == ["5"]
    assert not (tmp_path / "out" / "chr1_noindel.png").exists()


def test_threshold_out_of_range(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cp = _run_cli(["ambig", toy["bam"], "-t", "0.7"])
    assert cp.returncode != 0
    assert "between 0 and 0.5" in cp.stderr


def test_missing_input(tmp_path: Path) -> None:
    cp = _run_cli(["ambig", str(tmp_path / "missing.bam")])
    assert cp.returncode != 0
    assert "File does not exist" in cp.stderr


def test_bad_region(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cp = _run_cli(["depth", toy["bam"], "chr1:10-x"])
    assert cp.returncode != 0
    assert "Invalid region" in cp.stderr


def test_unknown_contig_fails_cleanly(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    cp = _run_cli(["ambig", toy["bam"], "chrZ", "-o", str(tmp_path / "out" / "x")])
    assert cp.returncode == 2
    assert "RegionFetchError" in cp.stderr


def test_depth_plot(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "depth" / "toy"
    cp = _run_cli(["depth", toy["bam"], "chr1:1-15", "-o", str(out), "--tsv"])
    assert cp.returncode == 0, cp.stderr
    assert (tmp_path / "depth" / "chr1_toy.png").exists()
    rows = (tmp_path / "depth" / "chr1_toy.depth.tsv").read_text(encoding="utf-8").splitlines()
    assert rows[1] == "chr1\t5\t6"
    assert len(rows) == 11


def test_ambig_dry_run_writes_nothing(tmp_path: Path) -> None:
    toy = make_toy_data(outdir=tmp_path / "toy")
    out = tmp_path / "dry" / "sample"
    cp = _run_cli(["ambig", toy["bam"], "-o", str(out), "--bed", "--dry-run"])
    assert cp.returncode == 0
    assert "Dry-run" in cp.stdout
    assert "chr1_sample.bed" in cp.stdout
    assert not (tmp_path / "dry").exists()
