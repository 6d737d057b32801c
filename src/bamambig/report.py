from __future__ import annotations

import datetime as _dt
import logging
import os
from pathlib import Path
from typing import Any, Dict, Sequence

from jinja2 import Template

from .models import ChromosomeReport, SymbolCategory

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>bamambig Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 6px 8px; }
    th { background: #f2f2f2; text-align: left; }
    td.num { text-align: right; font-family: monospace; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>Ambiguous positions</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<table>
  <tr><th>BAM</th><td><code>{{ bam_path }}</code></td></tr>
  {% for name, value in thresholds.items() %}
  <tr><th>{{ name }}</th><td>{{ value }}</td></tr>
  {% endfor %}
</table>

{% for chrom in chromosomes %}
<h2>{{ chrom.chrom }}</h2>
<table>
  <tr><th>Columns scanned</th><td>{{ chrom.columns_seen }}</td></tr>
  <tr><th>Ambiguous columns</th><td>{{ chrom.columns_ambiguous }}</td></tr>
  <tr><th>Reported positions</th><td>{{ chrom.columns_reported }}</td></tr>
</table>
{% if chrom.plot %}
<p><img src="{{ chrom.plot }}" alt="{{ chrom.chrom }} ambiguous positions"></p>
{% endif %}
{% if chrom.rows %}
<table>
  <tr><th>Position</th>{% for s in symbols %}<th>{{ s }}</th>{% endfor %}</tr>
  {% for row in chrom.rows %}
  <tr><td>{{ row.pos }}</td>{% for v in row.cells %}<td class="num">{{ v }}</td>{% endfor %}</tr>
  {% endfor %}
</table>
{% endif %}
{% endfor %}

<hr>
<p class="small">bamambig {{ version }}</p>
</body>
</html>"""
)


def _rows(report: ChromosomeReport) -> list[Dict[str, Any]]:
    rows = []
    for pos, proportions in report.positions.items():
        values = []
        for category in SymbolCategory:
            p = proportions.get(category)
            values.append(f"{p:.4f}" if p is not None else "")
        rows.append({"pos": pos, "cells": values})
    return rows


def render_report(
    *,
    out_html: str | Path,
    version: str,
    summary: Dict[str, Any],
    reports: Sequence[ChromosomeReport],
) -> Path:
    out_html = Path(out_html)
    out_html.parent.mkdir(parents=True, exist_ok=True)

    by_chrom = {r.chrom: r for r in reports}
    chromosomes = []
    for entry in summary.get("chromosomes", []):
        plot = entry.get("outputs", {}).get("plot")
        report = by_chrom.get(entry["chrom"])
        chromosomes.append(
            {
                "chrom": entry["chrom"],
                "columns_seen": entry.get("columns_seen"),
                "columns_ambiguous": entry.get("columns_ambiguous"),
                "columns_reported": entry.get("columns_reported"),
                # Image links are relative to the report
                "plot": os.path.relpath(plot, out_html.parent) if plot else None,
                "rows": _rows(report) if report is not None else [],
            }
        )

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        bam_path=summary.get("bam_path"),
        thresholds=summary.get("thresholds", {}),
        chromosomes=chromosomes,
        symbols=[c.symbol for c in SymbolCategory],
    )

    out_html.write_text(html, encoding="utf-8")
    logger.info("Report written: %s", out_html)
    return out_html
