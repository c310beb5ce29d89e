from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from jinja2 import Template

from .models import AlignedHaplotypes, EvalMetrics, PositionEvent, SiteCounts
from .utils import dataclass_to_jsonable, open_textmaybe_gzip, safe_rate

logger = logging.getLogger(__name__)


def format_summary(metrics: EvalMetrics) -> List[str]:
    """The eight-line counter summary, in the order the tool has always printed it."""
    one = metrics.test_one
    two = metrics.test_two
    return [
        f"Haplotype switches for test haplotype 1: {one.switches}",
        f"Haplotype switches for test haplotype 2: {two.switches}",
        f"False SNPs in haplotype 1: {one.false_snps}",
        f"False SNPs in haplotype 2: {two.false_snps}",
        f"False indels in haplotype 1: {one.false_indels}",
        f"False indels in haplotype 2: {two.false_indels}",
        f"Bad base calls in haplotype 1: {one.bad_calls}",
        f"Bad base calls in haplotype 2: {two.bad_calls}",
    ]


class EventTsvWriter:
    """Streams position events to a TSV (gzip-compressed if the path ends in .gz)."""

    HEADER = ["position", "kind", "haplotype", "message"]

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: Optional[TextIO] = open_textmaybe_gzip(self.path, "wt")
        self._fh.write("\t".join(self.HEADER) + "\n")
        self.n_written = 0

    def write(self, event: PositionEvent) -> None:
        if self._fh is None:
            raise ValueError(f"Event TSV already closed: {self.path}")
        hap = "." if event.haplotype is None else str(event.haplotype)
        self._fh.write(f"{event.position}\t{event.kind.value}\t{hap}\t{event.message}\n")
        self.n_written += 1

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
            logger.info("Wrote %d events to %s", self.n_written, self.path)

    def __enter__(self) -> "EventTsvWriter":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def summary_dict(
    *,
    alignment_path: str,
    true_prefix: str,
    haplotypes: AlignedHaplotypes,
    metrics: EvalMetrics,
    sites: SiteCounts,
    runtime_seconds: float,
    version: str,
) -> Dict[str, Any]:
    """Machine-readable run summary (written as summary.json)."""
    return {
        "version": version,
        "alignment_path": alignment_path,
        "true_prefix": true_prefix,
        "headers": {
            "true_one": haplotypes.true_one_header,
            "true_two": haplotypes.true_two_header,
            "test_one": haplotypes.test_one_header,
            "test_two": haplotypes.test_two_header,
        },
        "sites": dict(dataclass_to_jsonable(sites)),
        "test_one": dict(dataclass_to_jsonable(metrics.test_one)),
        "test_two": dict(dataclass_to_jsonable(metrics.test_two)),
        "switch_rate": {
            "test_one": safe_rate(metrics.test_one.switches, sites.het_snps),
            "test_two": safe_rate(metrics.test_two.switches, sites.het_snps),
        },
        "runtime_seconds": float(runtime_seconds),
    }


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>HapSNPeval Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>HapSNPeval Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Inputs</h2>
<table>
  <tr><th>Alignment</th><td><code>{{ summary.alignment_path }}</code></td></tr>
  <tr><th>True prefix</th><td><code>{{ summary.true_prefix }}</code></td></tr>
  <tr><th>True haplotype 1</th><td><code>{{ summary.headers.true_one }}</code></td></tr>
  <tr><th>True haplotype 2</th><td><code>{{ summary.headers.true_two }}</code></td></tr>
  <tr><th>Test haplotype 1</th><td><code>{{ summary.headers.test_one }}</code></td></tr>
  <tr><th>Test haplotype 2</th><td><code>{{ summary.headers.test_two }}</code></td></tr>
</table>

<h2>Alignment columns</h2>
<table>
  <tr><th>Alignment width</th><td>{{ summary.sites.width }}</td></tr>
  <tr><th>Homozygous sites</th><td>{{ summary.sites.homozygous }}</td></tr>
  <tr><th>Heterozygous SNPs</th><td>{{ summary.sites.het_snps }}</td></tr>
  <tr><th>True indels</th><td>{{ summary.sites.true_indels }}</td></tr>
</table>

<h2>Errors</h2>
<table>
  <tr><th></th><th>Test haplotype 1</th><th>Test haplotype 2</th></tr>
  <tr><th>Switches</th><td>{{ summary.test_one.switches }}</td><td>{{ summary.test_two.switches }}</td></tr>
  <tr><th>Switch rate (per het SNP)</th>
    <td>{{ fmt_rate(summary.switch_rate.test_one) }}</td>
    <td>{{ fmt_rate(summary.switch_rate.test_two) }}</td></tr>
  <tr><th>False SNPs</th><td>{{ summary.test_one.false_snps }}</td><td>{{ summary.test_two.false_snps }}</td></tr>
  <tr><th>False indels</th><td>{{ summary.test_one.false_indels }}</td><td>{{ summary.test_two.false_indels }}</td></tr>
  <tr><th>Bad base calls</th><td>{{ summary.test_one.bad_calls }}</td><td>{{ summary.test_two.bad_calls }}</td></tr>
</table>

{% if plots %}
<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Error counts</h3>
    <img src="{{ plots.error_counts }}" alt="error counts">
  </div>
  <div class="card">
    <h3>Events along the alignment</h3>
    <img src="{{ plots.event_positions }}" alt="event positions">
  </div>
</div>
{% endif %}

<h2>Outputs</h2>
<ul>
  {% if events_tsv %}
  <li><code>{{ events_tsv }}</code> (per-position events)</li>
  {% endif %}
  <li><code>summary.json</code> (machine-readable summary)</li>
</ul>

<h2>Interpretation notes</h2>
<ul>
  <li>Switches are counted only at heterozygous SNPs; indels never change phase.</li>
  <li>At homozygous sites, a false indel is charged to the test haplotype holding a base
      opposite the other haplotype's gap.</li>
  <li>Bad base calls leave the phase of the haplotype unchanged.</li>
</ul>

<hr>
<p class="small">HapSNPeval {{ version }}</p>
</body>
</html>"""
)


def _fmt_rate(rate: Optional[float]) -> str:
    if rate is None:
        return "n/a"
    return f"{rate:.4f}"


def render_report(
    *,
    outdir: str | Path,
    version: str,
    summary: Dict[str, Any],
    plots: Optional[Dict[str, str]] = None,
    events_tsv: Optional[str] = None,
) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        summary=summary,
        plots=plots or {},
        events_tsv=events_tsv,
        fmt_rate=_fmt_rate,
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    return out_path
