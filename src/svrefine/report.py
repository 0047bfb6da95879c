from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Template

from .plotting import plot_inslen_hist, plot_outcome_counts, plot_srq_hist
from .utils import ensure_outdir, write_json

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>svrefine Report</title>
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

<h1>svrefine Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<table>
  <tr><th>Input</th><td><code>{{ run.infile }}</code></td></tr>
  <tr><th>Output</th><td><code>{{ run.outfile }}</code></td></tr>
  <tr><th>SV type</th><td>{{ run.sv_type }}</td></tr>
  <tr><th>Max refinement length</th><td>{{ run.max_length }}</td></tr>
  <tr><th>Chromosomes</th><td>{{ run.chromosomes }}</td></tr>
  <tr><th>Candidates</th><td>{{ run.records_total }}</td></tr>
  <tr><th>Refined</th><td>{{ run.refined }}</td></tr>
  {% for name, n in run.fallback | dictsort %}
  <tr><th>Symbolic ({{ name }})</th><td>{{ n }}</td></tr>
  {% endfor %}
  <tr><th>Other SV types written</th><td>{{ run.other_types_written }}</td></tr>
  <tr><th>Other SV types dropped</th><td>{{ run.other_types_dropped }}</td></tr>
  <tr><th>Runtime (s)</th><td>{{ "%.2f" | format(run.runtime_seconds) }}</td></tr>
</table>

<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Outcomes</h3>
    <img src="{{ plots.outcomes }}" alt="outcome counts">
  </div>
  <div class="card">
    <h3>SRQ</h3>
    <img src="{{ plots.srq_hist }}" alt="SRQ histogram">
  </div>
</div>
<div class="grid" style="margin-top:16px;">
  <div class="card">
    <h3>INSLEN</h3>
    <img src="{{ plots.inslen_hist }}" alt="INSLEN histogram">
  </div>
</div>

<h2>Interpretation notes</h2>
<ul>
  <li>Symbolic records keep their original POS/END with a one-base REF and <code>&lt;{{ run.sv_type }}&gt;</code> ALT.</li>
  <li><code>ineligible</code>: imprecise, missing consensus, or longer than the maximum length.</li>
  <li><code>alignment_failed</code> / <code>no_breakpoint</code>: the consensus did not place a confident junction.</li>
</ul>

<hr>
<p class="small">svrefine {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    outdir: str | Path,
    version: str,
    run: Dict[str, Any],
) -> Path:
    """Write summary.json, plots and report.html for one run into ``outdir``."""
    outdir = ensure_outdir(outdir)
    plots_dir = outdir / "plots"

    plot_outcome_counts(
        refined=int(run.get("refined", 0)),
        fallback=dict(run.get("fallback", {})),
        out_png=plots_dir / "outcomes.png",
    )
    plot_srq_hist(srq_values=list(run.get("srq_values", [])), out_png=plots_dir / "srq_hist.png")
    plot_inslen_hist(inslen_values=list(run.get("inslen_values", [])), out_png=plots_dir / "inslen_hist.png")

    plots = {
        "outcomes": str(Path("plots") / "outcomes.png"),
        "srq_hist": str(Path("plots") / "srq_hist.png"),
        "inslen_hist": str(Path("plots") / "inslen_hist.png"),
    }

    write_json(outdir / "summary.json", run)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        run=run,
        plots=plots,
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    logger.info("Report written: %s", out_path)
    return out_path
