"""Render a ranked report as JSON, CSV, HTML or a console summary."""

from __future__ import annotations

import csv
import html
import json
from datetime import datetime
from pathlib import Path
from typing import List, TextIO

from cheat_check.comparator import ComparisonOutcome, Score
from cheat_check.models import (
    FailureEntry,
    Metric,
    PairEntry,
    ReportSummary,
    SimilarityReport,
)


def build_report(
    ranked: List[Score],
    outcome: ComparisonOutcome,
    threshold: float,
    metric: Metric = Metric.levenshtein,
    timed_out: bool = False,
) -> SimilarityReport:
    """Collect a ranked list and its comparison outcome into one model."""
    summary = ReportSummary(
        documents=outcome.documents,
        pairs_compared=len(outcome.scores),
        pairs_flagged=len(ranked),
        pairs_failed=len(outcome.failures),
        threshold=threshold,
        metric=metric,
        workers=outcome.workers,
        elapsed_seconds=outcome.elapsed,
        timed_out=timed_out,
    )
    pairs = [
        PairEntry(rank=i, first=s.pair.first, second=s.pair.second, score=s.value)
        for i, s in enumerate(ranked, 1)
    ]
    failures = [
        FailureEntry(
            first=f.pair.first,
            second=f.pair.second,
            error=type(f.cause).__name__,
            message=str(f.cause),
            attempts=f.attempts,
        )
        for f in outcome.failures
    ]
    return SimilarityReport(summary=summary, pairs=pairs, failures=failures, skipped=list(outcome.skipped))


def write_json_report(output_path: Path, report: SimilarityReport) -> None:
    """Write the full report as JSON."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(report.model_dump(mode="json"), f, indent=2)


def write_csv_report(output_path: Path, report: SimilarityReport) -> None:
    """Write ranked pairs as CSV, best first."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["rank", "first", "second", "score"])
        writer.writeheader()
        for entry in report.pairs:
            row = entry.model_dump()
            row["score"] = round(entry.score, 4)
            writer.writerow(row)


def _severity(score: float) -> str:
    if score >= 0.95:
        return "high"
    if score >= 0.8:
        return "suspicious"
    return "review"


def write_html_report(output_path: Path, report: SimilarityReport) -> None:
    """Write a self-contained HTML page for reviewing flagged pairs."""
    s = report.summary
    rows = "\n".join(
        f'            <tr class="{_severity(p.score)}"><td>{p.rank}</td>'
        f"<td>{html.escape(p.first)}</td><td>{html.escape(p.second)}</td>"
        f'<td class="score">{p.score:.3f}</td></tr>'
        for p in report.pairs
    ) or '            <tr><td colspan="4">No pairs above the threshold.</td></tr>'
    failures = "\n".join(
        f"            <li><code>{html.escape(f.first)}</code> &harr; <code>{html.escape(f.second)}</code>: "
        f"{html.escape(f.error)}: {html.escape(f.message)}</li>"
        for f in report.failures
    )
    failure_section = f"""
        <h2>Failed comparisons ({len(report.failures)})</h2>
        <ul>
{failures}
        </ul>""" if report.failures else ""
    skipped_section = (
        "\n        <h2>Skipped (identical to template)</h2>\n        <p>"
        + ", ".join(html.escape(name) for name in report.skipped)
        + "</p>"
    ) if report.skipped else ""

    html_content = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Similarity Report</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            max-width: 1200px;
            margin: 0 auto;
            padding: 20px;
            background: #f5f5f5;
        }}
        h1 {{ color: #333; border-bottom: 3px solid #e74c3c; padding-bottom: 10px; }}
        table {{ width: 100%; border-collapse: collapse; background: white; }}
        th, td {{ padding: 8px 12px; border-bottom: 1px solid #ddd; text-align: left; }}
        td.score {{ font-family: 'Monaco', 'Menlo', monospace; }}
        tr.high {{ border-left: 4px solid #e74c3c; }}
        tr.suspicious {{ border-left: 4px solid #f39c12; }}
        tr.review {{ border-left: 4px solid #3498db; }}
        .meta {{ color: #666; }}
    </style>
</head>
<body>
    <h1>Similarity Report</h1>
    <p class="meta">
        {s.documents} documents, {s.pairs_compared} pairs compared, {s.pairs_flagged} at or above
        {s.threshold:g} ({s.metric.value}), {s.workers} workers, {s.elapsed_seconds:.2f}s{" &mdash; TIMED OUT" if s.timed_out else ""}.
        Generated {datetime.now().strftime("%Y-%m-%d %H:%M")}.
    </p>
    <table>
        <thead><tr><th>#</th><th>First</th><th>Second</th><th>Score</th></tr></thead>
        <tbody>
{rows}
        </tbody>
    </table>{failure_section}{skipped_section}
</body>
</html>
"""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html_content, encoding="utf-8")


def print_summary(report: SimilarityReport, out: TextIO) -> None:
    """Print the ranked pairs as a plain table."""
    s = report.summary
    print(f"{s.pairs_flagged} of {s.pairs_compared} pairs at or above {s.threshold:g}", file=out)
    if report.pairs:
        width = max(len(p.first) for p in report.pairs)
        for p in report.pairs:
            print(f"{p.score:.3f}  {p.first.ljust(width)}  {p.second}", file=out)
    if report.failures:
        print(f"\n{len(report.failures)} comparison(s) failed:", file=out)
        for f in report.failures:
            print(f"  {f.first} <-> {f.second}: {f.error}: {f.message}", file=out)
    if report.skipped:
        print(f"\nSkipped {len(report.skipped)} file(s) identical to the template", file=out)
