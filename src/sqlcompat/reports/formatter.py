"""Render migration reports as a table, JSON or Markdown."""

from __future__ import annotations
from typing import Literal
import json

from sqlcompat.models import MigrationReport

OutputFormat = Literal["table", "json", "markdown"]

TABLE_COLUMNS = [
    ("Database", "database"),
    ("Migratable", "is_migratable"),
    ("Features In Use", "features_in_use"),
    ("Notes", "notes"),
]


def render_report(report: MigrationReport, fmt: OutputFormat = "table") -> str:
    """Render a report in the requested format."""
    if fmt == "json":
        return render_json(report)
    if fmt == "markdown":
        return render_markdown(report)
    return render_table(report)


def render_json(report: MigrationReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def render_table(report: MigrationReport) -> str:
    """Plain-text table with a header naming both instances."""
    lines = [
        f"Source:      {report.source.name} - {report.source.version_label}",
        f"Destination: {report.destination.name} - {report.destination.version_label}",
        "",
    ]

    if report.notice and not report.results:
        lines.append(report.notice)
        return "\n".join(lines)

    rows = [
        [_cell(rec.to_dict()[key]) for _, key in TABLE_COLUMNS]
        for rec in report.records
    ]
    headers = [title for title, _ in TABLE_COLUMNS]
    widths = [
        max([len(headers[i])] + [len(row[i]) for row in rows])
        for i in range(len(headers))
    ]

    lines.append("  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip())
    lines.append("  ".join("-" * w for w in widths))
    for row in rows:
        lines.append("  ".join(c.ljust(w) for c, w in zip(row, widths)).rstrip())

    for result in report.errors:
        lines.append(f"! {result.database}: {result.message}")

    return "\n".join(lines)


def render_markdown(report: MigrationReport) -> str:
    """Generate Markdown report."""
    lines = []

    lines.append(f"# Migration Compatibility: {report.source.name} to {report.destination.name}\n")
    lines.append(f"**Source:** {report.source.version_label}")
    lines.append(f"**Destination:** {report.destination.version_label}")
    lines.append(f"**Databases Checked:** {len(report.records) + len(report.errors)}\n")

    if report.notice and not report.results:
        lines.append(report.notice)
        return "\n".join(lines)

    blocked = [r for r in report.records if not r.verdict.can_migrate]
    lines.append("## Summary\n")
    lines.append(f"- **Migratable:** {len(report.records) - len(blocked)}")
    lines.append(f"- **Blocked:** {len(blocked)}")
    lines.append(f"- **Failed:** {len(report.errors)}\n")

    if report.warnings:
        lines.append("## Warnings\n")
        for warning in report.warnings:
            lines.append(f"- {warning}")
        lines.append("")

    lines.append("## Databases\n")
    lines.append("| Database | Migratable | Features In Use | Notes |")
    lines.append("|---|---|---|---|")
    for rec in report.records:
        features = rec.features_display or "-"
        migratable = "yes" if rec.verdict.can_migrate else "**no**"
        lines.append(f"| {rec.database} | {migratable} | {features} | {rec.verdict.note} |")

    if report.errors:
        lines.append("\n## Not Checked\n")
        for result in report.errors:
            lines.append(f"- **{result.database}**: {result.message}")

    return "\n".join(lines)


def _cell(value: object) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value) if value not in (None, "") else "-"
