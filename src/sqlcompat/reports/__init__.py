"""Report rendering."""

from sqlcompat.reports.formatter import render_report, render_json, render_markdown, render_table

__all__ = ["render_report", "render_json", "render_markdown", "render_table"]
