"""Report rendering — markdown for PR comments, JSON for tooling, Rich for terminals.

Sizes use decimal units: below 1000 bytes they are shown as whole bytes,
otherwise in kB (1000 B) or MB (1000 kB) rounded to two decimals.
"""
from __future__ import annotations

import json
import re
from typing import Optional

from .diff import AssetDelta, DeltaStatus, DiffReport

DEC_KB = 1000
DEC_MB = 1000 * 1000

DEFAULT_TITLE = "Asset size report"
NO_CHANGES_TEXT = "No size changes detected."

_STATUS_ICONS = {
    DeltaStatus.ADDED: "\U0001f195",      # new
    DeltaStatus.REMOVED: "\U0001f5d1",    # wastebasket
    DeltaStatus.CHANGED: "",
    DeltaStatus.UNCHANGED: "",
}


def format_bytes(n: Optional[int], signed: bool = False) -> str:
    if n is None:
        return "-"
    sign = ""
    if n < 0:
        sign = "-"
    elif signed and n > 0:
        sign = "+"
    n_abs = abs(n)
    if n_abs >= DEC_MB:
        return f"{sign}{n_abs / DEC_MB:.2f} MB"
    if n_abs >= DEC_KB:
        return f"{sign}{n_abs / DEC_KB:.2f} kB"
    return f"{sign}{n_abs} B"


def _status_label(delta: AssetDelta) -> str:
    if delta.status is DeltaStatus.CHANGED:
        return "bigger \U0001f6a8" if delta.delta_bytes > 0 else "smaller \U0001f389"
    icon = _STATUS_ICONS[delta.status]
    return f"{delta.status.value} {icon}".strip()


def _summary_line(report: DiffReport) -> str:
    counts = report.counts()
    line = f"**Total: {format_bytes(report.total_delta_bytes, signed=True)}**"
    if report.has_gzip:
        line += f" (gzip {format_bytes(report.total_gzip_delta, signed=True)})"
    line += (
        f": {counts['changed']} changed, {counts['added']} added,"
        f" {counts['removed']} removed, {counts['unchanged']} unchanged."
    )
    return line


def _code_cell(key: str) -> str:
    """Inline code span for a table cell; pipes escaped, fence outgrows backtick runs."""
    runs = [len(run) for run in re.findall(r"`+", key)]
    fence = "`" * (max(runs, default=0) + 1)
    body = key.replace("|", "\\|")
    if runs:
        body = f" {body} "
    return f"{fence}{body}{fence}"


def build_output_text(
    report: DiffReport,
    show_unchanged: bool = False,
    title: str = DEFAULT_TITLE,
) -> str:
    """Render the report as a markdown table, largest change first."""
    rows = list(report.deltas) if show_unchanged else report.changed_entries()
    lines = [f"## {title}", ""]

    if not report.changed_entries():
        lines.append(NO_CHANGES_TEXT)
        lines.append("")

    if rows:
        header = "| File | Status | Before | After | Delta |"
        rule = "|------|--------|--------|-------|-------|"
        if report.has_gzip:
            header += " Gzip delta |"
            rule += "------------|"
        lines.extend([header, rule])

        for delta in rows:
            row = (
                f"| {_code_cell(delta.key)} | {_status_label(delta)} | {format_bytes(delta.before_size)}"
                f" | {format_bytes(delta.after_size)} | {format_bytes(delta.delta_bytes, signed=True)} |"
            )
            if report.has_gzip:
                row += f" {format_bytes(delta.gzip_delta, signed=True)} |"
            lines.append(row)
        lines.append("")

    lines.append(_summary_line(report))
    return "\n".join(lines)


def report_json(report: DiffReport) -> str:
    return json.dumps(report.to_dict(), indent=2, sort_keys=True)


def print_rich_report(report: DiffReport, console=None, show_unchanged: bool = False) -> None:
    """Print the report as a Rich table."""
    from rich.box import ROUNDED
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    console = console or Console()
    rows = list(report.deltas) if show_unchanged else report.changed_entries()

    if not report.changed_entries():
        console.print(f"\n  [green]{NO_CHANGES_TEXT}[/green]\n")
    if not rows:
        return

    table = Table(
        title=DEFAULT_TITLE.upper(),
        box=ROUNDED,
        border_style="cyan",
        show_header=True,
        header_style="bold",
    )
    table.add_column("File", style="white", min_width=20)
    table.add_column("Status", min_width=9)
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Delta", justify="right")
    if report.has_gzip:
        table.add_column("Gzip delta", justify="right")

    for delta in rows:
        if delta.delta_bytes > 0:
            style = "red"
        elif delta.delta_bytes < 0:
            style = "green"
        else:
            style = "dim"
        cells = [
            escape(delta.key),
            delta.status.value,
            format_bytes(delta.before_size),
            format_bytes(delta.after_size),
            f"[{style}]{format_bytes(delta.delta_bytes, signed=True)}[/{style}]",
        ]
        if report.has_gzip:
            cells.append(format_bytes(delta.gzip_delta, signed=True))
        table.add_row(*cells)

    console.print()
    console.print(table)
    total = format_bytes(report.total_delta_bytes, signed=True)
    console.print(f"  Total: [bold]{total}[/bold]\n")


__all__ = [
    "DEC_KB",
    "DEC_MB",
    "NO_CHANGES_TEXT",
    "build_output_text",
    "format_bytes",
    "print_rich_report",
    "report_json",
]
