"""Report rendering (rich) and export (JSON, CSV)."""

from __future__ import annotations

import dataclasses
import json
from datetime import datetime
from pathlib import Path
from typing import Sequence

import polars as pl
import typer
from rich.console import Console
from rich.table import Table

from .models import GlobalResult, SourceResult

console = Console()

CSV_SCHEMA = {
    "SourceID": pl.Utf8,
    "SourceType": pl.Utf8,
    "TotalLines": pl.Int64,
    "ParsedLines": pl.Int64,
    "ErrorLines": pl.Int64,
    "Duration": pl.Utf8,
}

STATUSES = ("ok", "failed")


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.2f}s"


def to_table(title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> Table:
    table = Table(title=title, title_style="bold", show_lines=False, expand=True)
    for name in columns:
        justify = "left"
        if name.lower().endswith(("count", "lines", "events", "duration", "share")):
            justify = "right"
        table.add_column(name, justify=justify, overflow="fold")
    for row in rows:
        table.add_row(*row)
    return table


def filter_by_status(result: GlobalResult, status: str | None) -> GlobalResult:
    """Restrict the listed source results to ``ok`` or ``failed`` ones. Totals are kept."""
    if not status:
        return result
    status = status.lower()
    if status not in STATUSES:
        raise ValueError(f"unknown status {status!r}, expected one of {', '.join(STATUSES)}")
    wanted_failed = status == "failed"
    kept = tuple(source for source in result.source_results if source.failed == wanted_failed)
    return dataclasses.replace(result, source_results=kept)


def timestamped_path(path: Path, now: datetime | None = None) -> Path:
    """Prefix the file name with the run date, e.g. ``report.json`` -> ``241019_report.json``."""
    stamp = (now or datetime.now()).strftime("%y%m%d")
    return path.with_name(f"{stamp}_{path.name}")


def summary_frame(results: Sequence[SourceResult]) -> pl.DataFrame:
    """One row per source; failed sources carry zeros and an inline error marker."""
    rows = []
    for source in results:
        if source.failed:
            rows.append(
                {
                    "SourceID": source.source_id,
                    "SourceType": source.source_type,
                    "TotalLines": 0,
                    "ParsedLines": 0,
                    "ErrorLines": 0,
                    "Duration": f"ERROR: {source.error}",
                }
            )
        else:
            rows.append(
                {
                    "SourceID": source.source_id,
                    "SourceType": source.source_type,
                    "TotalLines": source.total_lines,
                    "ParsedLines": source.parsed_lines,
                    "ErrorLines": source.error_lines,
                    "Duration": format_duration(source.duration),
                }
            )
    return pl.DataFrame(rows, schema=CSV_SCHEMA, strict=False)


def export_to_json(result: GlobalResult, path: Path) -> None:
    """Export report as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")


def export_to_csv(result: GlobalResult, path: Path) -> None:
    """Export the per-source summary as CSV."""
    path.parent.mkdir(parents=True, exist_ok=True)
    summary_frame(result.source_results).write_csv(path)


def export_report(result: GlobalResult, path: Path) -> None:
    """Export report in the appropriate format based on file extension."""
    suffix = path.suffix.lower()

    if suffix == ".json":
        export_to_json(result, path)
    elif suffix == ".csv":
        export_to_csv(result, path)
    else:
        raise typer.BadParameter(f"Unsupported export format: {suffix}. Use .json or .csv")


def _counts_rows(counts: dict, total: int) -> list[list[str]]:
    ordered = sorted(counts.items(), key=lambda item: (-item[1], str(item[0])))
    return [
        [str(key), f"{count}", f"{count / total * 100:.1f}%" if total else "-"]
        for key, count in ordered
    ]


def print_report(result: GlobalResult, verbose: bool = False) -> None:
    """Print report to console."""
    console.print(
        f"[bold]Sources:[/bold] {result.total_sources} "
        f"([green]{result.successful_sources} ok[/green], [red]{result.error_sources} failed[/red])"
    )
    console.print(
        f"Read {result.total_lines:,} lines in {format_duration(result.analysis_duration)} "
        f"(started {result.start_time.strftime('%Y-%m-%d %H:%M:%S')})."
    )

    if result.level_stats:
        parsed = sum(result.level_stats.values())
        console.print(to_table("Log levels", ["Level", "Count", "Share"], _counts_rows(result.level_stats, parsed)))

    if result.type_stats:
        console.print(
            to_table("Lines by source type", ["Type", "Lines", "Share"], _counts_rows(result.type_stats, result.total_lines))
        )

    if result.top_errors:
        rows = [[stat.message, stat.level, stat.source_id, f"{stat.count}"] for stat in result.top_errors]
        console.print(to_table(f"Top {len(rows)} errors", ["Message", "Level", "Source", "Count"], rows))

    source_rows = []
    for source in result.source_results:
        if source.failed:
            status = f"[red]FAILED[/red] {source.error}"
        else:
            status = "[green]OK[/green]"
        source_rows.append(
            [
                source.source_id,
                source.source_type,
                source.source_path,
                status,
                f"{source.total_lines}",
                f"{source.parsed_lines}",
                f"{source.error_lines}",
                format_duration(source.duration),
            ]
        )
    if source_rows:
        console.print(
            to_table(
                "Sources",
                ["Source", "Type", "Path", "Status", "Total lines", "Parsed lines", "Failed lines", "Duration"],
                source_rows,
            )
        )

    if not verbose:
        return

    hours: dict[int, int] = {}
    for source in result.source_results:
        if source.failed:
            continue
        for hour, count in source.hourly_stats.items():
            hours[hour] = hours.get(hour, 0) + count
    if hours:
        rows = [[f"{hour:02d}:00", f"{hours[hour]}"] for hour in sorted(hours)]
        console.print(to_table("Volume per hour", ["Hour", "Count"], rows))

    for source in result.source_results:
        if source.rejected:
            rejection_details = ", ".join(f"{reason}={count}" for reason, count in source.rejected.items())
            console.print(f"Skipped lines in {source.source_id}: {rejection_details}", style="yellow")
        if source.filtered_lines:
            console.print(f"Filtered out in {source.source_id}: {source.filtered_lines} lines", style="dim")
