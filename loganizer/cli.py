from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TimeElapsedColumn

from .config import filter_sources, load_sources
from .errors import ConfigError
from .models import Dialect, GlobalResult, SourceSpec
from .parsers import PARSERS, TimestampPolicy
from .pipeline import DEFAULT_WORKERS, analyze_sources
from .reporter import console, export_report, filter_by_status, print_report, timestamped_path, to_table

app = typer.Typer(help="Analyse many heterogeneous log files in parallel and report per-source and global statistics")


class StatusFilter(str, Enum):
    ok = "ok"
    failed = "failed"


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def run_analysis(
    specs: list[SourceSpec],
    workers: int,
    level: str | None,
    policy: TimestampPolicy,
    use_utc: bool,
    timeout: float | None,
    progress: bool,
) -> GlobalResult:
    """Run the pipeline, with a progress bar when attached to a terminal."""
    options = dict(level_filter=level, policy=policy, use_utc=use_utc, deadline=timeout)

    if progress and console.is_terminal:
        with Progress(
            "{task.description}",
            BarColumn(bar_width=None),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as bar:
            task_id = bar.add_task("Analysing", total=len(specs))
            return analyze_sources(specs, workers, on_result=lambda _: bar.advance(task_id), **options)

    return analyze_sources(specs, workers, **options)


@app.command("analyze")
def analyze_command(
    config: Path = typer.Option(
        ...,
        "--config",
        "-c",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="JSON file listing the sources to analyse ([{id, path, type}, ...]).",
    ),
    output: Path | None = typer.Option(None, "--output", "-o", help="Export report to file (.json or .csv)."),
    level: str | None = typer.Option(None, "--level", "-l", help="Only report records with this level (e.g. ERROR)."),
    source_types: list[str] | None = typer.Option(None, "--type", "-t", help="Only analyse sources of this type."),
    source_ids: list[str] | None = typer.Option(None, "--id", help="Only analyse the source with this id."),
    workers: int = typer.Option(DEFAULT_WORKERS, "--workers", "-w", min=1, help="Number of parallel workers."),
    status: StatusFilter | None = typer.Option(None, "--status", help="Only list sources with this outcome."),
    strict_timestamps: bool = typer.Option(
        False, "--strict-timestamps", help="Reject lines whose timestamp does not match the dialect layout."
    ),
    utc: bool = typer.Option(False, "--utc/--local", help="Bucket the hourly histogram in UTC or local time."),
    timeout: float | None = typer.Option(None, "--timeout", min=0.0, help="Per-source deadline in seconds."),
    timestamp_output: bool = typer.Option(
        False, "--timestamp-output", help="Prefix the output file name with the current date (YYMMDD_)."
    ),
    progress: bool = typer.Option(True, "--progress/--no-progress", help="Display a progress bar while analysing."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and extra report tables."),
) -> None:
    """Analyse the log sources listed in a config file."""
    configure_logging(verbose)

    try:
        specs = load_sources(config)
    except ConfigError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1)

    specs = filter_sources(specs, types=source_types, ids=source_ids)
    if not specs:
        typer.echo(f"No log sources to analyse in {config}.", err=True)
        raise typer.Exit(code=1)

    policy = TimestampPolicy.STRICT if strict_timestamps else TimestampPolicy.LENIENT
    result = run_analysis(specs, workers, level, policy, utc, timeout, progress)
    result = filter_by_status(result, status.value if status else None)

    if output:
        target = timestamped_path(output) if timestamp_output else output
        export_report(result, target)
        console.print(f"[green]Report exported to {target}[/green]")
    else:
        print_report(result, verbose=verbose)


@app.command("dialects")
def dialects_command() -> None:
    """List the supported source types."""
    rows = [[dialect.value, parser_cls().name] for dialect, parser_cls in PARSERS.items()]
    rows.append([Dialect.UNKNOWN.value, "Generic (fallback)"])
    console.print(to_table("Supported source types", ["Type", "Parser"], rows))


def cli() -> None:
    app()


if __name__ == "__main__":
    cli()
