# pullstats/cli/runner.py

"""Headless harvest runner: crawl, append history, render charts."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from pullstats.models.series import PackageSeries
from pullstats.services.crawl_orchestrator import (
    CrawlAbortedError,
    CrawlOrchestrator,
)
from pullstats.services.series_aggregator import SeriesAggregator
from pullstats.storage.chart_exporter import (
    export_index,
    export_package_chart,
)
from pullstats.storage.history_store import HistoryStore

logger = logging.getLogger("pullstats.cli")

# Stderr console for status messages so stdout stays clean for the table
_err = Console(stderr=True)


def build_report(
    store: HistoryStore,
    include_totals: bool = True,
) -> list[PackageSeries]:
    """Rebuild the reporting series of every package log in *store*."""
    report: list[PackageSeries] = []
    for path in store.list_logs():
        entries = store.read_log(path)
        package = (
            entries[0].package
            if entries
            else path.stem.replace("_", "/")
        )
        report.append(
            SeriesAggregator.build(
                package, entries, include_totals=include_totals
            )
        )
    return report


def _render(
    report: list[PackageSeries],
    render_dir: Path,
) -> None:
    """Write one chart per package plus the index page."""
    _err.print(f"[dim]Writing charts in '{render_dir}'[/dim]")
    for series in report:
        if not series.dates:
            logger.warning(
                "No usable history for %s, chart skipped",
                series.package,
            )
            continue
        export_package_chart(series, render_dir)
    export_index(render_dir.parent)


def _print_summary(report: list[PackageSeries]) -> None:
    """Render a Rich table of the latest pull counts per package."""
    table = Table(
        title="Pull counts",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Package", style="magenta")
    table.add_column("Latest date", justify="center")
    table.add_column("Versions", justify="right")
    table.add_column("Pulls", justify="right", style="green")

    for series in report:
        if not series.dates:
            continue
        latest = series.dates[-1]
        cells = series.matrix[latest]
        table.add_row(
            series.package,
            latest,
            str(len(cells)),
            f"{sum(cells.values()):,}",
        )

    Console().print(table)


def run_report(
    organization: str,
    output_dir: Path,
    render_dir: Path,
    include_totals: bool = True,
) -> int:
    """Rebuild charts from existing history without crawling."""
    store = HistoryStore(output_dir / organization)
    try:
        report = build_report(store, include_totals=include_totals)
        _render(report, render_dir / organization)
    except OSError as exc:
        logger.critical("Report failed: %s", exc, exc_info=True)
        _err.print(f"[red]Report failed: {exc}[/red]")
        return 1

    if not report:
        _err.print(
            f"[yellow]No history found in '{store.root}'.[/yellow]"
        )
        return 1
    _print_summary(report)
    return 0


async def run_harvest(
    organization: str,
    output_dir: Path,
    render_dir: Path,
    render: bool = True,
    include_totals: bool = True,
) -> int:
    """Run one harvest and return an exit code (0=ok, 1=fatal)."""
    _err.print(f"[bold]Harvesting:[/bold] {organization}")
    orchestrator = CrawlOrchestrator()

    try:
        result = await orchestrator.crawl(organization)
    except CrawlAbortedError as exc:
        logger.critical("Harvest aborted: %s", exc)
        _err.print(f"[red]Harvest aborted: {exc}[/red]")
        return 1

    detail = f" ({result.dropped} incomplete)" if result.dropped else ""
    _err.print(
        f"[green]✓ {result.packages_found} package(s), "
        f"{len(result.records)} snapshot(s){detail}[/green]"
    )

    store = HistoryStore(output_dir / organization)
    try:
        store.append_all(result.records)
    except OSError as exc:
        logger.critical("History write failed: %s", exc)
        _err.print(f"[red]History write failed: {exc}[/red]")
        return 1

    if not render:
        return 0
    return run_report(
        organization, output_dir, render_dir,
        include_totals=include_totals,
    )
