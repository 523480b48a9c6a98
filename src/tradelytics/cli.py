import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from tradelytics import __version__
from tradelytics.config import AnalyticsConfig
from tradelytics.context import AnalyticsContext
from tradelytics.filters import AnalyticsFilter
from tradelytics.importers import parse_file
from tradelytics.metrics.registry import UnknownMetricError
from tradelytics.store import TradeMirror

# Load existing environment variables
load_dotenv()

app = typer.Typer(
    help="Tradelytics: trading journal analytics",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


def _configure_logging(verbose: bool) -> None:
    # Logs go to stderr so --json output stays parseable
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if verbose else logging.WARNING),
        logger_factory=lambda *args: structlog.PrintLogger(sys.stderr),
    )


def _context(ctx: typer.Context) -> AnalyticsContext:
    """Build an analytics context from the global options, backed by the mirror."""
    opts = ctx.obj or {}
    config = AnalyticsConfig.load(opts.get("config"))
    if opts.get("account"):
        config.account_id = opts["account"]
    if opts.get("db"):
        config.mirror_path = opts["db"]
    mirror = TradeMirror(config.mirror_path)
    return AnalyticsContext(config=config, mirror=mirror, start_janitor=False).init()


def _parse_params(values: Optional[List[str]]) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    for item in values or []:
        if "=" not in item:
            raise typer.BadParameter(f"Expected key=value, got '{item}'")
        key, value = item.split("=", 1)
        try:
            params[key.strip()] = float(value)
        except ValueError:
            params[key.strip()] = value
    return params


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"{value:,.2f}"


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config.yaml")] = None,
    account: Annotated[Optional[str], typer.Option("--account", "-a", help="Account id")] = None,
    db: Annotated[Optional[Path], typer.Option("--db", help="Trade mirror database path")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logs")] = False,
):
    """
    Tradelytics Entry Point
    """
    _configure_logging(verbose)
    ctx.obj = {"config": config, "account": account, "db": db}


@app.command(name="import")
def import_trades(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV export to import"),
    broker: Optional[str] = typer.Option(
        None, "--broker", "-b", help="tradovate, tradingview or native (auto-detected by default)"
    ),
):
    """Import a broker CSV, replacing the account's trades"""
    result = parse_file(file, broker)

    table = Table(title=f"Import: {file.name}")
    table.add_column("Broker", style="cyan")
    table.add_column("Rows", justify="right")
    table.add_column("Imported", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_row(result.broker, str(result.original_rows), str(result.processed_rows), str(result.skipped_rows))
    console.print(table)

    for warning in result.warnings[:10]:
        console.print(f"[yellow]{warning}[/yellow]")
    if len(result.warnings) > 10:
        console.print(f"[dim]... {len(result.warnings) - 10} more warnings[/dim]")
    for error in result.errors:
        console.print(f"[red]{error}[/red]")

    if not result.success:
        console.print("[bold red]Import failed[/bold red]: no valid trades found.")
        raise typer.Exit(code=1)

    context = _context(ctx)
    try:
        context.store.replace_trades(result.trades)
        console.print(
            f"[bold green]Imported {len(result.trades)} trades[/bold green] "
            f"into account [cyan]{context.store.account_id}[/cyan]"
        )
    finally:
        context.dispose()


@app.command()
def metrics(ctx: typer.Context):
    """List available metrics"""
    context = _context(ctx)
    try:
        table = Table(title="Metrics")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Category", style="dim")
        table.add_column("Params")
        table.add_column("Description")
        for metric in context.service.list_metrics():
            table.add_row(metric["name"], metric["category"], ", ".join(metric["params"]), metric["description"])
        console.print(table)
    finally:
        context.dispose()


@app.command()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Metric name (see 'metrics')"),
    param: Annotated[Optional[List[str]], typer.Option("--param", "-p", help="Metric param as key=value")] = None,
    start: Annotated[Optional[str], typer.Option("--from", help="Only trades opened on or after this date")] = None,
    end: Annotated[Optional[str], typer.Option("--to", help="Only trades opened on or before this date")] = None,
    symbol: Annotated[Optional[List[str]], typer.Option("--symbol", "-s", help="Restrict to symbol")] = None,
    side: Annotated[Optional[str], typer.Option(help="LONG or SHORT")] = None,
    tag: Annotated[Optional[List[str]], typer.Option("--tag", "-t", help="Only trades with a tag containing this")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the series as JSON")] = False,
):
    """Compute and print one metric series"""
    try:
        filters = AnalyticsFilter.create(start, end, symbols=symbol, sides=[side] if side else None, tags=tag)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    context = _context(ctx)
    try:
        series = context.service.get_metric(name, _parse_params(param), None if filters.is_empty else filters)
    except UnknownMetricError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    finally:
        context.dispose()

    if as_json:
        typer.echo(json.dumps(series.to_dict(), default=str))
        return

    if not series.data:
        console.print(f"[yellow]No data for {series.title}[/yellow]")
        return

    table = Table(title=series.title)
    table.add_column("Date", style="cyan")
    table.add_column("Value", justify="right")
    extra_keys = sorted({k for p in series.data for k in p.extra})
    for key in extra_keys:
        table.add_column(key, justify="right", style="dim")
    for point in series.data:
        extras = [str(point.extra.get(k, "")) for k in extra_keys]
        table.add_row(point.date, _fmt(point.value), *extras)
    console.print(table)


@app.command()
def summary(
    ctx: typer.Context,
    as_json: Annotated[bool, typer.Option("--json", help="Print the summary as JSON")] = False,
):
    """Show headline performance figures"""
    context = _context(ctx)
    try:
        result = context.service.get_summary()
        trade_count = len(context.store)
    finally:
        context.dispose()

    if as_json:
        typer.echo(json.dumps(result.to_dict()))
        return

    if trade_count == 0:
        console.print("[yellow]No trades imported.[/yellow]")
        return

    table = Table(title="Performance Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total Trades", str(result.total_trades))
    table.add_row("Wins / Losses", f"{result.winning_trades} / {result.losing_trades}")
    table.add_row("Win Rate", f"{result.win_rate:.1f}%")
    pnl_style = "green" if result.net_pnl >= 0 else "red"
    table.add_row("Net P&L", f"[{pnl_style}]${_fmt(result.net_pnl)}[/{pnl_style}]")
    table.add_row("Avg Win", f"${_fmt(result.avg_win)}")
    table.add_row("Avg Loss", f"${_fmt(result.avg_loss)}")
    table.add_row("Profit Factor", _fmt(result.profit_factor))
    table.add_row("Expectancy", f"${_fmt(result.expectancy)}")
    table.add_row("Largest Win", f"${_fmt(result.largest_win)}")
    table.add_row("Largest Loss", f"${_fmt(result.largest_loss)}")
    table.add_row("Current Streak", str(result.current_streak))
    console.print(table)


@app.command()
def clear(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
):
    """Delete all trades for the account"""
    context = _context(ctx)
    try:
        account = context.store.account_id
        if not yes and not typer.confirm(f"Delete {len(context.store)} trades for account '{account}'?"):
            console.print("Aborted.")
            raise typer.Exit(code=1)
        context.store.clear_data()
        console.print(f"[bold green]Cleared[/bold green] trades for account [cyan]{account}[/cyan]")
    finally:
        context.dispose()


@app.command()
def version():
    """Show version information"""
    console.print(f"Tradelytics v{__version__}")


if __name__ == "__main__":
    app()
