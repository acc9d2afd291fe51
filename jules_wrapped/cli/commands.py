"""CLI commands for jules-wrapped."""

from __future__ import annotations

import asyncio
import json
from datetime import date

import typer
from rich.console import Console
from rich.table import Table

from jules_wrapped import __logo__, __version__
from jules_wrapped.client.events import RateLimitEvent, ResumeEvent, SleepEvent
from jules_wrapped.config import ENV_API_KEY, ENV_BASE_URL, ClientConfig
from jules_wrapped.usage.models import Stats

app = typer.Typer(
    name="jules-wrapped",
    help=f"{__logo__} jules-wrapped - your year with Jules, in numbers",
    add_completion=False,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} jules-wrapped v{__version__}")
        raise typer.Exit()


# ============================================================================
# Rendering
# ============================================================================


def _print_summary(stats: Stats) -> None:
    console.print(f"\n{__logo__} Your {stats.year} in Jules\n")

    table = Table(title="Overview")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Sessions", f"{stats.total_sessions:,}")
    table.add_row("Activities", f"{stats.total_activities:,}")
    table.add_row("Messages", f"{stats.total_messages:,}")
    table.add_row("Total tokens (est.)", f"{stats.total_tokens_estimated:,}")
    table.add_row("Longest streak", f"{stats.max_streak} days")
    table.add_row("Current streak", f"{stats.current_streak} days")
    table.add_row("Favorite mode", stats.top_automation_mode or "Manual")
    if stats.most_active_day:
        table.add_row(
            "Most active day",
            f"{stats.most_active_day.formatted_date} ({stats.most_active_day.count})",
        )
    table.add_row("Busiest weekday", stats.weekday_activity.most_active_day_name)
    table.add_row("Plan approval rate", f"{stats.plan_approval_rate:.1f}%")
    table.add_row("Pull requests", f"{stats.total_pull_requests:,}")
    console.print(table)

    for title, rows in (
        ("Top Worked Repos", stats.top_sources),
        ("Top Activity Types", stats.top_activity_types),
    ):
        if not rows:
            continue
        ranked = Table(title=title)
        ranked.add_column("Name", style="cyan")
        ranked.add_column("Count", justify="right")
        ranked.add_column("Share", justify="right")
        for r in rows:
            ranked.add_row(r.name, f"{r.count:,}", f"{r.percentage:.1f}%")
        console.print(ranked)
    console.print()


# ============================================================================
# Main command
# ============================================================================


@app.command()
def main(
    year: int = typer.Option(None, "--year", "-y", help="Year to summarise (default: current)"),
    api_key: str = typer.Option(
        None, "--api-key", envvar=ENV_API_KEY, help="Jules API key", show_default=False
    ),
    base_url: str = typer.Option(
        None, "--base-url", envvar=ENV_BASE_URL, help="Override API base URL"
    ),
    sample: bool = typer.Option(
        False, "--sample", help="Use bundled sample data (no API key required)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the stats as JSON"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show runtime logs"),
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """Collect a year of Jules activity and show the highlights."""
    from loguru import logger

    from jules_wrapped.client.errors import JulesAPIError, PaginationError
    from jules_wrapped.usage.report import collect

    if logs:
        logger.enable("jules_wrapped")
    else:
        logger.disable("jules_wrapped")

    requested_year = year or date.today().year
    status_message = (
        "[dim]Loading sample Jules data...[/dim]"
        if sample
        else "[dim]Fetching your Jules sessions...[/dim]"
    )

    with console.status(status_message, spinner="dots") as status:

        def on_rate_limit(event: RateLimitEvent) -> None:
            if isinstance(event, SleepEvent):
                status.update(status_message.replace("...", "... (sleeping for rate limits)"))
            elif isinstance(event, ResumeEvent):
                status.update(status_message)

        config = ClientConfig.from_env(
            api_key=api_key,
            base_url=base_url,
            use_sample_data=sample,
            on_rate_limit=on_rate_limit,
        )
        if not config.has_credentials():
            status.stop()
            console.print(
                f"[red]Error: Jules API key not provided.[/red] "
                f"Use --api-key, set {ENV_API_KEY}, or try --sample."
            )
            raise typer.Exit(1)

        try:
            stats = asyncio.run(collect(requested_year, config))
        except Exception as e:
            status.stop()
            if not isinstance(e, (JulesAPIError, PaginationError)):
                logger.exception("Collection failed")
            console.print("[red]Failed to collect stats[/red]")
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    if stats.total_activities == 0:
        console.print(f"[yellow]No Jules activity found for {requested_year}[/yellow]")
        raise typer.Exit()

    if as_json:
        console.print_json(json.dumps(stats.to_dict()))
        return

    _print_summary(stats)


if __name__ == "__main__":
    app()
