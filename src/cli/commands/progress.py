"""Daily progress command."""

import sys
from datetime import date, datetime

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from progress.calculator import (
    date_key,
    overall_percent_complete,
    percent_complete,
    totals_for_day,
)
from progress.models import ManualProgressOverride

console = Console()


def _parse_day(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got {value}")


@click.command()
@click.option("-d", "--date", "day", help="Day to show (YYYY-MM-DD, default today)")
@click.option("--set", "set_total", nargs=2, type=(str, float), help="Override: INTENTION_ID AMOUNT")
@click.option("--clear", "clear_id", help="Remove the manual override for INTENTION_ID")
def progress(day: str | None, set_total: tuple | None, clear_id: str | None):
    """Show today's totals against each intention."""
    c = get_components(skip_llm=True)
    the_day = _parse_day(day)
    key = date_key(the_day)
    store = c["intention_store"]

    intention_set = store.active_set_on(the_day)
    if intention_set is None:
        console.print(f"[yellow]No intentions active on {key}.[/]")
        return
    intentions = store.intentions_for_set(intention_set)
    by_id = {i.id: i for i in intentions}

    if set_total:
        intention_id, amount = set_total
        if intention_id not in by_id:
            console.print(f"[red]Unknown intention:[/] {intention_id}")
            sys.exit(1)
        c["override_store"].set(
            ManualProgressOverride(key, intention_id, amount, by_id[intention_id].unit)
        )
    if clear_id:
        c["override_store"].clear(key, clear_id)

    totals = totals_for_day(
        c["progress_store"].entries_for_day(key, intention_set.id),
        key,
        intentions,
        intention_set.id,
        c["override_store"].for_day(key),
    )

    table = Table(show_header=True, title=f"Progress - {key}")
    table.add_column("ID", style="dim")
    table.add_column("Intention")
    table.add_column("Total", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Done", justify="right")
    for i in intentions:
        pct = percent_complete(totals[i.id], i.target_value, i.timeframe)
        style = "green" if pct >= 1.0 else "yellow" if pct > 0 else "dim"
        table.add_row(
            i.id,
            i.title,
            f"{totals[i.id]:g} {i.unit}",
            f"{i.target_value:g}/{i.timeframe}",
            f"[{style}]{pct:.0%}[/]",
        )
    console.print(table)
    console.print(f"\n[bold]Overall:[/] {overall_percent_complete(intentions, totals):.0%}")
