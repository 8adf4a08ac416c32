"""Streak and momentum commands."""

from datetime import date, datetime

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from momentum import WeekMomentumCalculator, build_points, y_axis_max
from progress.calculator import date_key
from shared_types import Tier

console = Console()

TIER_STYLE = {
    Tier.VERY_LOW: "red",
    Tier.LOW: "magenta",
    Tier.NEUTRAL: "yellow",
    Tier.GOOD: "cyan",
    Tier.GREAT: "green",
}


def _parse_day(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got {value}")


@click.group()
def momentum():
    """Streaks and momentum."""
    pass


@momentum.command("streak")
def momentum_streak():
    """Consecutive days counted back from today."""
    c = get_components(skip_llm=True)
    today = date.today()
    days = c["streak"].compute(c["streak_loader"].load(today), today)
    unit = "day" if days == 1 else "days"
    console.print(f"[bold]Streak:[/] {days} {unit} [dim]({c['streak'].rule} rule)[/]")


@momentum.command("week")
@click.option("-d", "--date", "day", help="Any day in the week (YYYY-MM-DD)")
def momentum_week(day: str | None):
    """Completion tier for each day of the week."""
    c = get_components(skip_llm=True)
    the_day = _parse_day(day)
    store = c["intention_store"]
    intention_set = store.active_set_on(the_day)
    if intention_set is None:
        console.print("[yellow]No intentions active this week.[/]")
        return

    week = WeekMomentumCalculator().compute(
        the_day,
        intention_set,
        store.intentions_for_set(intention_set),
        lambda key: c["progress_store"].entries_for_day(key, intention_set.id),
        c["override_store"].for_day,
    )

    table = Table(show_header=True, title="Week momentum")
    for d in week.days:
        table.add_column(d.weekday_letter, justify="center")
    cells = []
    for d in week.days:
        if d.is_future:
            cells.append("[dim]·[/]")
        else:
            style = TIER_STYLE[d.tier]
            ratio = f"{d.completion_ratio:.0%}" if d.has_data else "-"
            cells.append(f"[{style}]{ratio}[/]")
    table.add_row(*cells)
    console.print(table)


@momentum.command("day")
@click.option("-d", "--date", "day", help="Day to chart (YYYY-MM-DD, default today)")
def momentum_day(day: str | None):
    """Completion over the course of one day, per check-in."""
    c = get_components(skip_llm=True)
    the_day = _parse_day(day)
    key = date_key(the_day)
    store = c["intention_store"]
    intention_set = store.active_set_on(the_day)
    if intention_set is None:
        console.print(f"[yellow]No intentions active on {key}.[/]")
        return

    points = build_points(
        key,
        store.intentions_for_set(intention_set),
        c["check_in_store"].for_day(key),
        c["progress_store"].entries_for_day(key, intention_set.id),
    )
    if not points:
        console.print(f"[yellow]No progress logged on {key}.[/]")
        return

    scale = y_axis_max(points)
    table = Table(show_header=True, title=f"Momentum - {key}")
    table.add_column("Time", style="dim")
    table.add_column("Intention")
    table.add_column("Percent", justify="right")
    table.add_column("", min_width=20)
    for p in points:
        filled = int(round(20 * min(p.percent, scale) / scale))
        table.add_row(p.at.strftime("%H:%M"), p.intention_title, f"{p.percent:.0f}%", "█" * filled)
    console.print(table)
