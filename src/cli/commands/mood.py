"""Daily mood commands."""

from datetime import date, timedelta

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from progress.calculator import date_key
from progress.mood import mood_tier, mood_tier_label
from shared_types import Tier

console = Console()

TIER_BAR = {
    Tier.VERY_LOW: "[red]██[/]",
    Tier.LOW: "[magenta]██[/]",
    Tier.NEUTRAL: "[dim]██[/]",
    Tier.GOOD: "[cyan]██[/]",
    Tier.GREAT: "[green]██[/]",
}


@click.group()
def mood():
    """Show or set the daily mood."""
    pass


@mood.command("show")
@click.option("-d", "--days", default=7, help="Lookback days")
def mood_show(days: int):
    """Show mood timeline."""
    c = get_components(skip_llm=True)
    today = date.today()
    moods = c["mood_store"].list_range(date_key(today - timedelta(days=days - 1)), date_key(today))
    moods = [m for m in moods if m.mood_label or m.mood_score is not None]
    if not moods:
        console.print("[yellow]No mood recorded. Check in or run attune mood set.[/]")
        return

    table = Table(show_header=True, title=f"Mood - last {days} days")
    table.add_column("Date", style="dim")
    table.add_column("Mood")
    table.add_column("Score", justify="right")
    table.add_column("Source", style="dim")
    for m in moods:
        if m.mood_score is None:
            bar, score = "", "-"
        else:
            bar, score = TIER_BAR[mood_tier(m.mood_score)] + " ", str(m.mood_score)
        label = m.mood_label or mood_tier_label(m.mood_score)
        table.add_row(m.date_key, bar + label, score, "manual" if m.is_manual_override else "check-in")
    console.print(table)


@mood.command("set")
@click.argument("score", type=click.IntRange(0, 10))
@click.option("-l", "--label", help="One word for the mood (defaults to the tier name)")
def mood_set(score: int, label: str | None):
    """Set today's mood by hand; check-ins will not overwrite it."""
    c = get_components(skip_llm=True)
    key = date_key(date.today())
    c["mood_store"].set_manual(key, label or mood_tier_label(score), score)
    console.print(f"[green]Mood set:[/] {label or mood_tier_label(score)} ({score}/10)")


@mood.command("clear")
def mood_clear():
    """Drop today's manual mood so check-ins can set it again."""
    c = get_components(skip_llm=True)
    c["mood_store"].clear_manual_override(date_key(date.today()))
    console.print("[green]Manual mood cleared.[/]")
