"""Intention management commands."""

import asyncio
import sys

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from llm import LLMError
from progress.models import Intention
from shared_types import Timeframe

console = Console()


def _save_and_start_set(store, new: list[Intention]):
    """Persist new intentions and open a set holding them plus the active ones."""
    current = store.current_set()
    ids = list(current.intention_ids) if current else []
    for intention in new:
        store.save_intention(intention)
        ids.append(intention.id)
    return store.start_set(ids)


@click.group()
def intentions():
    """Manage intentions."""
    pass


@intentions.command("list")
@click.option("-a", "--all", "show_all", is_flag=True, help="Include inactive intentions")
def intentions_list(show_all: bool):
    """List intentions."""
    c = get_components(skip_llm=True)
    rows = c["intention_store"].list_intentions(active_only=not show_all)
    if not rows:
        console.print("[yellow]No intentions yet.[/]")
        return

    table = Table(show_header=True, title="Intentions")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Target", justify="right")
    table.add_column("Category", style="cyan")
    table.add_column("Aliases", style="dim")
    if show_all:
        table.add_column("Active")
    for i in rows:
        row = [i.id, i.title, f"{i.target_value:g} {i.unit}/{i.timeframe}", i.category or "", ", ".join(i.aliases)]
        if show_all:
            row.append("yes" if i.is_active else "no")
        table.add_row(*row)
    console.print(table)


@intentions.command("add")
@click.argument("title")
@click.option("-t", "--target", default=1.0, type=float, help="Target per timeframe")
@click.option("-u", "--unit", default="times", help="Unit (minutes, pages, ...)")
@click.option("--weekly", is_flag=True, help="Target is per week")
@click.option("-c", "--category")
@click.option("--alias", "aliases", multiple=True, help="Other names used in check-ins")
def intentions_add(title: str, target: float, unit: str, weekly: bool, category, aliases):
    """Add an intention and start a new intention set."""
    c = get_components(skip_llm=True)
    intention = Intention(
        id="",
        title=title.strip(),
        target_value=target,
        unit=unit.strip().lower(),
        timeframe=Timeframe.WEEKLY if weekly else Timeframe.DAILY,
        category=category,
        aliases=list(aliases),
    )
    _save_and_start_set(c["intention_store"], [intention])
    console.print(f"[green]Added:[/] {intention.title} ({intention.id})")


@intentions.command("remove")
@click.argument("intention_id")
def intentions_remove(intention_id: str):
    """Deactivate an intention and start a new set without it."""
    c = get_components(skip_llm=True)
    store = c["intention_store"]
    intention = store.get_intention(intention_id)
    if intention is None:
        console.print(f"[red]No intention {intention_id}[/]")
        sys.exit(1)

    intention.is_active = False
    store.save_intention(intention)
    current = store.current_set()
    remaining = [i for i in (current.intention_ids if current else []) if i != intention_id]
    store.start_set(remaining)
    console.print(f"[green]Removed:[/] {intention.title}")


@intentions.command("parse")
@click.argument("transcript")
@click.option("--save", is_flag=True, help="Save the parsed intentions")
def intentions_parse(transcript: str, save: bool):
    """Draft intentions from a spoken description."""
    c = get_components()
    try:
        with console.status("Parsing intentions..."):
            drafts = asyncio.run(c["intentions_parser"].parse(transcript))
    except LLMError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)

    if not drafts:
        console.print("[yellow]No intentions found.[/]")
        return

    table = Table(show_header=True, title="Parsed intentions")
    table.add_column("Title")
    table.add_column("Target", justify="right")
    table.add_column("Category", style="cyan")
    table.add_column("Notes", style="dim")
    for d in drafts:
        table.add_row(d.title, f"{d.target:g} {d.unit}", d.category or "", d.notes or "")
    console.print(table)

    if save:
        new = [
            Intention(id="", title=d.title, target_value=d.target, unit=d.unit, category=d.category)
            for d in drafts
        ]
        _save_and_start_set(c["intention_store"], new)
        console.print(f"[green]Saved {len(new)} intention(s).[/]")
