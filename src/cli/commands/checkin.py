"""Check-in command: log progress and mood from a transcript."""

import asyncio
import sys
import uuid
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from progress.checkin import resolve_all
from progress.models import CheckIn, CheckInUpdate
from shared_types import AmbiguityChoice

console = Console()

_CHOICE_KEYS = {
    "t": AmbiguityChoice.TOTAL_TODAY,
    "i": AmbiguityChoice.INCREMENT,
    "s": AmbiguityChoice.SKIP,
}


async def prompt_resolver(updates: list[CheckInUpdate]) -> list[AmbiguityChoice] | None:
    """Ask about each unclear update; 'q' skips the rest."""
    console.print(f"\n[yellow]{len(updates)} update(s) need confirmation[/]")
    choices = []
    for update in updates:
        quote = f' ("{update.evidence}")' if update.evidence else ""
        console.print(f"  {update.amount:g} {update.unit} for [bold]{update.intention_id}[/]{quote}")
        answer = click.prompt(
            "  [t]otal for today, [i]ncrement, [s]kip, [q]uit",
            type=click.Choice(["t", "i", "s", "q"]),
            default="s",
            show_choices=False,
        )
        if answer == "q":
            return None
        choices.append(_CHOICE_KEYS[answer])
    return choices


@click.command()
@click.argument("transcript", required=False)
@click.option("-f", "--file", "transcript_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--resolve",
    type=click.Choice(["ask", *[c.value for c in AmbiguityChoice]]),
    default="ask",
    help="How to handle updates that need confirmation",
)
def checkin(transcript: str | None, transcript_file: Path | None, resolve: str):
    """Record a check-in. Opens editor if no transcript provided."""
    c = get_components()

    if transcript_file:
        transcript = transcript_file.read_text()
    if not transcript:
        transcript = click.edit("# What did you get done today?\n\n")
        if not transcript:
            console.print("[yellow]No transcript provided, cancelled.[/]")
            return

    intention_set = c["intention_store"].current_set()
    if intention_set is None:
        console.print("[red]No intentions yet.[/] Add some with [bold]attune intentions add[/].")
        sys.exit(1)

    check_in = CheckIn(
        id=uuid.uuid4().hex[:16],
        created_at=datetime.now(),
        intention_set_id=intention_set.id,
        transcript=transcript.strip(),
    )
    resolver = prompt_resolver if resolve == "ask" else resolve_all(AmbiguityChoice(resolve))

    outcome = asyncio.run(c["processor"].process(check_in, resolver=resolver))

    titles = {i.id: i.title for i in c["intention_store"].list_intentions()}
    if outcome.applied:
        table = Table(show_header=True, title="Progress logged")
        table.add_column("Intention")
        table.add_column("Type")
        table.add_column("Amount", justify="right")
        table.add_column("Evidence", style="dim")
        for entry in outcome.applied:
            table.add_row(
                titles.get(entry.intention_id, entry.intention_id),
                str(entry.update_type),
                f"{entry.amount:g} {entry.unit}",
                (entry.evidence or "")[:40],
            )
        console.print(table)
    else:
        console.print("[yellow]No progress found in this check-in.[/]")

    if outcome.used_fallback:
        console.print("[dim]Parsed with the offline fallback.[/]")
    if outcome.skipped:
        console.print(f"[dim]Skipped {len(outcome.skipped)} unconfirmed update(s).[/]")
    if outcome.mood_label or outcome.mood_score is not None:
        score = "" if outcome.mood_score is None else f" ({outcome.mood_score}/10)"
        kept = "" if outcome.mood_updated else " [dim]manual mood kept[/]"
        console.print(f"Mood: {outcome.mood_label or '-'}{score}{kept}")
