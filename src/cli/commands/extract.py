"""Item extraction, topics and review commands."""

import asyncio
import sys
import uuid
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components
from shared_types import ItemType, ReviewState
from understanding import ItemCorrection, SegmentWork

console = Console()


def _items_table(items, title: str) -> Table:
    table = Table(show_header=True, title=title)
    table.add_column("ID", style="dim")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Categories")
    table.add_column("Strength", justify="right")
    table.add_column("Fingerprint", style="dim")
    for item in items:
        table.add_row(
            item.id,
            str(item.type),
            item.title[:50],
            ", ".join(item.categories),
            f"{item.strength:.2f}",
            item.fingerprint,
        )
    return table


@click.command()
@click.argument("transcript_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--session", "session_id", help="Session id (defaults to a new one)")
@click.option("--segment", "segment_id", help="Treat the whole file as this one segment")
def extract(transcript_file: Path, session_id: str | None, segment_id: str | None):
    """Extract items from a transcript and merge them into topics."""
    c = get_components()
    if not c["config"].extraction.enabled:
        console.print("[yellow]Extraction is disabled in config.[/]")
        return

    transcript = transcript_file.read_text()
    if not transcript.strip():
        console.print("[yellow]Transcript is empty.[/]")
        return

    session_id = session_id or uuid.uuid4().hex[:16]
    pipeline = c["pipeline"]
    with console.status("Extracting items..."):
        if segment_id:
            work = SegmentWork(session_id, segment_id, 0, transcript.strip())
            items = asyncio.run(pipeline.process_segment(work))
        else:
            items = asyncio.run(
                pipeline.process_session(
                    session_id,
                    transcript,
                    prior_context_chars=c["config"].extraction.prior_context_chars,
                )
            )

    if not items:
        console.print("[yellow]No items found.[/]")
        return
    console.print(_items_table(items, f"Session {session_id}"))


@click.command()
@click.option("-c", "--category", help="Only topics with this primary category")
@click.option("-n", "--limit", default=20, help="Max topics to show")
@click.option("--rebuild", is_flag=True, help="Re-apply all stored items first")
def topics(category: str | None, limit: int, rebuild: bool):
    """Show recurring topics across sessions."""
    c = get_components(skip_llm=True)

    if rebuild:
        stats = asyncio.run(c["pipeline"].rebuild_topics())
        console.print(
            f"[green]Rebuilt:[/] {stats.created} created, {stats.updated} updated, "
            f"{stats.collisions} collisions"
        )

    rows = c["topic_store"].list_topics(category=category, limit=limit)
    if not rows:
        console.print("[yellow]No topics yet. Run attune extract first.[/]")
        return

    table = Table(show_header=True, title="Topics")
    table.add_column("Topic")
    table.add_column("Category", style="cyan")
    table.add_column("Mentions", justify="right")
    table.add_column("Last seen", style="dim")
    for t in rows:
        table.add_row(t.display_title, t.primary_category, str(t.occurrence_count), t.last_seen_at.strftime("%Y-%m-%d"))
    console.print(table)


@click.command()
@click.argument("item_id")
@click.argument("state", type=click.Choice([s.value for s in ReviewState]))
def review(item_id: str, state: str):
    """Mark an extracted item as kept or dismissed."""
    c = get_components(skip_llm=True)
    if not c["item_store"].set_review_state(item_id, ReviewState(state)):
        console.print(f"[red]No item {item_id}[/]")
        sys.exit(1)
    console.print(f"[green]{item_id}[/] -> {state}")


@click.command()
@click.argument("item_id")
@click.option("--title", help="Corrected title")
@click.option("--type", "item_type", type=click.Choice([t.value for t in ItemType]), help="Corrected type")
@click.option("--categories", help="Comma-separated corrected categories")
@click.option("--incorrect", is_flag=True, help="Item should not have been extracted")
@click.option("--note")
def correct(item_id: str, title, item_type, categories, incorrect: bool, note):
    """Overlay a correction on an extracted item."""
    c = get_components(skip_llm=True)
    store = c["item_store"]
    if store.get_item(item_id) is None:
        console.print(f"[red]No item {item_id}[/]")
        sys.exit(1)

    store.save_correction(
        ItemCorrection(
            item_id=item_id,
            is_incorrect=incorrect,
            corrected_title=title,
            corrected_type=ItemType(item_type) if item_type else None,
            corrected_categories=[s.strip() for s in categories.split(",") if s.strip()] if categories else None,
            note=note,
        )
    )
    console.print(f"[green]Saved correction for {item_id}[/]")
