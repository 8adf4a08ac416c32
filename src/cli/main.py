"""Attune command line."""

import sys

import click

from cli.commands import checkin, correct, extract, intentions, momentum, mood, progress, review, topics
from cli.config import load_config_model
from cli.logging_config import setup_logging
from cli.utils import console
from observability import log_run_summary


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Attune - intentions, check-ins and momentum."""
    try:
        config = load_config_model()
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)

    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=config.logging.json_logs, level=level, log_file=config.paths.log_file)
    ctx.call_on_close(lambda: log_run_summary(ctx.invoked_subcommand or "attune"))


cli.add_command(extract)
cli.add_command(topics)
cli.add_command(review)
cli.add_command(correct)
cli.add_command(checkin)
cli.add_command(progress)
cli.add_command(intentions)
cli.add_command(mood)
cli.add_command(momentum)


if __name__ == "__main__":
    cli()
