"""
Play CLI command.

Runs a slideshow from the configured source and prints each item as it is
shown. The session is saved on exit and resumed on the next run.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from media_card.config import AppConfig, ConfigError
from media_card.main import DEFAULT_INTERVAL, run_slideshow
from media_card.pipeline import DisplayItem


def _print_item(item: DisplayItem) -> None:
    meta = item.metadata
    captured = meta.captured_at.strftime("%Y-%m-%d %H:%M") if meta.captured_at else "undated"
    line = f"[{item.kind.value}] {meta.filename or item.item.reference}  {captured}"
    if meta.folder:
        line += f"  ({meta.folder})"
    click.echo(line)

    if meta.location_name or meta.location_city:
        click.echo(f"    {meta.location_name or meta.location_city}")


@click.command("play")
@click.option(
    "--count",
    "-n",
    default=None,
    type=click.IntRange(min=1),
    help="Stop after this many items.",
)
@click.option(
    "--interval",
    "-i",
    default=DEFAULT_INTERVAL,
    show_default=True,
    type=click.FloatRange(min=0),
    help="Seconds between items.",
)
@click.option(
    "--fresh",
    is_flag=True,
    default=False,
    help="Ignore the saved session and start over.",
)
@click.option(
    "--state-file",
    default=None,
    type=click.Path(dir_okay=False),
    help="Session state file (defaults to the data directory).",
)
@click.option(
    "--media-root",
    default=None,
    type=click.Path(file_okay=False),
    help="Local directory that /media paths resolve against.",
)
def play(
    count: Optional[int],
    interval: float,
    fresh: bool,
    state_file: Optional[str],
    media_root: Optional[str],
) -> None:
    """
    Run a slideshow from the configured source.

    Items are taken from the provider selected by the card configuration
    (single file, folder or media index). Stop with Ctrl+C or SIGTERM;
    the position is saved and resumed on the next run unless --fresh.

    \b
    Examples:
        media-card play --count 10 --interval 0
        media-card play --fresh --media-root ~/Pictures
    """
    try:
        config = AppConfig()
    except ConfigError as e:
        click.echo(
            click.style("Error: ", fg="red", bold=True)
            + f"Failed to load config: {e}"
        )
        sys.exit(1)

    click.echo(f"Source: {config.card.media_source_type}")
    if config.is_configured:
        click.echo(f"  Server: {config.server_url}")
    click.echo()

    exit_code = run_slideshow(
        config,
        count=count,
        interval=interval,
        state_path=Path(state_file) if state_file else None,
        fresh=fresh,
        media_root=media_root,
        on_item=_print_item,
    )
    sys.exit(exit_code)
