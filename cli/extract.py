"""
Extract CLI command.

Shows the metadata derived from a media path: filename, folder and capture
date, optionally enriched with the media index record.
"""

import asyncio
import sys
from typing import Optional

import click

from media_card.api_client import HomeAssistantClient
from media_card.config import AppConfig, ConfigError, DateTimeFormatConfig
from media_card.metadata import EnrichedMetadata, ExtractedMetadata, MetadataEnricher, extract_metadata


async def _enrich(config: AppConfig, path: str, extracted: ExtractedMetadata) -> EnrichedMetadata:
    async with HomeAssistantClient(
        server_url=config.server_url,
        access_token=config.access_token,
        timeout=config.request_timeout,
    ) as client:
        enricher = MetadataEnricher(client, config.card.media_index)
        return await enricher.enrich(path, extracted)


def _show(metadata: ExtractedMetadata) -> None:
    captured = metadata.captured_at.isoformat(sep=" ") if metadata.captured_at else "-"
    click.echo(f"  Filename:  {metadata.filename or '-'}")
    click.echo(f"  Folder:    {metadata.folder or '-'}")
    click.echo(f"  Captured:  {captured}")

    if not isinstance(metadata, EnrichedMetadata):
        return

    if metadata.has_coordinates:
        click.echo(f"  Location:  {metadata.latitude}, {metadata.longitude}")
    if metadata.is_geocoded:
        place = ", ".join(
            p for p in (metadata.location_city, metadata.location_state, metadata.location_country) if p
        )
        click.echo(f"  Place:     {metadata.location_name or place}")
    if metadata.camera_make or metadata.camera_model:
        camera = " ".join(p for p in (metadata.camera_make, metadata.camera_model) if p)
        click.echo(f"  Camera:    {camera}")
    if metadata.is_favorited:
        click.echo(click.style("  Favorite", fg="yellow"))


@click.command("extract")
@click.argument("path")
@click.option(
    "--filename-pattern",
    default=None,
    help="Date pattern for the filename (tokens YYYY MM DD HH mm ss).",
)
@click.option(
    "--folder-pattern",
    default=None,
    help="Date pattern for the folder path.",
)
@click.option(
    "--enrich",
    is_flag=True,
    default=False,
    help="Merge the media index record for the file.",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Output as JSON",
)
def extract(
    path: str,
    filename_pattern: Optional[str],
    folder_pattern: Optional[str],
    enrich: bool,
    as_json: bool,
) -> None:
    """
    Show metadata derived from a media path.

    PATH is a filesystem path or media-source URI. The capture date comes
    from the custom patterns when given (or configured), otherwise from
    the built-in filename patterns.

    \b
    Examples:
        media-card extract /media/Photos/2024/IMG_20240115_143022.jpg
        media-card extract /media/Photos/2024-01-15/IMG_1.jpg --folder-pattern YYYY-MM-DD
        media-card extract /media/Photos/a.jpg --enrich --json
    """
    try:
        config = AppConfig()
    except ConfigError as e:
        click.echo(
            click.style("Error: ", fg="red", bold=True)
            + f"Failed to load config: {e}"
        )
        sys.exit(1)

    format_config = config.card.custom_datetime_format
    if filename_pattern or folder_pattern:
        format_config = DateTimeFormatConfig(
            filename_pattern=filename_pattern,
            folder_pattern=folder_pattern,
        )

    metadata: ExtractedMetadata = extract_metadata(path, format_config)

    if enrich:
        if not config.is_configured or not config.card.media_index.is_active:
            click.echo(
                click.style("Error: ", fg="red", bold=True)
                + "Enrichment needs a server connection and an active media index."
            )
            click.echo("Run 'media-card config set-server' and configure media_index in the card section.")
            sys.exit(1)
        metadata = asyncio.run(_enrich(config, path, metadata))

    if as_json:
        click.echo(metadata.model_dump_json(indent=2))
        return

    click.echo(click.style(path, bold=True))
    _show(metadata)
