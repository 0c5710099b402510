"""
Config CLI commands.

Shows the configuration file location and contents and updates the server
connection.
"""

import sys
from typing import Optional

import click

from media_card.config import (
    URL_PATTERN,
    AppConfig,
    ConfigError,
    ConfigValidationError,
)


def _load() -> AppConfig:
    try:
        return AppConfig()
    except ConfigError as e:
        click.echo(
            click.style("Error: ", fg="red", bold=True)
            + f"Failed to load config: {e}"
        )
        sys.exit(1)


def _mask(token: str) -> str:
    if not token:
        return "(not set)"
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"


# ============================================================================
# Config Command Group
# ============================================================================


@click.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """
    Manage media card configuration.

    The configuration file holds the Home Assistant connection and the
    card options. Environment variables MEDIA_CARD_SERVER_URL,
    MEDIA_CARD_ACCESS_TOKEN and MEDIA_CARD_LOG_LEVEL override it.
    """
    # Ensure context object exists for subcommands
    ctx.ensure_object(dict)


@config.command("path")
def show_path() -> None:
    """
    Print the configuration file path.

    Example:

        media-card config path
    """
    click.echo(str(_load().config_path))


@config.command("show")
def show() -> None:
    """
    Display the current configuration.

    The access token is masked.

    Example:

        media-card config show
    """
    app_config = _load()
    card = app_config.card

    click.echo(f"Config file: {app_config.config_path}")
    if not app_config.config_path.exists():
        click.echo(click.style("  (not created yet, showing defaults)", fg="yellow"))
    click.echo()

    click.echo("Connection:")
    click.echo(f"  Server:       {app_config.server_url or '(not set)'}")
    click.echo(f"  Access token: {_mask(app_config.access_token)}")
    click.echo(f"  Timeout:      {app_config.request_timeout}s")
    click.echo(f"  Log level:    {app_config.log_level}")
    click.echo()

    click.echo("Card:")
    click.echo(f"  Source type:  {card.media_source_type}")
    if card.media_source_type == "single_media":
        click.echo(f"  Path:         {card.single_media.path or '(not set)'}")
    else:
        click.echo(f"  Folder:       {card.folder.path or '(not set)'}")
        click.echo(f"  Mode:         {card.folder.mode}")
        click.echo(f"  Recursive:    {card.folder.recursive}")
    index = card.media_index
    status = click.style("active", fg="green") if index.is_active else "inactive"
    click.echo(f"  Media index:  {status}" + (f" ({index.entity_id})" if index.entity_id else ""))

    try:
        app_config.validate()
    except ConfigValidationError as e:
        click.echo()
        click.echo(click.style("Warning: ", fg="yellow") + str(e))


@config.command("set-server")
@click.argument("url")
@click.option(
    "--token",
    default=None,
    help="Long-lived access token.",
)
def set_server(url: str, token: Optional[str]) -> None:
    """
    Set the Home Assistant server connection.

    Example:

        media-card config set-server http://homeassistant.local:8123 --token eyJ...
    """
    if not URL_PATTERN.match(url):
        click.echo(
            click.style("Error: ", fg="red", bold=True)
            + f"Invalid server URL: {url}"
        )
        sys.exit(1)

    app_config = _load()
    app_config.server_url = url
    if token is not None:
        app_config.access_token = token
    app_config.save()

    click.echo(click.style("Server updated: ", fg="green") + url)
    if not app_config.access_token:
        click.echo(
            click.style("Note: ", fg="cyan")
            + "No access token set. Pass --token to authenticate."
        )
