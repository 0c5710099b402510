"""
Media card CLI entry point.

Main command group for the media-card command.
"""

import click

from media_card import __version__


@click.group()
@click.version_option(version=__version__, prog_name="media-card")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """
    Media Card - media provider and metadata pipeline.

    Supplies a slideshow with images and videos from a single file, a
    folder tree or a Home Assistant media index, and derives metadata
    (capture date, folder, location, camera) for each item.

    Use 'media-card COMMAND --help' for more information on a command.
    """
    # Ensure context object exists for subcommands
    ctx.ensure_object(dict)


# Import and register subcommands
from cli.extract import extract  # noqa: E402
from cli.classify import classify  # noqa: E402
from cli.play import play  # noqa: E402
from cli.config import config  # noqa: E402

cli.add_command(extract)
cli.add_command(classify)
cli.add_command(play)
cli.add_command(config)


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
