"""
Classify CLI command.

Shows how each media reference would be rendered (image, video or
unsupported).
"""

import json

import click

from media_card.media_types import MediaKind, classify as classify_reference, get_extension

_KIND_COLORS = {
    MediaKind.IMAGE: "green",
    MediaKind.VIDEO: "cyan",
    MediaKind.UNSUPPORTED: "yellow",
}


@click.command("classify")
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Output as JSON",
)
def classify(paths: tuple, as_json: bool) -> None:
    """
    Show the rendering mode of media references.

    Query strings, pipe-encoded suffixes and the "_shared" suffix are
    ignored when reading the extension.

    Example:

        media-card classify IMG_1.jpg clip.MP4 "clip.mp4_shared" notes.txt
    """
    results = [(path, classify_reference(path)) for path in paths]

    if as_json:
        data = [
            {"path": path, "extension": get_extension(path), "kind": kind.value}
            for path, kind in results
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for path, kind in results:
        click.echo(click.style(f"{kind.value:<12}", fg=_KIND_COLORS[kind]) + path)
