"""Command-line interface for mapstatic.

This module provides CLI commands for rendering static maps and inspecting
map requests using the Typer framework.
"""
import json
import logging
import pathlib
from typing import Optional

import typer

from . import config
from .errors import MapstaticError
from .map import Map
from .tile_source import providers as provider_registry

logger = logging.getLogger(__name__)

app = typer.Typer(help="Static maps stitched together from slippy map tiles.",
                  no_args_is_help=True)


@app.callback()
def main(
    env: str = typer.Option("DEFAULT", help="Settings environment to use."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
):
    """Render static map images from slippy map tiles."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    if env != "DEFAULT":
        config.change_env(env)


def _build_map(bbox, lat, lng, zoom, width, height, provider):
    try:
        return Map(width=width, height=height, bbox=bbox, lat=lat, lng=lng,
                   zoom=zoom, provider=provider)
    except MapstaticError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=2)


@app.command("map")
def render_map(
    output: pathlib.Path = typer.Argument(..., help="Image file to write; the extension picks the format."),
    bbox: Optional[str] = typer.Option(None, help="Bounding box as left,bottom,right,top."),
    lat: Optional[float] = typer.Option(None, help="Center latitude."),
    lng: Optional[float] = typer.Option(None, help="Center longitude."),
    zoom: Optional[int] = typer.Option(None, help="Zoom level (with --lat/--lng)."),
    width: Optional[int] = typer.Option(None, help="Width in pixels."),
    height: Optional[int] = typer.Option(None, help="Height in pixels."),
    provider: Optional[str] = typer.Option(None, help="Tile provider name, URL template or tile directory."),
):
    """Render a map and write it to OUTPUT."""
    static_map = _build_map(bbox, lat, lng, zoom, width, height, provider)
    try:
        static_map.render_to_file(output)
    except MapstaticError as err:
        typer.echo(f"Error: {err}", err=True)
        raise typer.Exit(code=1)
    finally:
        static_map.close()
    typer.echo(f"{output} ({static_map.width}x{static_map.height}, zoom {static_map.zoom})")


@app.command()
def metadata(
    bbox: Optional[str] = typer.Option(None, help="Bounding box as left,bottom,right,top."),
    lat: Optional[float] = typer.Option(None, help="Center latitude."),
    lng: Optional[float] = typer.Option(None, help="Center longitude."),
    zoom: Optional[int] = typer.Option(None, help="Zoom level (with --lat/--lng)."),
    width: Optional[int] = typer.Option(None, help="Width in pixels."),
    height: Optional[int] = typer.Option(None, help="Height in pixels."),
):
    """Print the resolved bbox, size, zoom and tile count as JSON."""
    static_map = _build_map(bbox, lat, lng, zoom, width, height, None)
    typer.echo(json.dumps(static_map.metadata(), indent=2))


@app.command("providers")
def list_providers():
    """List the known tile providers."""
    for key, provider in sorted(provider_registry().items()):
        typer.echo(f"{key:16} {provider.name} (max zoom {provider.max_zoom})")


if __name__ == "__main__":
    app()
