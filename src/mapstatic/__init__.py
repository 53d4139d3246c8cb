"""Static map images stitched together from slippy map tiles."""
from . import config
from .errors import DecodeFailed, InvalidInput, MapstaticError, TileFetchFailed, UnsupportedZoom
from .map import Map
from .tile_source import DirectoryTileSource, HTTPTileSource, TileSource
from .viewport import BboxSpec, CenterSpec, ResolvedViewport, parse_bbox, resolve

__version__ = "0.3.0"

__all__ = [
    "Map",
    "BboxSpec",
    "CenterSpec",
    "ResolvedViewport",
    "resolve",
    "parse_bbox",
    "TileSource",
    "HTTPTileSource",
    "DirectoryTileSource",
    "MapstaticError",
    "InvalidInput",
    "UnsupportedZoom",
    "TileFetchFailed",
    "DecodeFailed",
    "render",
    "metadata",
]


def render(path=None, **params):
    """Render a map in one call.

    Parameters
    ----------
    path : str or pathlib.Path, optional
        File to write the image to. If None, the image is returned.
    **params
        Request parameters accepted by ``Map``.

    Returns
    -------
    PIL.Image.Image or path
        The rendered image, or ``path`` once written.
    """
    static_map = Map(**params)
    try:
        if path is None:
            return static_map.render()
        return static_map.render_to_file(path)
    finally:
        static_map.close()


def metadata(**params):
    """Return the metadata of a map request without fetching tiles."""
    return Map(**params).metadata()
