"""Resolve a map request into one canonical viewport.

A request is either a bounding box with a pixel size (``BboxSpec``) or a
center point with a zoom level and an optional pixel size (``CenterSpec``).
``resolve`` turns either form into a ``ResolvedViewport``: bounding box,
zoom, pixel size and covering tile grid, computed once. Everything
downstream reads only the resolved value.
"""
import math
from dataclasses import dataclass
from typing import Optional, Union

import mercantile

from .config import MAX_ZOOM, TILE_SIZE
from .conversion import lat_to_y, latitude_sin, lng_to_x, x_to_lng, y_to_lat
from .errors import InvalidInput, UnsupportedZoom
from .grid import TileGrid, plan
from .zoom import dynamic_zoom


@dataclass(frozen=True)
class BboxSpec:
    """Render ``bbox`` into a ``width`` x ``height`` image, zoom derived."""

    bbox: mercantile.LngLatBbox
    width: int
    height: int


@dataclass(frozen=True)
class CenterSpec:
    """Render around ``center`` at ``zoom``.

    Without a pixel size the viewport is the single tile holding the center.
    """

    center: mercantile.LngLat
    zoom: int
    width: Optional[int] = None
    height: Optional[int] = None


ViewportSpec = Union[BboxSpec, CenterSpec]


@dataclass(frozen=True)
class ResolvedViewport:
    """The canonical viewport of one render.

    Attributes
    ----------
    bbox : mercantile.LngLatBbox
        Geographic edges of the output image.
    zoom : int
        Zoom level of every tile.
    width : int
        Output width in pixels.
    height : int
        Output height in pixels.
    grid : TileGrid
        Tiles covering ``bbox`` and the crop offset into their mosaic.
    requested : mercantile.LngLatBbox or None
        The box given in a ``BboxSpec``, before it was fitted to the pixel
        size. None for center requests.
    """

    bbox: mercantile.LngLatBbox
    zoom: int
    width: int
    height: int
    grid: TileGrid
    requested: Optional[mercantile.LngLatBbox] = None

    @property
    def bbox_string(self) -> str:
        return ",".join(str(edge) for edge in self.bbox)

    def metadata(self) -> dict:
        return {
            "bbox": self.bbox_string,
            "width": int(self.width),
            "height": int(self.height),
            "zoom": self.zoom,
            "tile_count": len(self.grid),
        }


def parse_bbox(value) -> mercantile.LngLatBbox:
    """Parse ``"left,bottom,right,top"`` into a bounding box.

    Parameters
    ----------
    value : str or sequence of float
        Comma separated string or a sequence of four numbers.

    Returns
    -------
    mercantile.LngLatBbox
        The parsed box.

    Raises
    ------
    InvalidInput
        If the value does not hold exactly four finite numbers.
    """
    parts = value.split(",") if isinstance(value, str) else list(value)
    if len(parts) != 4:
        raise InvalidInput(f"bbox must be 'left,bottom,right,top', got {value!r}")
    try:
        edges = [float(part) for part in parts]
    except (TypeError, ValueError):
        raise InvalidInput(f"bbox must hold four numbers, got {value!r}") from None
    if not all(math.isfinite(edge) for edge in edges):
        raise InvalidInput(f"bbox edges must be finite, got {value!r}")
    return mercantile.LngLatBbox(*edges)


def pixels(value, name: str) -> int:
    """Validate a pixel dimension and return it as an int."""
    try:
        size = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number, got {value!r}") from None
    if not size > 0 or not size.is_integer():
        raise InvalidInput(f"{name} must be a positive whole number of pixels, got {value!r}")
    return int(size)


def check_zoom(zoom) -> int:
    if isinstance(zoom, bool) or not isinstance(zoom, int):
        raise InvalidInput(f"zoom must be an integer, got {zoom!r}")
    if not 0 <= zoom <= MAX_ZOOM:
        raise UnsupportedZoom(f"zoom must be between 0 and {MAX_ZOOM}, got {zoom}")
    return zoom


def window(x: float, y: float, zoom: int, width: int, height: int) -> mercantile.LngLatBbox:
    """Bounding box of a ``width`` x ``height`` pixel window centered on tile point (x, y)."""
    half_width = width / TILE_SIZE / 2
    half_height = height / TILE_SIZE / 2
    return mercantile.LngLatBbox(
        x_to_lng(x - half_width, zoom),
        y_to_lat(y + half_height, zoom),
        x_to_lng(x + half_width, zoom),
        y_to_lat(y - half_height, zoom),
    )


def resolve_bbox(spec: BboxSpec) -> ResolvedViewport:
    width = pixels(spec.width, "width")
    height = pixels(spec.height, "height")
    zoom = dynamic_zoom(spec.bbox, width, height)

    left, bottom, right, top = spec.bbox
    left_x = lng_to_x(left, zoom)
    right_x = lng_to_x(right, zoom)
    if right_x < left_x:
        right_x += 2**zoom
    center_x = (left_x + right_x) / 2
    center_y = (lat_to_y(top, zoom) + lat_to_y(bottom, zoom)) / 2

    bbox = window(center_x, center_y, zoom, width, height)
    return ResolvedViewport(bbox=bbox, zoom=zoom, width=width, height=height,
                            grid=plan(bbox, zoom),
                            requested=mercantile.LngLatBbox(*spec.bbox))


def resolve_center(spec: CenterSpec) -> ResolvedViewport:
    zoom = check_zoom(spec.zoom)
    lng, lat = spec.center
    latitude_sin(lat)
    if not math.isfinite(lng):
        raise InvalidInput(f"lng must be finite, got {lng}")
    if (spec.width is None) != (spec.height is None):
        raise InvalidInput("width and height must be given together")

    center_x = lng_to_x(lng, zoom)
    center_y = lat_to_y(lat, zoom)

    if spec.width is None:
        tile = mercantile.Tile(math.floor(center_x), math.floor(center_y), zoom)
        grid = TileGrid(zoom=zoom, x_range=(tile.x, tile.x), y_range=(tile.y, tile.y),
                        left=float(tile.x), top=float(tile.y))
        width, height = grid.canvas_size
        return ResolvedViewport(bbox=mercantile.bounds(tile), zoom=zoom,
                                width=width, height=height, grid=grid)

    width = pixels(spec.width, "width")
    height = pixels(spec.height, "height")
    bbox = window(center_x, center_y, zoom, width, height)
    return ResolvedViewport(bbox=bbox, zoom=zoom, width=width, height=height,
                            grid=plan(bbox, zoom))


def resolve(spec: ViewportSpec) -> ResolvedViewport:
    """Resolve a request into its canonical viewport.

    Parameters
    ----------
    spec : BboxSpec or CenterSpec
        The request.

    Returns
    -------
    ResolvedViewport
        Bounding box, zoom, pixel size and tile grid of the render.

    Raises
    ------
    InvalidInput
        If the request is incomplete or degenerate.
    UnsupportedZoom
        If an explicit zoom is outside ``[0, MAX_ZOOM]``.
    """
    if isinstance(spec, BboxSpec):
        return resolve_bbox(spec)
    if isinstance(spec, CenterSpec):
        return resolve_center(spec)
    raise TypeError(f"expected BboxSpec or CenterSpec, got {type(spec).__name__}")
