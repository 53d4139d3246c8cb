"""Static map rendering.

``Map`` resolves a request into a canonical viewport as soon as it is
built, then stitches the covering tiles into a mosaic and crops it to the
requested pixel size.

Examples
--------
>>> m = Map(bbox="-0.2,51.4,0.1,51.6", width=600, height=400)
>>> m.metadata()["zoom"]
10
>>> m.render_to_file("london.png")  # doctest: +SKIP
"""
import logging

import mercantile

from . import image
from .errors import InvalidInput, TileFetchFailed
from .tile_source import TileSource, open_source
from .viewport import BboxSpec, CenterSpec, ResolvedViewport, ViewportSpec, parse_bbox, resolve

logger = logging.getLogger(__name__)


def spec_from_params(width=None, height=None, bbox=None, lat=None, lng=None, zoom=None):
    """Build a ``BboxSpec`` or ``CenterSpec`` from loose request parameters.

    ``bbox`` is mutually exclusive with ``lat``/``lng``/``zoom``.

    Raises
    ------
    InvalidInput
        If parameters are missing, conflicting or not numbers.
    """
    if bbox is not None:
        if lat is not None or lng is not None or zoom is not None:
            raise InvalidInput("bbox cannot be combined with lat, lng or zoom")
        if width is None or height is None:
            raise InvalidInput("width and height are required with bbox")
        return BboxSpec(bbox=parse_bbox(bbox), width=width, height=height)

    missing = [name for name, value in (("lat", lat), ("lng", lng), ("zoom", zoom))
               if value is None]
    if missing:
        raise InvalidInput(f"missing required parameter(s): {', '.join(missing)} "
                           "(or give a bbox)")
    try:
        center = mercantile.LngLat(float(lng), float(lat))
    except (TypeError, ValueError):
        raise InvalidInput(f"lat and lng must be numbers, got {lat!r}, {lng!r}") from None
    if isinstance(zoom, str):
        try:
            zoom = int(zoom)
        except ValueError:
            raise InvalidInput(f"zoom must be an integer, got {zoom!r}") from None
    return CenterSpec(center=center, zoom=zoom, width=width, height=height)


class Map:
    """A single static map render.

    Parameters
    ----------
    width, height : int, optional
        Output size in pixels. Required with ``bbox``; optional in center
        mode, where leaving both out renders the tile holding the center.
    bbox : str or sequence of float, optional
        ``"left,bottom,right,top"`` in degrees. The zoom is derived.
    lat, lng : float, optional
        Center of the map in degrees.
    zoom : int, optional
        Zoom level for center mode.
    provider : str, optional
        Tile provider name, URL template or tile directory. If None, uses
        settings.
    tile_source : TileSource, optional
        Ready made tile source; overrides ``provider``.

    Attributes
    ----------
    viewport : ResolvedViewport
        The resolved request. Immutable.
    """

    def __init__(self, width=None, height=None, bbox=None, lat=None, lng=None,
                 zoom=None, provider=None, tile_source: TileSource = None):
        spec = spec_from_params(width=width, height=height, bbox=bbox,
                                lat=lat, lng=lng, zoom=zoom)
        self._setup(spec, provider, tile_source)

    @classmethod
    def from_spec(cls, spec: ViewportSpec, tile_source: TileSource = None, provider=None):
        """Build a map from an already typed ``BboxSpec`` or ``CenterSpec``."""
        obj = cls.__new__(cls)
        obj._setup(spec, provider, tile_source)
        return obj

    def _setup(self, spec, provider, tile_source):
        self.spec = spec
        self.viewport: ResolvedViewport = resolve(spec)
        self.provider = provider
        self._tile_source = tile_source
        logger.debug("Resolved %s to bbox=%s zoom=%d size=%dx%d tiles=%d",
                     spec, self.viewport.bbox_string, self.viewport.zoom,
                     self.viewport.width, self.viewport.height, len(self.viewport.grid))

    @property
    def tile_source(self) -> TileSource:
        if self._tile_source is None:
            self._tile_source = open_source(self.provider)
        return self._tile_source

    @property
    def zoom(self):
        return self.viewport.zoom

    @property
    def width(self):
        return self.viewport.width

    @property
    def height(self):
        return self.viewport.height

    @property
    def bbox(self):
        return self.viewport.bbox

    @property
    def tiles(self):
        """Tiles needed for the render, in row-major order."""
        return self.viewport.grid.tiles

    def metadata(self) -> dict:
        """Describe the resolved request without fetching any tile.

        Returns
        -------
        dict
            ``bbox`` (comma separated string), ``width``, ``height``,
            ``zoom`` and ``tile_count``.
        """
        return self.viewport.metadata()

    def fetch_tiles(self):
        """Fetch the encoded tiles, checking one came back per request."""
        tiles = self.tiles
        data = list(self.tile_source.get_tiles(tiles))
        if len(data) != len(tiles):
            raise TileFetchFailed(
                f"{self.tile_source!r} returned {len(data)} tiles, expected {len(tiles)}")
        return data

    def render(self):
        """Render the map.

        Returns
        -------
        PIL.Image.Image
            RGBA image of exactly ``width`` x ``height`` pixels.

        Raises
        ------
        TileFetchFailed
            If any tile could not be fetched.
        DecodeFailed
            If any tile could not be decoded.
        """
        grid = self.viewport.grid
        data = self.fetch_tiles()

        # Decode the first tile before allocating the canvas.
        first = image.decode_tile(data[0], grid.tiles[0])
        canvas = image.new_canvas(*grid.canvas_size)
        for index, (tile, raw) in enumerate(zip(grid.tiles, data)):
            tile_img = first if index == 0 else image.decode_tile(raw, tile)
            image.paste(canvas, tile_img, *grid.position(index))

        left, top = grid.crop_offset
        return image.crop(canvas, left, top, self.width, self.height)

    def render_to_file(self, path):
        """Render the map and write it to ``path``.

        The format is inferred from the file extension; nothing is written
        if rendering fails.
        """
        image.output_format(path)
        img = self.render()
        image.save(img, path)
        logger.info("Wrote %dx%d map to %s", self.width, self.height, path)
        return path

    def close(self):
        """Close the tile source, whether this map opened it or it was passed in."""
        if self._tile_source is not None:
            self._tile_source.close()

    def __repr__(self):
        return (f"Map(bbox={self.viewport.bbox_string!r}, zoom={self.zoom}, "
                f"size={self.width}x{self.height})")
