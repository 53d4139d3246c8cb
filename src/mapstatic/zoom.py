"""Automatic zoom selection for bounding box requests."""
import math

from .config import MAX_ZOOM, TILE_SIZE
from .conversion import latitude_sin
from .errors import InvalidInput


def latitude_radians(lat: float) -> float:
    """Return the Mercator ordinate of ``lat`` clamped to [-pi/2, pi/2]."""
    sin = latitude_sin(lat)
    rad_x2 = math.log((1 + sin) / (1 - sin)) / 2
    return max(min(rad_x2, math.pi), -math.pi) / 2


def zoom_for(size: float, fraction: float, tile_size: int = TILE_SIZE) -> int:
    """Largest zoom at which ``fraction`` of the world fits in ``size`` pixels."""
    return math.floor(math.log2(size / tile_size / fraction))


def dynamic_zoom(bbox, width, height, tile_size=TILE_SIZE):
    """Pick the largest zoom level at which ``bbox`` fits the pixel size.

    The pixel width is matched against the latitude span and the pixel
    height against the longitude span. Boxes crossing the antimeridian
    (``right < left``) are measured the short way round.

    Parameters
    ----------
    bbox : mercantile.LngLatBbox or tuple of float
        (left, bottom, right, top) in degrees.
    width : float
        Target width in pixels.
    height : float
        Target height in pixels.
    tile_size : int, optional
        Tile edge in pixels, by default ``TILE_SIZE``.

    Returns
    -------
    int
        Zoom level in ``[0, MAX_ZOOM]``.

    Raises
    ------
    InvalidInput
        If the box has no extent on either axis, is upside down, or the
        pixel size is not positive.
    """
    left, bottom, right, top = bbox
    if width <= 0 or height <= 0:
        raise InvalidInput(f"width and height must be positive, got {width}x{height}")
    if not top > bottom:
        raise InvalidInput(f"bbox top ({top}) must be north of bottom ({bottom})")
    latitude_sin(bottom, "bbox bottom")
    latitude_sin(top, "bbox top")

    lat_fraction = (latitude_radians(top) - latitude_radians(bottom)) / math.pi
    lng_diff = right - left
    lng_fraction = (lng_diff + 360 if lng_diff < 0 else lng_diff) / 360
    if lat_fraction <= 0 or lng_fraction <= 0:
        raise InvalidInput(f"bbox {tuple(bbox)} has zero extent")

    lat_zoom = zoom_for(width, lat_fraction, tile_size)
    lng_zoom = zoom_for(height, lng_fraction, tile_size)
    return max(min(lat_zoom, lng_zoom, MAX_ZOOM), 0)
