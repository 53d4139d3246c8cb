"""Conversion between geographic coordinates and slippy tile space.

Tile space is the spherical Web Mercator grid where one unit is one tile at
the given zoom level: x grows eastward from the antimeridian and y grows
southward from the top of the world, so the whole world spans
``[0, 2**zoom)`` on both axes. Fractional values address positions inside a
tile. ``math.floor`` of the forward conversions gives the same tile as
``mercantile.tile``.
"""
import math

from .errors import InvalidInput


def lng_to_x(lng: float, zoom: int) -> float:
    """Convert a longitude to a fractional tile column.

    Parameters
    ----------
    lng : float
        Longitude in degrees. Values outside [-180, 180] map linearly
        outside [0, 2**zoom).
    zoom : int
        Zoom level.

    Returns
    -------
    float
        Fractional tile column.
    """
    return ((lng + 180.0) / 360.0) * 2**zoom


def x_to_lng(x: float, zoom: int) -> float:
    """Convert a fractional tile column back to a longitude in degrees."""
    return x / 2**zoom * 360.0 - 180.0


def latitude_sin(lat: float, name: str = "lat") -> float:
    """Return the sine of ``lat``, the input of the Mercator formula.

    Parameters
    ----------
    lat : float
        Latitude in degrees.
    name : str, optional
        Name of the value in error messages, by default "lat".

    Returns
    -------
    float
        ``sin(lat)``, strictly between -1 and 1.

    Raises
    ------
    InvalidInput
        If ``lat`` is not strictly between -90 and 90, or lies so close to
        a pole that its sine rounds to +-1 and the projection diverges.
    """
    if not -90 < lat < 90:
        raise InvalidInput(f"{name} must lie strictly between -90 and 90, got {lat}")
    sin = math.sin(math.radians(lat))
    if abs(sin) >= 1.0:
        raise InvalidInput(f"{name} {lat} is too close to a pole to project")
    return sin


def lat_to_y(lat: float, zoom: int) -> float:
    """Convert a latitude to a fractional tile row.

    Parameters
    ----------
    lat : float
        Latitude in degrees, see ``latitude_sin`` for the accepted range.
    zoom : int
        Zoom level.

    Returns
    -------
    float
        Fractional tile row, 0 at the northern edge of the projection.
    """
    sin = latitude_sin(lat)
    return (0.5 - math.log((1 + sin) / (1 - sin)) / (4 * math.pi)) * 2**zoom


def y_to_lat(y: float, zoom: int) -> float:
    """Convert a fractional tile row back to a latitude in degrees."""
    return math.degrees(math.atan(math.sinh(math.pi * (1 - 2 * y / 2**zoom))))
