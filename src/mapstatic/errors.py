"""Exceptions raised while resolving and rendering a map."""


class MapstaticError(Exception):
    """Base class for every error raised by mapstatic."""


class InvalidInput(MapstaticError, ValueError):
    """A request parameter is missing, malformed or geometrically degenerate."""


class UnsupportedZoom(InvalidInput):
    """An explicit zoom level lies outside ``[0, MAX_ZOOM]``."""


class TileFetchFailed(MapstaticError):
    """The tile source could not deliver every requested tile."""


class DecodeFailed(MapstaticError):
    """A tile could not be decoded into a usable raster image."""
