"""Plan the block of whole tiles that covers a viewport.

The block is a rectangle of integer tile coordinates. Tiles are listed in
row-major order (north to south, then west to east) and the compositor
relies on that order to put each tile back at ``(index % columns,
index // columns)``.
"""
import math
from dataclasses import dataclass
from typing import List, Tuple

import mercantile

from .config import TILE_SIZE
from .conversion import lat_to_y, lng_to_x
from .errors import InvalidInput

# Edges closer than this to a tile boundary (in tile units) sit on it.
EPSILON = 1e-9


def snap(value: float) -> float:
    """Round ``value`` to the nearest integer if it is within ``EPSILON``."""
    nearest = round(value)
    return float(nearest) if abs(value - nearest) < EPSILON else value


def span(start: float, end: float) -> Tuple[int, int]:
    """Return the inclusive integer tile range covering ``[start, end]``.

    An ``end`` lying exactly on a tile boundary does not add the
    zero-width tile beyond it.
    """
    first = math.floor(start)
    last = max(first, math.ceil(end) - 1)
    return first, last


@dataclass(frozen=True)
class TileGrid:
    """A rectangular block of tiles and the viewport's position inside it.

    Attributes
    ----------
    zoom : int
        Zoom level shared by every tile.
    x_range : tuple of int
        Inclusive (first, last) tile columns.
    y_range : tuple of int
        Inclusive (first, last) tile rows.
    left : float
        Viewport left edge in tile units.
    top : float
        Viewport top edge in tile units.
    """

    zoom: int
    x_range: Tuple[int, int]
    y_range: Tuple[int, int]
    left: float
    top: float

    @property
    def columns(self) -> int:
        return self.x_range[1] - self.x_range[0] + 1

    @property
    def rows(self) -> int:
        return self.y_range[1] - self.y_range[0] + 1

    @property
    def xs(self) -> List[int]:
        return list(range(self.x_range[0], self.x_range[1] + 1))

    @property
    def ys(self) -> List[int]:
        return list(range(self.y_range[0], self.y_range[1] + 1))

    @property
    def tiles(self) -> List[mercantile.Tile]:
        """Every tile of the block in row-major order."""
        return [mercantile.Tile(x, y, self.zoom) for y in self.ys for x in self.xs]

    def __len__(self):
        return self.columns * self.rows

    def position(self, index: int) -> Tuple[int, int]:
        """Return the (column, row) slot of the ``index``-th tile."""
        return index % self.columns, index // self.columns

    @property
    def canvas_size(self) -> Tuple[int, int]:
        """Pixel size of the uncropped mosaic."""
        return self.columns * TILE_SIZE, self.rows * TILE_SIZE

    @property
    def crop_offset(self) -> Tuple[float, float]:
        """Pixel distance from the mosaic's top-left corner to the viewport.

        Both values lie in ``[0, TILE_SIZE)``.
        """
        return ((self.left - self.x_range[0]) * TILE_SIZE,
                (self.top - self.y_range[0]) * TILE_SIZE)


def plan(bbox, zoom: int) -> TileGrid:
    """Compute the minimal block of tiles covering ``bbox`` at ``zoom``.

    Parameters
    ----------
    bbox : mercantile.LngLatBbox or tuple of float
        (left, bottom, right, top) in degrees. ``right < left`` is read as
        a box crossing the antimeridian.
    zoom : int
        Zoom level.

    Returns
    -------
    TileGrid
        The covering block. Tile coordinates are not wrapped or clamped.
    """
    left, bottom, right, top = bbox
    left_x = snap(lng_to_x(left, zoom))
    right_x = snap(lng_to_x(right, zoom))
    top_y = snap(lat_to_y(top, zoom))
    bottom_y = snap(lat_to_y(bottom, zoom))

    if right_x < left_x:
        right_x += 2**zoom
    if bottom_y < top_y:
        raise InvalidInput(f"bbox top ({top}) must be north of bottom ({bottom})")

    return TileGrid(zoom=zoom,
                    x_range=span(left_x, right_x),
                    y_range=span(top_y, bottom_y),
                    left=left_x,
                    top=top_y)
