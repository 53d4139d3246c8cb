"""Shared pytest fixtures for mapstatic tests."""

import io
import tempfile
from functools import lru_cache
from pathlib import Path

import pytest
from PIL import Image

from mapstatic.tile_source import TileSource


@lru_cache(maxsize=None)
def png_tile(color, size=256):
    """Encode a solid colour square tile as PNG bytes."""
    buf = io.BytesIO()
    Image.new("RGB", (size, size), color).save(buf, format="PNG")
    return buf.getvalue()


def tile_color(tile):
    """Colour identifying a tile, so pixels can be traced back to it."""
    return (tile.x % 256, tile.y % 256, (tile.z * 10) % 256)


class FakeTileSource(TileSource):
    """Tile source serving one solid colour PNG per tile, in request order."""

    def __init__(self, drop=0, data=None):
        self.calls = []
        self.drop = drop
        self.data = data
        self.closed = False

    def get_tiles(self, tiles):
        tiles = list(tiles)
        self.calls.append(tiles)
        if self.data is not None:
            return [self.data for _ in tiles]
        served = [png_tile(tile_color(tile)) for tile in tiles]
        return served[:len(served) - self.drop]

    def close(self):
        self.closed = True


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_source():
    """Provide a tile source that serves every requested tile."""
    return FakeTileSource()


@pytest.fixture
def tile_tree(temp_dir):
    """Provide a local z/x/y.png tile tree holding a 2x2 block at zoom 2."""
    for x in (1, 2):
        for y in (1, 2):
            path = temp_dir / "2" / str(x) / f"{y}.png"
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(png_tile((x, y, 20)))
    return temp_dir
