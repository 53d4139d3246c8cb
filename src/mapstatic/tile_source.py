"""Tile sources: where the encoded tile images come from.

A tile source takes an ordered list of ``mercantile.Tile`` and returns the
encoded bytes of each tile in the same order. Two sources are provided:

- ``HTTPTileSource`` downloads from a slippy map provider. Providers are
  looked up by name in ``PROVIDERS`` (extended by the ``providers`` table of
  the settings) or given directly as a URL template.
- ``DirectoryTileSource`` reads a local ``{z}/{x}/{y}.png`` tile tree.

URL templates understand ``{s}`` (subdomain), ``{z}``, ``{x}``, ``{y}`` and
``{q}`` (Bing style quadkey).
"""
import logging
import pathlib
from dataclasses import dataclass
from typing import Dict, List, Sequence

import mercantile
import requests
from tqdm import tqdm

from . import config
from .errors import InvalidInput, TileFetchFailed, UnsupportedZoom

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Provider:
    """A slippy map tile provider."""
    name: str
    url: str
    attribution: str = ""
    max_zoom: int = 19
    subdomains: str = "abc"

    def url_for(self, tile: mercantile.Tile) -> str:
        """Build the URL of ``tile``, wrapping the column around the world."""
        x = tile.x % 2**tile.z
        subdomain = self.subdomains[(x + tile.y) % len(self.subdomains)] if self.subdomains else ""
        return self.url.format(
            s=subdomain,
            z=tile.z,
            x=x,
            y=tile.y,
            q=mercantile.quadkey(x, tile.y, tile.z) if "{q}" in self.url else "",
        )


PROVIDERS: Dict[str, Provider] = {
    "osm": Provider(
        name="OpenStreetMap",
        url="https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
        attribution="© OpenStreetMap contributors",
        max_zoom=19,
    ),
    "opentopomap": Provider(
        name="OpenTopoMap",
        url="https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png",
        attribution="© OpenStreetMap contributors, SRTM | © OpenTopoMap",
        max_zoom=17,
    ),
    "carto-light": Provider(
        name="CARTO Positron",
        url="https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}.png",
        attribution="© OpenStreetMap contributors © CARTO",
        max_zoom=20,
        subdomains="abcd",
    ),
    "carto-dark": Provider(
        name="CARTO Dark Matter",
        url="https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}.png",
        attribution="© OpenStreetMap contributors © CARTO",
        max_zoom=20,
        subdomains="abcd",
    ),
    "esri-satellite": Provider(
        name="Esri World Imagery",
        url="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attribution="© Esri, Maxar, Earthstar Geographics",
        max_zoom=19,
        subdomains="",
    ),
}


def providers() -> Dict[str, Provider]:
    """Return the built-in providers merged with the ``providers`` setting."""
    merged = dict(PROVIDERS)
    for key, value in (config.settings.get("providers") or {}).items():
        value = dict(value)
        merged[key.lower()] = Provider(
            name=value.get("name", key),
            url=value["url"],
            attribution=value.get("attribution", ""),
            max_zoom=int(value.get("max_zoom", config.MAX_ZOOM)),
            subdomains=value.get("subdomains", "abc"),
        )
    return merged


def get_provider(provider: str) -> Provider:
    """Look up a provider by name, or wrap a raw URL template.

    Raises
    ------
    InvalidInput
        If ``provider`` is neither a known name nor a URL template.
    """
    if "{z}" in provider and ("{x}" in provider or "{q}" in provider):
        return Provider(name=provider, url=provider, max_zoom=config.MAX_ZOOM)
    known = providers()
    try:
        return known[provider.lower()]
    except KeyError:
        raise InvalidInput(
            f"unknown tile provider {provider!r}, expected one of {sorted(known)} "
            "or a URL template") from None


class TileSource:
    """Base class of tile sources."""

    def get_tiles(self, tiles: Sequence[mercantile.Tile]) -> List[bytes]:
        """Return the encoded bytes of every tile, in order."""
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class HTTPTileSource(TileSource):
    """Download tiles from a slippy map provider over HTTP.

    Parameters
    ----------
    provider : str, optional
        Provider name or URL template. If None, uses settings.
    session : requests.Session, optional
        Session to download with. A new one is made if None.
    timeout : float, optional
        Seconds to wait for each tile. If None, uses settings.
    """

    def __init__(self, provider: str = None, session: requests.Session = None,
                 timeout: float = None):
        self.provider = get_provider(provider or config.default_provider())
        self.timeout = timeout if timeout is not None else config.timeout()
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = config.user_agent()
        self.session = session

    def fetch(self, tile: mercantile.Tile) -> bytes:
        """Download one tile.

        Raises
        ------
        UnsupportedZoom
            If the provider does not serve ``tile.z``.
        TileFetchFailed
            On transport errors, non-2xx responses and empty bodies.
        """
        if tile.z > self.provider.max_zoom:
            raise UnsupportedZoom(
                f"{self.provider.name} serves zoom levels up to {self.provider.max_zoom}, "
                f"got {tile.z}")
        url = self.provider.url_for(tile)
        logger.debug("GET %s", url)
        try:
            res = self.session.get(url, timeout=self.timeout)
            res.raise_for_status()
        except requests.RequestException as err:
            raise TileFetchFailed(f"tile {tile.z}/{tile.x}/{tile.y} from {url}: {err}") from err
        if not res.content:
            raise TileFetchFailed(f"tile {tile.z}/{tile.x}/{tile.y} from {url} is empty")
        return res.content

    def get_tiles(self, tiles):
        return [self.fetch(tile) for tile in tqdm(tiles, desc="Fetching tiles", unit="tile",
                                                  disable=not config.verbose())]

    def close(self):
        self.session.close()

    def __repr__(self):
        return f"HTTPTileSource({self.provider.name!r})"


class DirectoryTileSource(TileSource):
    """Read tiles from a local ``{z}/{x}/{y}.{ext}`` tile tree.

    Parameters
    ----------
    tile_dir : str or pathlib.Path, optional
        Root of the tile tree. If None, uses the ``tile_dir`` setting.
    ext : str, optional
        Tile file extension, by default "png".
    """

    def __init__(self, tile_dir=None, ext: str = "png"):
        tile_dir = tile_dir or config.settings.get("tile_dir")
        if not tile_dir:
            raise InvalidInput("no tile directory given and no 'tile_dir' setting")
        self.tile_dir = pathlib.Path(tile_dir)
        self.ext = ext.lstrip(".")

    def path_for(self, tile: mercantile.Tile) -> pathlib.Path:
        return self.tile_dir / str(tile.z) / str(tile.x % 2**tile.z) / f"{tile.y}.{self.ext}"

    def get_tiles(self, tiles):
        data = []
        for tile in tiles:
            path = self.path_for(tile)
            try:
                data.append(path.read_bytes())
            except OSError as err:
                raise TileFetchFailed(f"tile {tile.z}/{tile.x}/{tile.y}: {err}") from err
        return data

    def __repr__(self):
        return f"DirectoryTileSource({str(self.tile_dir)!r})"


def open_source(provider: str = None) -> TileSource:
    """Return the tile source for a provider identifier.

    ``file://`` URLs and existing directories give a ``DirectoryTileSource``;
    anything else is handed to ``HTTPTileSource``.
    """
    provider = provider or config.default_provider()
    if provider.startswith("file://"):
        return DirectoryTileSource(provider[len("file://"):])
    if pathlib.Path(provider).is_dir():
        return DirectoryTileSource(provider)
    return HTTPTileSource(provider)
