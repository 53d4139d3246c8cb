"""Raster operations on tiles and map canvases, implemented with Pillow."""
import io
import pathlib

from PIL import Image, UnidentifiedImageError

from .config import TILE_SIZE
from .errors import DecodeFailed, InvalidInput

# Formats Pillow cannot write with an alpha channel.
OPAQUE_FORMATS = {"JPEG", "BMP", "PPM"}


def decode_tile(data: bytes, tile=None) -> Image.Image:
    """Decode encoded tile bytes into an RGBA image.

    Parameters
    ----------
    data : bytes
        Encoded tile as returned by a tile source.
    tile : mercantile.Tile, optional
        Tile address, only used in error messages.

    Returns
    -------
    PIL.Image.Image
        The decoded tile in RGBA mode.

    Raises
    ------
    DecodeFailed
        If the bytes are not an image or the image is not
        ``TILE_SIZE`` x ``TILE_SIZE``.
    """
    label = "tile" if tile is None else f"tile {tile.z}/{tile.x}/{tile.y}"
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError, TypeError, ValueError) as err:
        raise DecodeFailed(f"could not decode {label}: {err}") from err
    if img.size != (TILE_SIZE, TILE_SIZE):
        raise DecodeFailed(
            f"{label} is {img.size[0]}x{img.size[1]}, expected {TILE_SIZE}x{TILE_SIZE}")
    return img.convert("RGBA")


def new_canvas(width: int, height: int) -> Image.Image:
    """Create a fully transparent RGBA canvas."""
    return Image.new("RGBA", (width, height), (0, 0, 0, 0))


def paste(canvas: Image.Image, tile_img: Image.Image, column: int, row: int):
    """Place ``tile_img`` in grid slot (column, row) of ``canvas``."""
    canvas.paste(tile_img, (column * TILE_SIZE, row * TILE_SIZE))


def crop(canvas: Image.Image, left: float, top: float, width: int, height: int) -> Image.Image:
    """Cut a ``width`` x ``height`` window out of ``canvas``.

    Offsets are rounded to whole pixels and kept inside the canvas.
    """
    canvas_width, canvas_height = canvas.size
    left = max(0, min(int(round(left)), canvas_width - width))
    top = max(0, min(int(round(top)), canvas_height - height))
    return canvas.crop((left, top, left + width, top + height))


def output_format(path) -> str:
    """Return the Pillow format name for the extension of ``path``."""
    suffix = pathlib.Path(path).suffix.lower()
    fmt = Image.registered_extensions().get(suffix)
    if fmt is None:
        raise InvalidInput(f"cannot infer an image format from {str(path)!r}")
    return fmt


def save(img: Image.Image, path):
    """Encode ``img`` to ``path`` in the format given by its extension."""
    fmt = output_format(path)
    if fmt in OPAQUE_FORMATS and img.mode != "RGB":
        img = img.convert("RGB")
    img.save(path, format=fmt)


def encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    """Encode ``img`` to bytes in the given Pillow format."""
    fmt = fmt.upper()
    if fmt in OPAQUE_FORMATS and img.mode != "RGB":
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()
