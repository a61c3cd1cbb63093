from __future__ import annotations

import io
from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError


EXIF_ORIENTATION_TAG = 0x0112


class LoadError(Exception):
    pass


class DecodeError(LoadError, ValueError):
    pass


def _frozen_pixels(rgb8: np.ndarray) -> np.ndarray:
    arr = np.array(rgb8, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class RasterImage:
    """Displayable RGB image plus the metadata a render must carry through.

    ``pixels`` is an owned, read-only ``HxWx3`` uint8 array. ``scale`` and
    ``orientation`` (EXIF 1..8) are never interpreted by the pipeline, only
    preserved.
    """

    pixels: np.ndarray
    scale: float = 1.0
    orientation: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "pixels", _frozen_pixels(self.pixels))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def copy(self) -> "RasterImage":
        return RasterImage(self.pixels, scale=self.scale, orientation=self.orientation)

    def with_pixels(self, rgb8: np.ndarray) -> "RasterImage":
        return RasterImage(rgb8, scale=self.scale, orientation=self.orientation)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RasterImage):
            return NotImplemented
        return (
            self.scale == other.scale
            and self.orientation == other.orientation
            and np.array_equal(self.pixels, other.pixels)
        )

    __hash__ = None  # type: ignore[assignment]


def pil_to_rgb8(pil_img: Image.Image) -> np.ndarray:
    img = pil_img.convert("RGB")
    return np.asarray(img, dtype=np.uint8)


def decode_image(data: bytes, scale: float = 1.0) -> RasterImage:
    """Decode encoded image bytes (anything Pillow reads) into a RasterImage."""

    if not data:
        raise DecodeError("No image data")
    try:
        with Image.open(io.BytesIO(data)) as pil_img:
            orientation = int(pil_img.getexif().get(EXIF_ORIENTATION_TAG, 1) or 1)
            rgb8 = pil_to_rgb8(pil_img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, TypeError, SyntaxError) as e:
        raise DecodeError(f"Unable to decode image: {e}") from e
    if orientation not in range(1, 9):
        orientation = 1
    return RasterImage(rgb8, scale=scale, orientation=orientation)


def encode_image(image: RasterImage, format: str = "PNG") -> bytes:
    exif = Image.Exif()
    exif[EXIF_ORIENTATION_TAG] = image.orientation
    buf = io.BytesIO()
    image.to_pil().save(buf, format=format, exif=exif)
    return buf.getvalue()
