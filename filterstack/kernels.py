"""Filter kernel backends.

A kernel maps ``(working image, FilterId)`` to a new working image. The
engine treats kernels as opaque, so backends can be swapped without touching
:mod:`filterstack.engine` or :mod:`filterstack.session`.
"""

from __future__ import annotations

import math
from typing import Callable, Protocol

import numpy as np
from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from .filters import FilterId
from .image_ops import (
    ArrayF,
    _to_float01,
    _to_uint8,
    apply_comic,
    apply_monochrome,
    apply_pixellate,
    apply_sepia,
)


class FilterApplicationError(RuntimeError):
    pass


class FilterKernel(Protocol):
    name: str

    def apply(self, rgb01: ArrayF, filter_id: FilterId) -> ArrayF: ...


class NumpyKernel:
    name = "numpy"

    def __init__(self, pixellate_block: int = 8, comic_levels: int = 4) -> None:
        self.pixellate_block = int(pixellate_block)
        self.comic_levels = int(comic_levels)
        self._ops: dict[FilterId, Callable[[ArrayF], ArrayF]] = {
            FilterId.SEPIA: apply_sepia,
            FilterId.NOIR: apply_monochrome,
            FilterId.COMIC: lambda x: apply_comic(x, levels=self.comic_levels),
            FilterId.PIXELLATE: lambda x: apply_pixellate(x, block=self.pixellate_block),
        }

    def apply(self, rgb01: ArrayF, filter_id: FilterId) -> ArrayF:
        op = self._ops.get(filter_id)
        if op is None:
            raise FilterApplicationError(f"{self.name}: unsupported filter {filter_id!r}")
        return op(rgb01)


# Row-major 3x4 matrix for Image.convert("RGB", matrix); last column is the offset.
_SEPIA_CONVERT_MATRIX = (
    0.393, 0.769, 0.189, 0.0,
    0.349, 0.686, 0.168, 0.0,
    0.272, 0.534, 0.131, 0.0,
)


class PillowKernel:
    name = "pillow"

    def __init__(self, pixellate_block: int = 8, comic_levels: int = 4) -> None:
        self.pixellate_block = max(1, int(pixellate_block))
        self.comic_levels = int(comic_levels)

    def apply(self, rgb01: ArrayF, filter_id: FilterId) -> ArrayF:
        img = Image.fromarray(_to_uint8(rgb01))
        if filter_id is FilterId.SEPIA:
            out = img.convert("RGB", _SEPIA_CONVERT_MATRIX)
        elif filter_id is FilterId.NOIR:
            gray = ImageOps.grayscale(img)
            out = ImageEnhance.Contrast(gray).enhance(1.3).convert("RGB")
        elif filter_id is FilterId.COMIC:
            out = self._comic(img)
        elif filter_id is FilterId.PIXELLATE:
            out = self._pixellate(img)
        else:
            raise FilterApplicationError(f"{self.name}: unsupported filter {filter_id!r}")
        return _to_float01(np.asarray(out.convert("RGB"), dtype=np.uint8))

    def _comic(self, img: Image.Image) -> Image.Image:
        bits = max(1, min(8, math.ceil(math.log2(max(2, self.comic_levels)))))
        poster = ImageOps.posterize(img, bits)
        edges = ImageOps.grayscale(img).filter(ImageFilter.FIND_EDGES)
        mask = edges.point([255 if v > 30 else 0 for v in range(256)])
        black = Image.new("RGB", img.size, (0, 0, 0))
        return Image.composite(black, poster, mask)

    def _pixellate(self, img: Image.Image) -> Image.Image:
        b = self.pixellate_block
        if b == 1:
            return img
        w, h = img.size
        small = img.resize((math.ceil(w / b), math.ceil(h / b)), Image.Resampling.BOX)
        return small.resize((w, h), Image.Resampling.NEAREST)


KERNELS: dict[str, type] = {
    NumpyKernel.name: NumpyKernel,
    PillowKernel.name: PillowKernel,
}


def make_kernel(name: str, **options) -> FilterKernel:
    try:
        cls = KERNELS[name]
    except KeyError:
        raise ValueError(f"Unknown kernel backend {name!r}; expected one of {sorted(KERNELS)}") from None
    return cls(**options)
