from __future__ import annotations

import logging

import numpy as np

from .image import RasterImage
from .image_ops import ArrayF, _to_float01, _to_uint8, apply_exposure
from .kernels import FilterKernel, NumpyKernel
from .state import EditState

logger = logging.getLogger(__name__)


class RenderError(RuntimeError):
    pass


class AdjustmentEngine:
    """Render ``(source, EditState)`` into a preview.

    Every call starts from ``source``: filter first, then exposure. The engine
    keeps no state between calls, so a given pair always yields the same
    pixels no matter what was rendered before.
    """

    def __init__(self, kernel: FilterKernel | None = None) -> None:
        self.kernel = kernel if kernel is not None else NumpyKernel()

    def render(self, source: RasterImage, state: EditState) -> RasterImage:
        try:
            working = _to_float01(source.pixels)
        except (TypeError, ValueError) as e:
            raise RenderError(f"Source cannot be converted for processing: {e}") from e

        if state.filter_id is not None:
            working = self._apply_filter(working, state)

        try:
            working = apply_exposure(working, state.brightness)
            if not np.all(np.isfinite(working)):
                raise ValueError("non-finite values after exposure")
            rgb8 = _to_uint8(working)
        except (ValueError, FloatingPointError, MemoryError) as e:
            raise RenderError(f"Exposure stage failed: {e}") from e

        return source.with_pixels(rgb8)

    def _apply_filter(self, working: ArrayF, state: EditState) -> ArrayF:
        try:
            out = self.kernel.apply(working, state.filter_id)
            if out.shape != working.shape:
                raise ValueError(f"kernel returned shape {out.shape}, expected {working.shape}")
        except Exception:
            logger.warning(
                "Filter %s failed on %s kernel; rendering without it",
                state.filter_label,
                getattr(self.kernel, "name", type(self.kernel).__name__),
                exc_info=True,
            )
            return working
        return out.astype(np.float32, copy=False)


_default_engine: AdjustmentEngine | None = None


def render(source: RasterImage, state: EditState) -> RasterImage:
    global _default_engine
    if _default_engine is None:
        _default_engine = AdjustmentEngine()
    return _default_engine.render(source, state)
