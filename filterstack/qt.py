"""PySide6 adapters for hosting an :class:`~filterstack.session.EditSession` in a Qt app."""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from typing import Callable

import numpy as np
from PySide6 import QtCore, QtGui

from .image import RasterImage


def rgb8_to_qimage(rgb8: np.ndarray) -> QtGui.QImage:
    if rgb8.ndim != 3 or rgb8.shape[2] != 3 or rgb8.dtype != np.uint8:
        raise ValueError("Expected HxWx3 uint8 RGB array")
    h, w, _ = rgb8.shape
    bytes_per_line = 3 * w
    # Detach from Python/NumPy buffer lifecycle (QImage may otherwise reference freed memory).
    qimg = QtGui.QImage(np.ascontiguousarray(rgb8).tobytes(), w, h, bytes_per_line, QtGui.QImage.Format.Format_RGB888)
    return qimg.copy()


def to_qimage(image: RasterImage) -> QtGui.QImage:
    qimg = rgb8_to_qimage(image.pixels)
    if image.scale and image.scale != 1.0:
        qimg.setDevicePixelRatio(image.scale)
    return qimg


class QtDispatcher(QtCore.QObject):
    """Run callables on the thread this object lives in.

    Pass an instance as ``dispatch`` to :class:`EditSession` so render
    completions land on the GUI thread.
    """

    _posted = QtCore.Signal(object)

    def __init__(self, parent: QtCore.QObject | None = None) -> None:
        super().__init__(parent)
        self._posted.connect(self._run)

    def __call__(self, fn: Callable[[], None]) -> None:
        self._posted.emit(fn)

    @QtCore.Slot(object)
    def _run(self, fn: Callable[[], None]) -> None:
        fn()


class _RenderTask(QtCore.QRunnable):
    def __init__(self, future: Future, fn: Callable, args: tuple, kwargs: dict) -> None:
        super().__init__()
        self.future = future
        self.fn = fn
        self.args = args
        self.kwargs = kwargs

    def run(self) -> None:
        if not self.future.set_running_or_notify_cancel():
            return
        try:
            result = self.fn(*self.args, **self.kwargs)
        except BaseException as e:
            self.future.set_exception(e)
        else:
            self.future.set_result(result)


class QThreadPoolExecutor(Executor):
    """``concurrent.futures`` executor backed by a private QThreadPool."""

    def __init__(self, max_threads: int = 1) -> None:
        self._pool = QtCore.QThreadPool()
        # Single worker: at most one render in flight.
        self._pool.setMaxThreadCount(max(1, int(max_threads)))
        self._futures: set[Future] = set()
        self._guard = threading.Lock()
        self._shutdown = False

    def submit(self, fn, /, *args, **kwargs) -> Future:
        with self._guard:
            if self._shutdown:
                raise RuntimeError("cannot schedule new renders after shutdown")
            future: Future = Future()
            self._futures.add(future)
        future.add_done_callback(self._forget)
        self._pool.start(_RenderTask(future, fn, args, kwargs))
        return future

    def _forget(self, future: Future) -> None:
        with self._guard:
            self._futures.discard(future)

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        with self._guard:
            self._shutdown = True
            pending = list(self._futures)
        if cancel_futures:
            for future in pending:
                future.cancel()
        if wait:
            self._pool.waitForDone()
