"""
Tests for the PySide6 adapters. No display is needed.
"""

import threading

import numpy as np
import pytest
from PySide6 import QtCore

from conftest import make_image
from filterstack.engine import render
from filterstack.filters import FilterId
from filterstack.qt import QThreadPoolExecutor, QtDispatcher, rgb8_to_qimage, to_qimage
from filterstack.session import EditSession
from filterstack.state import EditState


@pytest.fixture(scope="module")
def qt_core_app():
    app = QtCore.QCoreApplication.instance()
    if app is None:
        app = QtCore.QCoreApplication([])
    return app


class TestQImage:

    def test_pixels_match(self):
        image = make_image(height=4, width=6)
        qimg = to_qimage(image)
        assert (qimg.width(), qimg.height()) == (6, 4)
        color = qimg.pixelColor(5, 3)
        assert (color.red(), color.green(), color.blue()) == tuple(int(v) for v in image.pixels[3, 5])

    def test_scale_becomes_device_pixel_ratio(self):
        assert to_qimage(make_image(scale=2.0)).devicePixelRatio() == 2.0

    def test_rejects_non_rgb(self):
        with pytest.raises(ValueError):
            rgb8_to_qimage(np.zeros((2, 2), dtype=np.uint8))


class TestQtDispatcher:

    def test_same_thread_runs_immediately(self, qt_core_app):
        dispatcher = QtDispatcher()
        ran = []
        dispatcher(lambda: ran.append(threading.get_ident()))
        assert ran == [threading.get_ident()]


class TestQThreadPoolExecutor:

    def test_result_and_exception(self, qt_core_app):
        executor = QThreadPoolExecutor()
        ok = executor.submit(lambda a, b: a + b, 2, 3)
        bad = executor.submit(lambda: 1 / 0)
        assert ok.result(timeout=10) == 5
        with pytest.raises(ZeroDivisionError):
            bad.result(timeout=10)
        executor.shutdown()

    def test_submit_after_shutdown(self, qt_core_app):
        executor = QThreadPoolExecutor()
        executor.shutdown()
        with pytest.raises(RuntimeError):
            executor.submit(lambda: None)

    def test_drives_a_session(self, qt_core_app, source_image):
        with EditSession(executor=QThreadPoolExecutor(), owns_executor=True) as session:
            session.load(source_image)
            session.select_filter(FilterId.SEPIA)
            session.set_brightness(-0.4)
        assert session.preview == render(source_image, EditState(FilterId.SEPIA, "Sepia", -0.4))
