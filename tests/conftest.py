import logging
import os
from concurrent.futures import Future

import numpy as np
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from filterstack.image import RasterImage


class ManualExecutor:
    """Executor whose completions are released by the test.

    With ``run_on_submit`` the work runs as soon as it is submitted and only
    the completion is held back; otherwise nothing runs until ``complete``.
    """

    def __init__(self, run_on_submit: bool = True):
        self.run_on_submit = run_on_submit
        self.jobs = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        job = {"future": future, "call": (fn, args, kwargs), "outcome": None}
        if self.run_on_submit:
            job["outcome"] = self._run(fn, args, kwargs)
        self.jobs.append(job)
        return future

    @staticmethod
    def _run(fn, args, kwargs):
        try:
            return fn(*args, **kwargs), None
        except Exception as e:
            return None, e

    def complete(self, index):
        job = self.jobs[index]
        if job["outcome"] is None:
            fn, args, kwargs = job["call"]
            job["outcome"] = self._run(fn, args, kwargs)
        result, error = job["outcome"]
        if error is not None:
            job["future"].set_exception(error)
        else:
            job["future"].set_result(result)

    def shutdown(self, wait=True, cancel_futures=False):
        pass


def make_image(height=12, width=20, seed=7, scale=1.0, orientation=1):
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    return RasterImage(pixels, scale=scale, orientation=orientation)


@pytest.fixture
def source_image():
    return make_image()


@pytest.fixture
def other_image():
    return make_image(height=9, width=9, seed=11, scale=2.0, orientation=6)


@pytest.fixture
def manual_executor():
    return ManualExecutor()


@pytest.fixture(autouse=True)
def _reset_filterstack_logging():
    yield
    logger = logging.getLogger("filterstack")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
