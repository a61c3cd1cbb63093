"""Edit session: the single owner of source, edit state and preview.

The session is a plain observable container. Presentation code reads its
properties and registers a callback with :meth:`EditSession.subscribe`; the
session calls back after every change to state or preview.

Renders run inline by default. When an ``executor`` is supplied (anything
with a ``concurrent.futures``-style ``submit``), each render request bumps a
generation counter and only the result of the newest generation is ever
published. Completions are handed to ``dispatch`` so callers can route them
onto their own thread (``loop.call_soon_threadsafe``, a Qt signal, ...).
"""

from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import Executor, Future
from functools import partial
from typing import Awaitable, Callable

from .engine import AdjustmentEngine, RenderError
from .filters import FilterId
from .gallery import ComparisonGallery, Snapshot
from .image import LoadError, RasterImage, decode_image
from .state import EditState

logger = logging.getLogger(__name__)

SessionListener = Callable[["EditSession"], None]
Dispatch = Callable[[Callable[[], None]], None]


class EditSession:
    """Observable owner of one edit.

    ``executor`` should have a single worker so at most one render is in
    flight. A multi-worker executor still publishes only the newest
    generation, but may run several renders at once.
    """

    def __init__(
        self,
        engine: AdjustmentEngine | None = None,
        gallery: ComparisonGallery | None = None,
        executor: Executor | None = None,
        dispatch: Dispatch | None = None,
        owns_executor: bool = False,
    ) -> None:
        self._engine = engine if engine is not None else AdjustmentEngine()
        self._gallery = gallery if gallery is not None else ComparisonGallery()
        self._executor = executor
        self._dispatch = dispatch
        self._owns_executor = owns_executor

        self._lock = threading.RLock()
        self._listeners: list[SessionListener] = []

        self._source: RasterImage | None = None
        self._state = EditState.default()
        self._preview: RasterImage | None = None
        self._preview_state = EditState.default()
        self._generation = 0
        self._last_error: Exception | None = None

    # -- observed state -------------------------------------------------

    @property
    def source(self) -> RasterImage | None:
        return self._source

    @property
    def edit_state(self) -> EditState:
        return self._state

    @property
    def preview(self) -> RasterImage | None:
        return self._preview

    @property
    def gallery(self) -> ComparisonGallery:
        return self._gallery

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def brightness_percent(self) -> int:
        return int(round(self._state.brightness * 100))

    @property
    def is_async(self) -> bool:
        return self._executor is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- loading ----------------------------------------------------------

    def load(self, new_source: RasterImage) -> None:
        """Replace the source, reset edits and clear the gallery.

        The default-state preview is rendered before anything is replaced, so
        a :class:`RenderError` leaves the session exactly as it was.
        """

        default = EditState.default()
        preview = self._engine.render(new_source, default)
        with self._lock:
            self._generation += 1
            self._source = new_source
            self._state = default
            self._preview = preview
            self._preview_state = default
            self._last_error = None
        self._gallery.clear()
        logger.info("Loaded source %dx%d", new_source.width, new_source.height)
        self._notify()

    def load_bytes(self, data: bytes, scale: float = 1.0) -> None:
        self.load(decode_image(data, scale=scale))

    async def load_from(self, fetch: Callable[[], Awaitable[bytes]], scale: float = 1.0) -> None:
        """Await an image supplier (e.g. a picker) and load its bytes.

        The load itself happens on the awaiting event loop, which is the
        session's owning context.
        """

        try:
            data = await fetch()
        except LoadError:
            raise
        except Exception as e:
            raise LoadError(f"Image source failed: {e}") from e
        self.load_bytes(data, scale=scale)

    # -- edits ------------------------------------------------------------

    def select_filter(self, filter_id: FilterId | None, label: str | None = None) -> None:
        with self._lock:
            if self._source is None:
                return
            self._state = self._state.with_filter(filter_id, label)
        self._rerender()

    def set_brightness(self, value: float) -> None:
        with self._lock:
            if self._source is None:
                return
            self._state = self._state.with_brightness(value)
        self._rerender()

    def reset(self) -> None:
        with self._lock:
            self._state = EditState.default()
        self._rerender()

    # -- gallery ----------------------------------------------------------

    def commit(self) -> Snapshot | None:
        with self._lock:
            preview, state = self._preview, self._preview_state
        return self._gallery.commit(preview, state)

    def remove_snapshot(self, identity: uuid.UUID) -> None:
        self._gallery.remove(identity)

    # -- rendering --------------------------------------------------------

    def _rerender(self) -> None:
        with self._lock:
            if self._source is None:
                pending = None
            else:
                self._generation += 1
                pending = (self._generation, self._source, self._state)

        if pending is None:
            self._notify()
            return

        generation, source, state = pending
        if self._executor is None:
            try:
                image = self._engine.render(source, state)
            except RenderError as e:
                self._finish(generation, state, None, e)
                raise
            self._finish(generation, state, image, None)
            return

        self._notify()
        future = self._executor.submit(self._render_job, generation, source, state)
        future.add_done_callback(partial(self._on_render_done, generation, state))

    def _render_job(self, generation: int, source: RasterImage, state: EditState) -> RasterImage | None:
        if generation != self._generation:
            return None
        return self._engine.render(source, state)

    def _on_render_done(self, generation: int, state: EditState, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        image = None if error is not None else future.result()
        if error is None and image is None:
            logger.debug("Skipped stale render generation %d", generation)
            return
        task = partial(self._finish, generation, state, image, error)
        if self._dispatch is None:
            task()
        else:
            self._dispatch(task)

    def _finish(
        self,
        generation: int,
        state: EditState,
        image: RasterImage | None,
        error: BaseException | None,
    ) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarded stale render generation %d (latest %d)", generation, self._generation)
                return
            if error is not None:
                self._last_error = error if isinstance(error, Exception) else RenderError(str(error))
                logger.error("Render generation %d failed: %s", generation, error)
            else:
                self._preview = image
                self._preview_state = state
                self._last_error = None
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "EditSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
