from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterator

from .image import RasterImage
from .state import EditState

logger = logging.getLogger(__name__)


class NoPreviewError(LookupError):
    pass


def format_label(filter_label: str, brightness: float) -> str:
    """Describe an edit the way the comparison strip shows it, e.g. ``Sepia (+20%)``."""

    percent = int(round(float(brightness) * 100))
    sign = "+" if percent >= 0 else ""
    return f"{filter_label} ({sign}{percent}%)"


@dataclass(frozen=True, eq=False)
class Snapshot:
    image: RasterImage
    label: str
    identity: uuid.UUID = field(default_factory=uuid.uuid4)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)


GalleryListener = Callable[["ComparisonGallery"], None]


class ComparisonGallery:
    """Saved snapshots, newest first."""

    def __init__(self) -> None:
        self._entries: list[Snapshot] = []
        self._listeners: list[GalleryListener] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(tuple(self._entries))

    def __getitem__(self, index: int) -> Snapshot:
        return self._entries[index]

    @property
    def snapshots(self) -> tuple[Snapshot, ...]:
        return tuple(self._entries)

    @property
    def labels(self) -> list[str]:
        return [s.label for s in self._entries]

    def get(self, identity: uuid.UUID) -> Snapshot | None:
        return next((s for s in self._entries if s.identity == identity), None)

    def subscribe(self, listener: GalleryListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def commit_or_raise(self, preview: RasterImage | None, state: EditState) -> Snapshot:
        if preview is None:
            raise NoPreviewError("Nothing to commit: no preview has been rendered")
        snapshot = Snapshot(image=preview.copy(), label=format_label(state.filter_label, state.brightness))
        self._entries.insert(0, snapshot)
        logger.debug("Committed snapshot %s (%s)", snapshot.label, snapshot.identity)
        self._notify()
        return snapshot

    def commit(self, preview: RasterImage | None, state: EditState) -> Snapshot | None:
        try:
            return self.commit_or_raise(preview, state)
        except NoPreviewError:
            logger.debug("Commit ignored: no current preview")
            return None

    def remove(self, identity: uuid.UUID) -> None:
        index = next((i for i, s in enumerate(self._entries) if s.identity == identity), None)
        if index is None:
            return
        del self._entries[index]
        self._notify()

    def clear(self) -> None:
        if not self._entries:
            return
        self._entries.clear()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
