from __future__ import annotations

import enum
from dataclasses import dataclass


ORIGINAL_LABEL = "Original"


class FilterId(enum.Enum):
    SEPIA = "sepia"
    NOIR = "noir"
    COMIC = "comic"
    PIXELLATE = "pixellate"


@dataclass(frozen=True)
class FilterPreset:
    name: str
    filter_id: FilterId
    category: str = "Color"


_PRESETS: tuple[FilterPreset, ...] = (
    FilterPreset(name="Sepia", filter_id=FilterId.SEPIA),
    FilterPreset(name="Noir", filter_id=FilterId.NOIR, category="Black & White"),
    FilterPreset(name="Comic", filter_id=FilterId.COMIC, category="Stylize"),
    FilterPreset(name="Pixel", filter_id=FilterId.PIXELLATE, category="Stylize"),
)


def presets() -> list[FilterPreset]:
    return list(_PRESETS)


def list_filters() -> list[tuple[str, FilterId]]:
    """Return the catalog as ``(label, filter_id)`` pairs in display order."""

    return [(p.name, p.filter_id) for p in _PRESETS]


def label_for(filter_id: FilterId | None) -> str:
    if filter_id is None:
        return ORIGINAL_LABEL
    for p in _PRESETS:
        if p.filter_id is filter_id:
            return p.name
    raise KeyError(filter_id)


def lookup(name: str) -> FilterId:
    """Resolve a catalog label or enum name (case-insensitive) to its identifier."""

    key = name.strip().lower()
    for p in _PRESETS:
        if key in (p.name.lower(), p.filter_id.name.lower(), p.filter_id.value):
            return p.filter_id
    raise KeyError(name)
