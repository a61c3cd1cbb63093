from __future__ import annotations

import math
from dataclasses import dataclass, replace

from .filters import ORIGINAL_LABEL, FilterId, label_for


BRIGHTNESS_MIN = -1.0
BRIGHTNESS_MAX = 1.0


def clamp_brightness(value: float) -> float:
    v = float(value)
    if math.isnan(v):
        return 0.0
    return min(max(v, BRIGHTNESS_MIN), BRIGHTNESS_MAX)


@dataclass(frozen=True)
class EditState:
    filter_id: FilterId | None = None
    filter_label: str = ORIGINAL_LABEL
    brightness: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "brightness", clamp_brightness(self.brightness))

    @classmethod
    def default(cls) -> "EditState":
        return cls()

    @property
    def is_default(self) -> bool:
        return self.filter_id is None and self.brightness == 0.0

    def with_filter(self, filter_id: FilterId | None, label: str | None = None) -> "EditState":
        if filter_id is None:
            label = ORIGINAL_LABEL
        elif label is None:
            label = label_for(filter_id)
        return replace(self, filter_id=filter_id, filter_label=label)

    def with_brightness(self, value: float) -> "EditState":
        return replace(self, brightness=clamp_brightness(value))
