"""In-memory display state models."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field

BACKGROUND_NONE = "none"
BACKGROUND_IMAGE = "image"
BACKGROUND_VIDEO = "video"
BACKGROUND_TYPES = frozenset({BACKGROUND_NONE, BACKGROUND_IMAGE, BACKGROUND_VIDEO})

SPEED_RANGE = (1, 20)
DENSITY_RANGE = (1, 10)
LANES_RANGE = (4, 20)


def clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


@dataclass(slots=True, frozen=True)
class Background:
    """Shared background descriptor; url is empty when type is none."""

    type: str = BACKGROUND_NONE
    url: str = ""


@dataclass(slots=True)
class DisplaySettings:
    """Display configuration shared by every viewer."""

    barrage_speed: int
    barrage_density: int
    lanes: int
    background: Background = field(default_factory=Background)

    def __post_init__(self) -> None:
        self.barrage_speed = clamp(self.barrage_speed, SPEED_RANGE)
        self.barrage_density = clamp(self.barrage_density, DENSITY_RANGE)
        self.lanes = clamp(self.lanes, LANES_RANGE)

    def copy(self) -> "DisplaySettings":
        return DisplaySettings(
            barrage_speed=self.barrage_speed,
            barrage_density=self.barrage_density,
            lanes=self.lanes,
            background=self.background,
        )


@dataclass(slots=True, frozen=True)
class Danmaku:
    """One accepted message; exists only as an outbound payload."""

    text: str
    color: str
    lane: int
