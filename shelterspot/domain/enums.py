"""Domain enumerations."""

from __future__ import annotations

import enum


class CrowdingLevel(str, enum.Enum):
    """Three-band crowding estimate, ordered RELAXED < NORMAL < BUSY."""

    RELAXED = "RELAXED"
    NORMAL = "NORMAL"
    BUSY = "BUSY"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER[self]

    @property
    def label(self) -> str:
        return _LEVEL_DISPLAY[self][0]

    @property
    def emoji(self) -> str:
        return _LEVEL_DISPLAY[self][1]

    @property
    def description(self) -> str:
        return _LEVEL_DISPLAY[self][2]

    # str-mixin enums compare lexically by default; compare by band instead
    def __lt__(self, other):
        if not isinstance(other, CrowdingLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, CrowdingLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, CrowdingLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, CrowdingLevel):
            return NotImplemented
        return self.rank >= other.rank


_LEVEL_ORDER: dict[CrowdingLevel, int] = {
    CrowdingLevel.RELAXED: 0,
    CrowdingLevel.NORMAL: 1,
    CrowdingLevel.BUSY: 2,
}

# level -> (label, emoji, description)
_LEVEL_DISPLAY: dict[CrowdingLevel, tuple[str, str, str]] = {
    CrowdingLevel.RELAXED: ("여유", "😌", "여유로운 상태"),
    CrowdingLevel.NORMAL: ("보통", "😐", "보통 상태"),
    CrowdingLevel.BUSY: ("혼잡", "😰", "혼잡한 상태"),
}
