"""
Crowding Classifier
===================

Rule
----
  hourly_clicks >= 30          -> BUSY
  15 <= hourly_clicks < 30     -> NORMAL
  hourly_clicks < 15           -> RELAXED

Lower bounds are inclusive, so exactly 15 is NORMAL and exactly 30 is BUSY.
The thresholds are fixed for every shelter.

``capacity`` is accepted so callers can pass the shelter's stated headcount
through, but it does not move the thresholds.

Complexity: O(1) per classification, O(n) for ``summarize``.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .entities import CrowdingSnapshot, CrowdingStatistics
from .enums import CrowdingLevel

BUSY_THRESHOLD = 30
NORMAL_THRESHOLD = 15


def classify(
    hourly_click_count: int, capacity: Optional[int] = None
) -> CrowdingLevel:
    if hourly_click_count < 0:
        raise ValueError(f"Click count cannot be negative: {hourly_click_count}")
    if hourly_click_count >= BUSY_THRESHOLD:
        return CrowdingLevel.BUSY
    if hourly_click_count >= NORMAL_THRESHOLD:
        return CrowdingLevel.NORMAL
    return CrowdingLevel.RELAXED


def summarize(
    snapshots: Iterable[CrowdingSnapshot], total_clicks: int
) -> CrowdingStatistics:
    """Count active shelters per level."""
    levels = {level: 0 for level in CrowdingLevel}
    active = 0
    for snap in snapshots:
        levels[snap.level] += 1
        active += 1
    return CrowdingStatistics(
        total_clicks=total_clicks, active_shelters=active, levels=levels
    )
