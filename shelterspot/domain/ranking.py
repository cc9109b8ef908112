"""
Shelter Distance Ranking
========================

``rank`` annotates every shelter with its great-circle distance from the
user and returns a new list sorted ascending.  Entries whose distance is
unknown (``None``) sort after all resolved ones; Python's sort is stable,
so their relative input order is kept.

``rank_in_batches`` does the same work in fixed-size units and yields a
complete ``RankingSnapshot`` after each unit, handing control back to the
event loop in between.  Every snapshot contains every shelter: ones not yet
reached carry ``distance_km=None``.  A snapshot is an immutable tuple built
fresh per batch, so readers never observe a half-updated ranking.

Complexity
----------
* ``rank``:             O(n log n)
* ``rank_in_batches``:  O(b log b + n) per batch of size b -- the batch is
  sorted and merged into the already-resolved prefix, then the snapshot
  tuple is rebuilt.

``matches_query`` and ``order_ranked`` back the list view: a name / address
search and the alternative congestion or name orderings.
"""

from __future__ import annotations

import asyncio
import heapq
from typing import AsyncIterator, Iterable, Mapping, Sequence

from .distance import distance_km, format_distance
from .entities import Coordinate, RankedShelter, Shelter
from .enums import CrowdingLevel

DEFAULT_BATCH_SIZE = 50

RankingSnapshot = tuple[RankedShelter, ...]


def _annotate(user_location: Coordinate, shelter: Shelter) -> RankedShelter:
    km = distance_km(user_location, shelter.coordinates)
    return RankedShelter(shelter=shelter, distance_km=km, distance_label=format_distance(km))


def _sort_key(entry: RankedShelter) -> tuple[int, float]:
    if entry.distance_km is None:
        return (1, 0.0)
    return (0, entry.distance_km)


def sort_ranked(entries: Iterable[RankedShelter]) -> list[RankedShelter]:
    """Stable ascending sort; unresolved distances last."""
    return sorted(entries, key=_sort_key)


def rank(
    user_location: Coordinate, shelters: Sequence[Shelter]
) -> list[RankedShelter]:
    return sort_ranked(_annotate(user_location, s) for s in shelters)


async def rank_in_batches(
    user_location: Coordinate,
    shelters: Sequence[Shelter],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> AsyncIterator[RankingSnapshot]:
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    pending = [RankedShelter(shelter=s) for s in shelters]
    if not pending:
        yield ()
        return

    resolved: list[RankedShelter] = []
    for start in range(0, len(pending), batch_size):
        batch = sorted(
            (_annotate(user_location, e.shelter) for e in pending[start:start + batch_size]),
            key=_sort_key,
        )
        # merge keeps earlier batches first on ties, matching input order
        resolved = list(heapq.merge(resolved, batch, key=_sort_key))
        yield tuple(resolved) + tuple(pending[start + batch_size:])
        await asyncio.sleep(0)


# ── Search and re-ordering ────────────────────────────────────────────

SORT_ORDERS = ("distance", "congestion", "name")


def matches_query(shelter: Shelter, query: str) -> bool:
    """Case-insensitive substring match on name or address; blank matches all."""
    needle = query.strip().casefold()
    if not needle:
        return True
    return needle in shelter.name.casefold() or needle in shelter.address.casefold()


def order_ranked(
    entries: Iterable[RankedShelter],
    levels: Mapping[str, CrowdingLevel],
    sort_by: str = "distance",
) -> list[RankedShelter]:
    """
    Re-order distance-ranked entries.

    ``congestion`` puts RELAXED before NORMAL before BUSY (shelters missing
    from ``levels`` are RELAXED); ``name`` sorts by code point.  Both sorts
    are stable, so ties stay nearest first.
    """
    if sort_by == "distance":
        return list(entries)
    if sort_by == "congestion":
        return sorted(
            entries,
            key=lambda e: levels.get(e.shelter.id, CrowdingLevel.RELAXED),
        )
    if sort_by == "name":
        return sorted(entries, key=lambda e: e.shelter.name)
    raise ValueError(f"Unknown sort order: {sort_by!r}")
