"""
Shelter catalog loaded from the public cooling-shelter dataset.

The dataset is a JSON object ``{"DATA": [...]}``; each row uses the
provider's column names (``r_area_nm``, ``lat``, ``lon``, ``use_prnb`` ...).
The catalog is read-only: nothing in the service writes back to it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional

from shelterspot.domain.entities import Coordinate, Shelter

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def shelter_from_row(row: dict, index: int) -> Optional[Shelter]:
    """Map one dataset row to a ``Shelter``; ``None`` if it has no position."""
    try:
        lat = float(row["lat"])
        lng = float(row["lon"])
    except (KeyError, TypeError, ValueError):
        return None

    facility_types = tuple(
        str(row[key]) for key in ("facility_type1", "facility_type2") if row.get(key)
    )
    return Shelter(
        id=f"{row.get('area_cd', 'unknown')}-{index}",
        name=str(row.get("r_area_nm") or ""),
        address=str(row.get("r_detl_add") or row.get("lotno_addr") or ""),
        coordinates=Coordinate(latitude=lat, longitude=lng),
        capacity=_to_int(row.get("use_prnb")),
        facility_types=facility_types,
        remarks=row.get("rmrk"),
    )


class ShelterCatalog:
    def __init__(self, shelters: list[Shelter]):
        self._shelters = tuple(shelters)
        self._by_id = {s.id: s for s in self._shelters}

    def __iter__(self) -> Iterator[Shelter]:
        return iter(self._shelters)

    def __len__(self) -> int:
        return len(self._shelters)

    @property
    def shelters(self) -> tuple[Shelter, ...]:
        return self._shelters

    def get(self, shelter_id: str) -> Optional[Shelter]:
        return self._by_id.get(shelter_id)

    @classmethod
    def from_rows(cls, rows: list[dict]) -> "ShelterCatalog":
        shelters: list[Shelter] = []
        skipped = 0
        for index, row in enumerate(rows):
            shelter = shelter_from_row(row, index)
            if shelter is None:
                skipped += 1
                continue
            shelters.append(shelter)
        if skipped:
            logger.warning("Skipped %d catalog rows without usable coordinates", skipped)
        return cls(shelters)


def load_catalog(path: str | Path) -> ShelterCatalog:
    """Load the catalog file.  A missing file yields an empty catalog."""
    path = Path(path)
    if not path.exists():
        logger.warning("Shelter catalog %s not found; starting empty", path)
        return ShelterCatalog([])

    with path.open(encoding="utf-8") as fh:
        raw = json.load(fh)
    rows = raw.get("DATA", []) if isinstance(raw, dict) else raw
    catalog = ShelterCatalog.from_rows(rows)
    logger.info("Loaded %d shelters from %s", len(catalog), path)
    return catalog
