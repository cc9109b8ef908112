"""
Seed script -- records sample clicks so crowding badges are not all RELAXED.

Run against the configured store:
    python seed.py

Creates (within the last hour):
  - 34 clicks for the first catalog shelter   -> BUSY
  - 18 clicks for the second                  -> NORMAL
  -  5 clicks for the third                   -> RELAXED
"""

import asyncio
import time

from shelterspot.api.app import build_crowding_store
from shelterspot.config import settings
from shelterspot.infrastructure.catalog import load_catalog

CLICK_PLAN = [34, 18, 5]


async def seed():
    catalog = load_catalog(settings.catalog_path)
    if not len(catalog):
        print("Catalog is empty. Nothing to seed.")
        return

    store = build_crowding_store()
    now_ms = int(time.time() * 1000)

    stats = await store.statistics(now_ms)
    if stats.total_clicks > 0:
        print("Click log already has recent data. Skipping.")
        return

    for shelter, clicks in zip(catalog, CLICK_PLAN):
        for i in range(clicks):
            # spread over the last 50 minutes, oldest first
            await store.record_click(shelter.id, now_ms - (clicks - i) * 50 * 60 * 1000 // clicks)
        print(f"  {shelter.name}: {clicks} clicks")

    stats = await store.statistics(int(time.time() * 1000))
    print(f"\nSeed complete! {stats.total_clicks} clicks across {stats.active_shelters} shelters")


if __name__ == "__main__":
    asyncio.run(seed())
