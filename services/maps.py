"""Public facilities, worker location pings and the combined map feed."""

from __future__ import annotations

import logging
import math
import uuid
from typing import Optional

from cachetools import TTLCache

from models.facility import (
    FacilityCreate,
    FacilityUpdate,
    MapFeedItem,
    PublicFacility,
    WorkerLocation,
)
from services.database import Database
from services.errors import NotFoundError
from services.report_store import utcnow

logger = logging.getLogger(__name__)

FEED_CACHE_KEY = "feed"
WORKER_KIND = "WORKER"


class MapRegistry:
    def __init__(self, database: Database, cache_ttl: float = 5) -> None:
        self.database = database
        self.feed_cache: TTLCache = TTLCache(maxsize=4, ttl=cache_ttl)

    # -- Facilities --

    async def add_facility(self, data: FacilityCreate) -> PublicFacility:
        facility_id = str(uuid.uuid4())
        await self.database.execute(
            "INSERT INTO public_facilities (id, name, type, latitude, longitude, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (facility_id, data.name, data.type.value, data.latitude, data.longitude,
             utcnow().isoformat()),
        )
        self.feed_cache.clear()
        return await self.get_facility(facility_id)

    async def get_facility(self, facility_id: str) -> PublicFacility:
        row = await self.database.fetch_one(
            "SELECT * FROM public_facilities WHERE id = ?", (facility_id,)
        )
        if row is None:
            raise NotFoundError(f"Facility with ID {facility_id} not found")
        return PublicFacility(**row)

    async def list_facilities(self) -> list[PublicFacility]:
        rows = await self.database.fetch_all("SELECT * FROM public_facilities ORDER BY created_at")
        return [PublicFacility(**row) for row in rows]

    async def update_facility(self, facility_id: str, data: FacilityUpdate) -> PublicFacility:
        changes = data.model_dump(exclude_none=True)
        if "type" in changes:
            changes["type"] = changes["type"].value
        if changes:
            assignments = ", ".join(f"{column} = ?" for column in changes)
            updated = await self.database.execute(
                f"UPDATE public_facilities SET {assignments} WHERE id = ?",
                (*changes.values(), facility_id),
            )
            if not updated:
                raise NotFoundError(f"Facility with ID {facility_id} not found")
            self.feed_cache.clear()
        return await self.get_facility(facility_id)

    async def delete_facility(self, facility_id: str) -> None:
        deleted = await self.database.execute(
            "DELETE FROM public_facilities WHERE id = ?", (facility_id,)
        )
        if not deleted:
            raise NotFoundError(f"Facility with ID {facility_id} not found")
        self.feed_cache.clear()

    # -- Worker locations --

    async def update_worker_location(self, worker_id: str, latitude: float, longitude: float) -> WorkerLocation:
        await self.database.execute(
            "INSERT INTO worker_locations (id, worker_id, latitude, longitude, updated_at) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(worker_id) DO UPDATE SET latitude = excluded.latitude, "
            "longitude = excluded.longitude, updated_at = excluded.updated_at",
            (str(uuid.uuid4()), worker_id, latitude, longitude, utcnow().isoformat()),
        )
        self.feed_cache.clear()
        row = await self.database.fetch_one(
            "SELECT * FROM worker_locations WHERE worker_id = ?", (worker_id,)
        )
        return WorkerLocation(**row)

    async def list_worker_locations(self) -> list[WorkerLocation]:
        rows = await self.database.fetch_all("SELECT * FROM worker_locations ORDER BY updated_at DESC")
        return [WorkerLocation(**row) for row in rows]

    async def nearest_worker(self, latitude: float, longitude: float) -> Optional[WorkerLocation]:
        locations = await self.list_worker_locations()
        if not locations:
            return None
        return min(
            locations,
            key=lambda loc: math.hypot(loc.latitude - latitude, loc.longitude - longitude),
        )

    # -- Feed --

    async def feed(self) -> list[MapFeedItem]:
        if FEED_CACHE_KEY in self.feed_cache:
            return self.feed_cache[FEED_CACHE_KEY]

        items = [
            MapFeedItem(id=f.id, kind=f.type.value, latitude=f.latitude, longitude=f.longitude)
            for f in await self.list_facilities()
        ]
        items.extend(
            MapFeedItem(id=loc.worker_id, kind=WORKER_KIND, latitude=loc.latitude, longitude=loc.longitude)
            for loc in await self.list_worker_locations()
        )
        self.feed_cache[FEED_CACHE_KEY] = items
        return items
