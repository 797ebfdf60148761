import pytest

from models.enums import FacilityType
from models.facility import FacilityCreate, FacilityUpdate
from services.errors import NotFoundError
from services.maps import WORKER_KIND


async def test_facility_crud(maps):
    facility = await maps.add_facility(
        FacilityCreate(name="MG Road toilet", type=FacilityType.TOILET, latitude=12.97, longitude=77.6)
    )
    assert [f.id for f in await maps.list_facilities()] == [facility.id]

    updated = await maps.update_facility(facility.id, FacilityUpdate(type=FacilityType.BIN))
    assert updated.type == FacilityType.BIN
    assert updated.name == "MG Road toilet"

    await maps.delete_facility(facility.id)
    assert await maps.list_facilities() == []
    with pytest.raises(NotFoundError):
        await maps.delete_facility(facility.id)
    with pytest.raises(NotFoundError):
        await maps.update_facility(facility.id, FacilityUpdate(name="x"))


async def test_worker_location_is_upserted(maps):
    await maps.update_worker_location("worker-W", 12.0, 77.0)
    moved = await maps.update_worker_location("worker-W", 12.5, 77.5)

    locations = await maps.list_worker_locations()
    assert len(locations) == 1
    assert (moved.latitude, moved.longitude) == (12.5, 77.5)


async def test_nearest_worker(maps):
    assert await maps.nearest_worker(12.97, 77.59) is None
    await maps.update_worker_location("worker-far", 28.6, 77.2)
    await maps.update_worker_location("worker-near", 12.9, 77.5)

    assert (await maps.nearest_worker(12.97, 77.59)).worker_id == "worker-near"


async def test_feed_combines_facilities_and_workers_and_is_invalidated(maps):
    assert await maps.feed() == []

    facility = await maps.add_facility(
        FacilityCreate(name="Depot", type=FacilityType.WASTE_FACILITY, latitude=1.0, longitude=2.0)
    )
    await maps.update_worker_location("worker-W", 3.0, 4.0)

    feed = await maps.feed()
    assert {(item.id, item.kind) for item in feed} == {
        (facility.id, "WASTE_FACILITY"),
        ("worker-W", WORKER_KIND),
    }

    await maps.delete_facility(facility.id)
    assert [item.kind for item in await maps.feed()] == [WORKER_KIND]
