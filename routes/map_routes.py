# map_routes.py
from fastapi import APIRouter, Depends, status
from typing import List

from models.enums import UserRole
from models.facility import (
    FacilityCreate,
    FacilityUpdate,
    MapFeedItem,
    PublicFacility,
    WorkerLocation,
    WorkerLocationUpdate,
)
from models.user import AuthContext
from routes.auth_context import require_role
from routes.dependencies import get_map_registry
from services.maps import MapRegistry

router = APIRouter(tags=["Maps"])


# Combined facilities / worker feed for the public map
@router.get("/feed", response_model=List[MapFeedItem])
async def get_map_feed(maps: MapRegistry = Depends(get_map_registry)):
    return await maps.feed()


@router.get("/facilities", response_model=List[PublicFacility])
async def list_facilities(maps: MapRegistry = Depends(get_map_registry)):
    return await maps.list_facilities()


@router.post("/facilities", response_model=PublicFacility, status_code=status.HTTP_201_CREATED)
async def add_facility(
    facility: FacilityCreate,
    current_user: AuthContext = Depends(require_role(UserRole.ADMIN)),
    maps: MapRegistry = Depends(get_map_registry),
):
    return await maps.add_facility(facility)


@router.patch("/facilities/{facility_id}", response_model=PublicFacility)
async def update_facility(
    facility_id: str,
    changes: FacilityUpdate,
    current_user: AuthContext = Depends(require_role(UserRole.ADMIN)),
    maps: MapRegistry = Depends(get_map_registry),
):
    return await maps.update_facility(facility_id, changes)


@router.delete("/facilities/{facility_id}")
async def delete_facility(
    facility_id: str,
    current_user: AuthContext = Depends(require_role(UserRole.ADMIN)),
    maps: MapRegistry = Depends(get_map_registry),
):
    await maps.delete_facility(facility_id)
    return {"message": "Facility deleted"}


# Location ping sent periodically by the worker app
@router.post("/worker-location", response_model=WorkerLocation)
async def update_worker_location(
    location: WorkerLocationUpdate,
    current_user: AuthContext = Depends(require_role(UserRole.WORKER)),
    maps: MapRegistry = Depends(get_map_registry),
):
    return await maps.update_worker_location(
        current_user.user_id, location.latitude, location.longitude
    )


@router.get("/worker-locations", response_model=List[WorkerLocation])
async def list_worker_locations(maps: MapRegistry = Depends(get_map_registry)):
    return await maps.list_worker_locations()
