from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from models.enums import FacilityType

class FacilityCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: FacilityType
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

class FacilityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[FacilityType] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

class PublicFacility(BaseModel):
    id: str
    name: str
    type: FacilityType
    latitude: float
    longitude: float
    created_at: datetime

class WorkerLocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

class WorkerLocation(BaseModel):
    id: str
    worker_id: str
    latitude: float
    longitude: float
    updated_at: datetime

# Entry of the combined facilities / worker feed shown on the map
class MapFeedItem(BaseModel):
    id: str
    kind: str  # facility type or "WORKER"
    latitude: float
    longitude: float
