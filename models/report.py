import math
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from models.enums import ReportStatus, ReportType, VoteType

# What the citizen submits
class ReportCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    type: ReportType
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    image_url: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("latitude", "longitude")
    @classmethod
    def coordinates_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinates must be finite numbers")
        return value

# Stored row
class Report(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    type: ReportType
    latitude: float
    longitude: float
    status: ReportStatus = ReportStatus.PENDING
    created_by: str
    image_url: Optional[str] = None
    resolved_image_url: Optional[str] = None
    resolved_notes: Optional[str] = None
    assigned_worker_id: Optional[str] = None
    assigned_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    confirmed_by: Optional[str] = None
    support_count: int = 0
    opposition_count: int = 0
    created_at: datetime
    updated_at: datetime

    @property
    def net_support(self) -> int:
        return self.support_count - self.opposition_count

# What a viewer gets back, decorated with their own vote
class ReportPublic(Report):
    is_own_report: bool = False
    my_vote: Optional[VoteType] = None
    has_voted: bool = False
    can_vote: bool = False

# Filters accepted by ReportStore.list_by_filter
class ReportFilter(BaseModel):
    statuses: Optional[List[ReportStatus]] = None
    type: Optional[ReportType] = None
    created_by: Optional[str] = None
    exclude_created_by: Optional[str] = None
    assigned_worker_id: Optional[str] = None
    resolved_by: Optional[str] = None
    min_net_support: Optional[int] = None
    limit: int = Field(100, ge=1, le=500)
    offset: int = Field(0, ge=0)

# Response for the support / oppose endpoints
class VoteResult(BaseModel):
    report_id: str
    support_count: int
    opposition_count: int
    status: ReportStatus
    my_reaction: VoteType
    escalated: bool = False
