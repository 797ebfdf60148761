from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
from models.enums import NotificationType

# Payload handed to every notification sink
class NotificationCreate(BaseModel):
    user_id: str
    report_id: Optional[str] = None
    message: str
    notification_type: NotificationType
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_read: bool = False

# Stored inbox entry
class Notification(BaseModel):
    id: str
    user_id: str
    report_id: Optional[str]
    message: str
    notification_type: NotificationType
    is_read: bool
    created_at: datetime

# Public notification model for API responses
class NotificationPublic(BaseModel):
    id: str
    report_id: Optional[str] = None
    message: str
    notification_type: NotificationType
    is_read: bool
    created_at: datetime
