# notification_routes.py
from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from models.notification import NotificationPublic
from models.user import AuthContext
from routes.auth_context import get_current_user
from routes.dependencies import get_notification_inbox
from services.notifier import NotificationInbox

router = APIRouter(tags=["Notifications"])


# -------------------- List notifications -------------------- #
@router.get("/", response_model=List[NotificationPublic])
async def list_notifications(
    is_read: Optional[bool] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    current_user: AuthContext = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_notification_inbox),
):
    """
    Lists the authenticated user's notifications, newest first.
    Every user only ever sees their own notifications.
    """
    notifications = await inbox.list_for(current_user.user_id, limit=limit, is_read=is_read)
    return [NotificationPublic(**n.model_dump()) for n in notifications]


# -------------------- Unread badge -------------------- #
@router.get("/unread-count")
async def unread_count(
    current_user: AuthContext = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_notification_inbox),
):
    return {"unread": await inbox.unread_count(current_user.user_id)}


# -------------------- Mark all as read -------------------- #
@router.patch("/read-all")
async def mark_all_as_read(
    current_user: AuthContext = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_notification_inbox),
):
    updated = await inbox.mark_all_read(current_user.user_id)
    return {"updated": updated}


# -------------------- Mark one as read -------------------- #
@router.patch("/{notification_id}/read", response_model=NotificationPublic)
async def mark_as_read(
    notification_id: str,
    current_user: AuthContext = Depends(get_current_user),
    inbox: NotificationInbox = Depends(get_notification_inbox),
):
    notification = await inbox.mark_read(notification_id, current_user.user_id)
    return NotificationPublic(**notification.model_dump())
