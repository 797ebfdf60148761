"""Notification fan-out.

Emission is fire-and-forget: a failing sink is logged and skipped, it never
undoes the state transition that produced the notification.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Protocol, Sequence

from starlette.concurrency import run_in_threadpool

from models.enums import NotificationType
from models.notification import Notification, NotificationCreate
from services.database import Database
from services.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    name: str

    async def deliver(self, notification_id: str, notification: NotificationCreate) -> None:
        ...


class DatabaseNotificationSink:
    """Stores notifications in the in-app inbox table."""

    name = "inbox"

    def __init__(self, database: Database) -> None:
        self.database = database

    async def deliver(self, notification_id: str, notification: NotificationCreate) -> None:
        await self.database.execute(
            "INSERT INTO notifications (id, user_id, report_id, message, notification_type, "
            "is_read, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                notification_id,
                notification.user_id,
                notification.report_id,
                notification.message,
                notification.notification_type.value,
                int(notification.is_read),
                notification.created_at.isoformat(),
            ),
        )


class FirestoreNotificationSink:
    """Mirrors notifications into the Firestore ``notifications`` collection."""

    name = "firestore"

    def __init__(self, client) -> None:
        self.client = client

    async def deliver(self, notification_id: str, notification: NotificationCreate) -> None:
        notification_data = notification.model_dump(mode="json")
        notification_data["id"] = notification_id
        notification_data["data"] = (
            {"report_id": notification.report_id} if notification.report_id else {}
        )
        document = self.client.collection("notifications").document(notification_id)
        await run_in_threadpool(document.set, notification_data)


class NotificationEmitter:
    def __init__(
        self, sinks: Sequence[NotificationSink], admin_ids: Sequence[str] = ()
    ) -> None:
        self.sinks = list(sinks)
        self.admin_ids = list(admin_ids)

    async def emit(
        self,
        user_id: str,
        message: str,
        kind: NotificationType,
        related_report_id: Optional[str] = None,
    ) -> Optional[str]:
        if not user_id:
            logger.warning("Dropping %s notification without recipient", kind.value)
            return None

        notification = NotificationCreate(
            user_id=user_id,
            report_id=related_report_id,
            message=message,
            notification_type=kind,
        )
        notification_id = str(uuid.uuid4())
        for sink in self.sinks:
            try:
                await sink.deliver(notification_id, notification)
            except Exception:
                logger.exception(
                    "Notification sink %s failed for user %s (report %s)",
                    sink.name, user_id, related_report_id,
                )
        return notification_id

    async def notify_admins(
        self,
        message: str,
        kind: NotificationType,
        related_report_id: Optional[str] = None,
    ) -> list[str]:
        """Send the same notification to every configured administrator."""
        if not self.admin_ids:
            logger.warning("No administrators configured for %s notification", kind.value)
        ids = []
        for admin_id in self.admin_ids:
            notification_id = await self.emit(admin_id, message, kind, related_report_id)
            if notification_id:
                ids.append(notification_id)
        return ids


class NotificationInbox:
    """Read side of the in-app notifications table."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def list_for(
        self, user_id: str, limit: int = 50, is_read: Optional[bool] = None
    ) -> list[Notification]:
        sql = "SELECT * FROM notifications WHERE user_id = ?"
        params: list = [user_id]
        if is_read is not None:
            sql += " AND is_read = ?"
            params.append(int(is_read))
        sql += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)
        rows = await self.database.fetch_all(sql, tuple(params))
        return [Notification(**row) for row in rows]

    async def unread_count(self, user_id: str) -> int:
        row = await self.database.fetch_one(
            "SELECT COUNT(*) AS total FROM notifications WHERE user_id = ? AND is_read = 0",
            (user_id,),
        )
        return row["total"] if row else 0

    async def mark_read(self, notification_id: str, user_id: str) -> Notification:
        row = await self.database.fetch_one(
            "SELECT * FROM notifications WHERE id = ?", (notification_id,)
        )
        if row is None:
            raise NotFoundError("Notification not found")
        if row["user_id"] != user_id:
            raise ForbiddenError("Not authorized to mark this notification as read")
        if not row["is_read"]:
            await self.database.execute(
                "UPDATE notifications SET is_read = 1 WHERE id = ?", (notification_id,)
            )
            row["is_read"] = 1
        return Notification(**row)

    async def mark_all_read(self, user_id: str) -> int:
        return await self.database.execute(
            "UPDATE notifications SET is_read = 1 WHERE user_id = ? AND is_read = 0",
            (user_id,),
        )
