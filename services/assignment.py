"""Binding escalated reports to workers."""

from __future__ import annotations

import logging

from models.enums import NotificationType, ReportStatus, ReportType
from models.report import Report, ReportFilter
from models.user import AuthContext
from services import escalation
from services.errors import ForbiddenError, InvalidStateError, ValidationError
from services.maps import MapRegistry
from services.notifier import NotificationEmitter
from services.report_store import ReportStore, utcnow

logger = logging.getLogger(__name__)

# Requests for new infrastructure are handled by admins, not sent to the nearest worker
INFRASTRUCTURE_TYPES = frozenset({ReportType.PUBLIC_BIN_REQUEST, ReportType.PUBLIC_TOILET_REQUEST})


class AssignmentCoordinator:
    def __init__(self, store: ReportStore, notifier: NotificationEmitter, maps: MapRegistry) -> None:
        self.store = store
        self.notifier = notifier
        self.maps = maps

    async def assign(self, report_id: str, worker_id: str, actor: AuthContext) -> Report:
        if not actor.is_admin:
            raise ForbiddenError("Only administrators can assign reports")
        if not worker_id:
            raise ValidationError("worker_id is required")

        report = await self.store.get_by_id(report_id)
        escalation.ensure_transition(report.status, ReportStatus.ASSIGNED)

        updated = await self.store.update_status(
            report_id,
            ReportStatus.ESCALATED,
            ReportStatus.ASSIGNED,
            assigned_worker_id=worker_id,
            assigned_at=utcnow(),
        )
        logger.info("Report %s assigned to worker %s by %s", report_id, worker_id, actor.user_id)

        await self.notifier.emit(
            worker_id,
            f"A report has been assigned to you: {updated.title}",
            NotificationType.REPORT_ASSIGNED,
            report_id,
        )
        await self.notifier.emit(
            updated.created_by,
            f'Your report "{updated.title}" has been assigned to a worker and is being processed.',
            NotificationType.REPORT_ASSIGNED,
            report_id,
        )
        return updated

    async def assign_nearest(self, report_id: str, actor: AuthContext) -> Report:
        if not actor.is_admin:
            raise ForbiddenError("Only administrators can assign reports")

        report = await self.store.get_by_id(report_id)
        escalation.ensure_transition(report.status, ReportStatus.ASSIGNED)

        if report.type in INFRASTRUCTURE_TYPES:
            raise InvalidStateError("This is an infrastructure request; handle via admin resolution")

        nearest = await self.maps.nearest_worker(report.latitude, report.longitude)
        if nearest is None:
            raise InvalidStateError("No workers available")
        return await self.assign(report_id, nearest.worker_id, actor)

    async def list_assigned_to(self, worker_id: str, include_history: bool = False) -> list[Report]:
        reports = await self.store.list_by_filter(
            ReportFilter(
                assigned_worker_id=worker_id,
                statuses=list(escalation.ACTIVE_ASSIGNMENT_STATUSES),
                limit=500,
            )
        )
        if include_history:
            reports += await self.store.list_by_filter(
                ReportFilter(resolved_by=worker_id, statuses=[ReportStatus.RESOLVED], limit=500)
            )
        return reports
