"""From assigned work to admin-confirmed closure."""

from __future__ import annotations

import logging
from typing import Optional

from models.enums import NotificationType, ReportStatus
from models.report import Report
from models.user import AuthContext
from services import escalation
from services.errors import ForbiddenError, InvalidStateError, ValidationError
from services.notifier import NotificationEmitter
from services.report_store import ReportStore

logger = logging.getLogger(__name__)


class ResolutionPipeline:
    def __init__(self, store: ReportStore, notifier: NotificationEmitter) -> None:
        self.store = store
        self.notifier = notifier

    async def _load_for_worker(self, report_id: str, worker_id: str) -> Report:
        report = await self.store.get_by_id(report_id)
        # "already resolved" is reported before "not assigned to you"
        if escalation.is_terminal(report.status):
            raise InvalidStateError(f"Report is already {report.status.value}")
        if report.assigned_worker_id != worker_id:
            raise ForbiddenError("Not assigned to you")
        return report

    async def check_worker_can_submit(self, report_id: str, worker_id: str) -> Report:
        """Raise the same errors submit_proof would, without storing anything."""
        report = await self._load_for_worker(report_id, worker_id)
        escalation.ensure_transition(report.status, ReportStatus.WORKING)
        return report

    async def submit_proof(
        self,
        report_id: str,
        worker_id: str,
        photo_url: str,
        notes: Optional[str] = None,
    ) -> Report:
        if not photo_url:
            raise ValidationError("A resolution photo is required")

        report = await self.check_worker_can_submit(report_id, worker_id)

        updated = await self.store.attach_resolution_proof(
            report_id, worker_id, photo_url, notes or None, report.status
        )
        await self.notifier.emit(
            updated.created_by,
            f'A worker uploaded resolution evidence for your report "{updated.title}".',
            NotificationType.PROOF_SUBMITTED,
            report_id,
        )
        await self.notifier.notify_admins(
            f"Worker uploaded resolution evidence for: {updated.title}",
            NotificationType.PROOF_SUBMITTED,
            report_id,
        )
        return updated

    async def mark_resolved_by_worker(self, report_id: str, worker_id: str) -> Report:
        report = await self._load_for_worker(report_id, worker_id)
        if not report.resolved_image_url:
            raise InvalidStateError("Upload resolution photo first")
        escalation.ensure_transition(report.status, ReportStatus.PENDING_CONFIRMATION)

        updated = await self.store.update_status(
            report_id, report.status, ReportStatus.PENDING_CONFIRMATION
        )
        logger.info("Worker %s marked report %s as resolved", worker_id, report_id)
        await self.notifier.emit(
            updated.created_by,
            f'The worker finished your report "{updated.title}". It now awaits admin confirmation.',
            NotificationType.RESOLUTION_REQUESTED,
            report_id,
        )
        await self.notifier.notify_admins(
            f"Worker finished report: {updated.title}. Requires admin confirmation.",
            NotificationType.RESOLUTION_REQUESTED,
            report_id,
        )
        return updated

    async def confirm_resolution(self, report_id: str, actor: AuthContext) -> Report:
        if not actor.is_admin:
            raise ForbiddenError("Only administrators can confirm a resolution")

        report = await self.store.get_by_id(report_id)
        escalation.ensure_transition(report.status, ReportStatus.RESOLVED)

        updated = await self.store.update_status(
            report_id,
            report.status,
            ReportStatus.RESOLVED,
            assigned_worker_id=None,
            resolved_by=report.assigned_worker_id,
            confirmed_by=actor.user_id,
        )
        logger.info("Report %s resolved, confirmed by %s", report_id, actor.user_id)
        await self.notifier.emit(
            updated.created_by,
            f'Your report "{updated.title}" has been officially RESOLVED and confirmed by the administration. Thank you!',
            NotificationType.REPORT_RESOLVED,
            report_id,
        )
        return updated
