"""Durable CRUD for civic reports."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from models.enums import ReportStatus
from models.report import Report, ReportCreate, ReportFilter
from services import escalation
from services.database import Database
from services.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Columns a status transition may change alongside the status itself
MUTABLE_COLUMNS = {
    "assigned_worker_id",
    "assigned_at",
    "resolved_image_url",
    "resolved_notes",
    "resolved_by",
    "confirmed_by",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _describe_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err.get("loc", ())) or "payload"
        parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)


class ReportStore:
    def __init__(self, database: Database) -> None:
        self.database = database

    def validate(self, data: dict[str, Any] | ReportCreate) -> ReportCreate:
        if isinstance(data, ReportCreate):
            return data
        try:
            return ReportCreate(**{k: v for k, v in data.items() if v is not None})
        except PydanticValidationError as exc:
            raise ValidationError(_describe_errors(exc)) from exc

    async def create(self, data: dict[str, Any] | ReportCreate, created_by: str) -> Report:
        if not created_by:
            raise ValidationError("created_by is required")
        data = self.validate(data)

        now = utcnow().isoformat()
        report_id = str(uuid.uuid4())
        await self.database.execute(
            "INSERT INTO reports (id, title, description, type, latitude, longitude, status, "
            "created_by, image_url, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                report_id,
                data.title,
                data.description or "",
                data.type.value,
                data.latitude,
                data.longitude,
                ReportStatus.PENDING.value,
                created_by,
                data.image_url,
                now,
                now,
            ),
        )
        logger.info("Report %s created by %s (%s)", report_id, created_by, data.type.value)
        return await self.get_by_id(report_id)

    async def get_by_id(self, report_id: str) -> Report:
        row = await self.database.fetch_one("SELECT * FROM reports WHERE id = ?", (report_id,))
        if row is None:
            raise NotFoundError("Report not found")
        return Report(**row)

    async def list_by_filter(self, filters: Optional[ReportFilter] = None) -> list[Report]:
        filters = filters or ReportFilter()
        clauses: list[str] = []
        params: list[Any] = []

        if filters.statuses:
            clauses.append(f"status IN ({', '.join('?' for _ in filters.statuses)})")
            params.extend(s.value for s in filters.statuses)
        if filters.type:
            clauses.append("type = ?")
            params.append(filters.type.value)
        if filters.created_by:
            clauses.append("created_by = ?")
            params.append(filters.created_by)
        if filters.exclude_created_by:
            clauses.append("created_by != ?")
            params.append(filters.exclude_created_by)
        if filters.assigned_worker_id:
            clauses.append("assigned_worker_id = ?")
            params.append(filters.assigned_worker_id)
        if filters.resolved_by:
            clauses.append("resolved_by = ?")
            params.append(filters.resolved_by)
        if filters.min_net_support is not None:
            clauses.append("support_count - opposition_count >= ?")
            params.append(filters.min_net_support)

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self.database.fetch_all(
            f"SELECT * FROM reports{where} ORDER BY created_at DESC, id LIMIT ? OFFSET ?",
            (*params, filters.limit, filters.offset),
        )
        return [Report(**row) for row in rows]

    async def update_status(
        self,
        report_id: str,
        from_status: ReportStatus,
        to_status: ReportStatus,
        **changes: Any,
    ) -> Report:
        """Move a report from ``from_status`` to ``to_status`` only if it is still there.

        Extra keyword arguments update the listed mutable columns in the same
        statement. Raises InvalidStateError for an edge outside the transition
        table and ConflictError when another request moved the report first.
        """
        escalation.ensure_transition(from_status, to_status)
        unknown = set(changes) - MUTABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable on transition: {sorted(unknown)}")

        assignments = ["status = ?", "updated_at = ?"]
        params: list[Any] = [to_status.value, utcnow().isoformat()]
        for column, value in changes.items():
            assignments.append(f"{column} = ?")
            params.append(value.isoformat() if isinstance(value, datetime) else value)

        async with self.database.transaction() as conn:
            cursor = await conn.execute(
                f"UPDATE reports SET {', '.join(assignments)} WHERE id = ? AND status = ?",
                (*params, report_id, from_status.value),
            )
            updated = cursor.rowcount
            await cursor.close()
            if not updated:
                current = await self.database.fetch_one(
                    "SELECT status FROM reports WHERE id = ?", (report_id,)
                )
                if current is None:
                    raise NotFoundError("Report not found")
                raise ConflictError(
                    f"Report is {current['status']}, expected {from_status.value}"
                )
            report = await self.get_by_id(report_id)

        logger.info("Report %s: %s -> %s", report_id, from_status.value, to_status.value)
        return report

    async def update_counters(
        self, report_id: str, support_delta: int = 0, opposition_delta: int = 0
    ) -> Report:
        # Single increment statement; never read-modify-write in Python
        async with self.database.transaction() as conn:
            cursor = await conn.execute(
                "UPDATE reports SET support_count = support_count + ?, "
                "opposition_count = opposition_count + ?, updated_at = ? "
                "WHERE id = ? AND support_count + ? >= 0 AND opposition_count + ? >= 0",
                (
                    support_delta,
                    opposition_delta,
                    utcnow().isoformat(),
                    report_id,
                    support_delta,
                    opposition_delta,
                ),
            )
            updated = cursor.rowcount
            await cursor.close()
            if not updated:
                exists = await self.database.fetch_one(
                    "SELECT 1 FROM reports WHERE id = ?", (report_id,)
                )
                if exists is None:
                    raise NotFoundError("Report not found")
                raise ValidationError("Counters cannot become negative")
            return await self.get_by_id(report_id)

    async def attach_resolution_proof(
        self,
        report_id: str,
        worker_id: str,
        image_url: str,
        notes: Optional[str],
        from_status: ReportStatus,
    ) -> Report:
        escalation.ensure_transition(from_status, ReportStatus.WORKING)
        async with self.database.transaction() as conn:
            cursor = await conn.execute(
                "UPDATE reports SET resolved_image_url = ?, resolved_notes = ?, status = ?, "
                "updated_at = ? WHERE id = ? AND status = ? AND assigned_worker_id = ?",
                (
                    image_url,
                    notes,
                    ReportStatus.WORKING.value,
                    utcnow().isoformat(),
                    report_id,
                    from_status.value,
                    worker_id,
                ),
            )
            updated = cursor.rowcount
            await cursor.close()
            if not updated:
                raise ConflictError("Report changed while the proof was being stored")
            report = await self.get_by_id(report_id)

        logger.info("Resolution proof stored for report %s by worker %s", report_id, worker_id)
        return report
