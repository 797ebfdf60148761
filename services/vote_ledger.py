"""One vote per (report, voter) and the tallies derived from it."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import aiosqlite

from models.enums import NotificationType, VoteType
from models.report import VoteResult
from models.user import AuthContext
from models.vote import VoteTally
from services import escalation
from services.errors import DuplicateVoteError, SelfVoteError
from services.notifier import NotificationEmitter
from services.report_store import ReportStore, utcnow

logger = logging.getLogger(__name__)


class VoteLedger:
    def __init__(
        self,
        store: ReportStore,
        notifier: NotificationEmitter,
        threshold: int,
    ) -> None:
        self.store = store
        self.database = store.database
        self.notifier = notifier
        self.threshold = threshold

    async def cast_vote(self, report_id: str, voter: AuthContext, vote_type: VoteType) -> VoteResult:
        """Record a vote, bump the matching counter and escalate if the tally allows it.

        The insert, the counter update and the escalation are one transaction:
        a vote never exists without being counted.
        """
        report = await self.store.get_by_id(report_id)
        if report.created_by == voter.user_id:
            raise SelfVoteError("Cannot vote on your own report")

        support_delta = 1 if vote_type == VoteType.SUPPORT else 0
        opposition_delta = 1 - support_delta
        escalated = False

        async with self.database.transaction() as conn:
            try:
                await conn.execute(
                    "INSERT INTO votes (report_id, voter_id, vote_type, created_at) "
                    "VALUES (?, ?, ?, ?)",
                    (report_id, voter.user_id, vote_type.value, utcnow().isoformat()),
                )
            except aiosqlite.IntegrityError as exc:
                raise DuplicateVoteError("You have already voted on this report") from exc

            report = await self.store.update_counters(report_id, support_delta, opposition_delta)

            next_status = escalation.evaluate(
                report.status, report.support_count, report.opposition_count, self.threshold
            )
            if next_status is not None:
                report = await self.store.update_status(report_id, report.status, next_status)
                escalated = True

        logger.info(
            "Vote %s on report %s by %s (support=%d, oppose=%d)",
            vote_type.value, report_id, voter.user_id,
            report.support_count, report.opposition_count,
        )

        if escalated:
            await self.notifier.emit(
                report.created_by,
                f'Your report "{report.title}" reached the support threshold and was escalated for review.',
                NotificationType.REPORT_ESCALATED,
                report_id,
            )
            await self.notifier.notify_admins(
                f"Report {report.title} has reached the support threshold and needs review.",
                NotificationType.REPORT_ESCALATED,
                report_id,
            )

        return VoteResult(
            report_id=report_id,
            support_count=report.support_count,
            opposition_count=report.opposition_count,
            status=report.status,
            my_reaction=vote_type,
            escalated=escalated,
        )

    async def my_vote(self, report_id: str, voter_id: str) -> Optional[VoteType]:
        row = await self.database.fetch_one(
            "SELECT vote_type FROM votes WHERE report_id = ? AND voter_id = ?",
            (report_id, voter_id),
        )
        return VoteType(row["vote_type"]) if row else None

    async def votes_by(self, voter_id: str, report_ids: Iterable[str]) -> dict[str, VoteType]:
        report_ids = list(report_ids)
        if not report_ids:
            return {}
        placeholders = ", ".join("?" for _ in report_ids)
        rows = await self.database.fetch_all(
            f"SELECT report_id, vote_type FROM votes WHERE voter_id = ? AND report_id IN ({placeholders})",
            (voter_id, *report_ids),
        )
        return {row["report_id"]: VoteType(row["vote_type"]) for row in rows}

    async def tally(self, report_id: str) -> VoteTally:
        rows = await self.database.fetch_all(
            "SELECT vote_type, COUNT(*) AS total FROM votes WHERE report_id = ? GROUP BY vote_type",
            (report_id,),
        )
        counts = {row["vote_type"]: row["total"] for row in rows}
        return VoteTally(
            support=counts.get(VoteType.SUPPORT.value, 0),
            oppose=counts.get(VoteType.OPPOSE.value, 0),
        )


def can_vote(is_own_report: bool, has_voted: bool) -> bool:
    return not is_own_report and not has_voted
