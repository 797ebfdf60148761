"""Report status state machine.

Everything here is pure: no storage, no notifications. Callers persist a
transition through ``ReportStore.update_status``.

    pending --net support >= threshold--> escalated
    escalated --admin assignment--> assigned
    assigned --proof uploaded--> working
    working --worker marks resolved--> pending_confirmation
    assigned / working / pending_confirmation --admin confirms--> resolved

Opposition never moves an escalated report back to pending.
"""

from __future__ import annotations

from typing import Optional

from models.enums import ReportStatus
from services.errors import InvalidStateError

ALLOWED_TRANSITIONS: dict[ReportStatus, frozenset[ReportStatus]] = {
    ReportStatus.PENDING: frozenset({ReportStatus.ESCALATED}),
    ReportStatus.ESCALATED: frozenset({ReportStatus.ASSIGNED}),
    ReportStatus.ASSIGNED: frozenset({ReportStatus.WORKING, ReportStatus.RESOLVED}),
    # working -> working is a proof re-upload
    ReportStatus.WORKING: frozenset(
        {ReportStatus.WORKING, ReportStatus.PENDING_CONFIRMATION, ReportStatus.RESOLVED}
    ),
    ReportStatus.PENDING_CONFIRMATION: frozenset({ReportStatus.RESOLVED}),
    ReportStatus.RESOLVED: frozenset(),
}

_missing = set(ReportStatus) - set(ALLOWED_TRANSITIONS)
if _missing:
    raise RuntimeError(f"Statuses without a transition rule: {sorted(s.value for s in _missing)}")

# Statuses in which a worker is bound to the report
ACTIVE_ASSIGNMENT_STATUSES = frozenset(
    {ReportStatus.ASSIGNED, ReportStatus.WORKING, ReportStatus.PENDING_CONFIRMATION}
)

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)


def can_transition(current: ReportStatus, target: ReportStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: ReportStatus, target: ReportStatus) -> None:
    if not can_transition(current, target):
        if current in TERMINAL_STATUSES:
            raise InvalidStateError(f"Report is already {current.value}")
        raise InvalidStateError(
            f"Cannot move a report from {current.value} to {target.value}"
        )


def is_terminal(status: ReportStatus) -> bool:
    return status in TERMINAL_STATUSES


def evaluate(
    status: ReportStatus,
    support_count: int,
    opposition_count: int,
    threshold: int,
) -> Optional[ReportStatus]:
    """Return the status a vote tally moves the report to, or None for no change."""
    if threshold < 1:
        raise ValueError("Escalation threshold must be at least 1")
    if status == ReportStatus.PENDING and support_count - opposition_count >= threshold:
        return ReportStatus.ESCALATED
    return None
