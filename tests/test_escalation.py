import pytest

from models.enums import ReportStatus
from services import escalation
from services.errors import InvalidStateError


def test_every_status_has_a_rule():
    assert set(escalation.ALLOWED_TRANSITIONS) == set(ReportStatus)


def test_resolved_is_the_only_terminal_status():
    assert escalation.TERMINAL_STATUSES == {ReportStatus.RESOLVED}


@pytest.mark.parametrize(
    "support, oppose, expected",
    [
        (0, 0, None),
        (2, 0, None),
        (3, 0, ReportStatus.ESCALATED),
        (5, 1, ReportStatus.ESCALATED),
        (4, 2, None),
    ],
)
def test_pending_escalates_on_net_support(support, oppose, expected):
    assert escalation.evaluate(ReportStatus.PENDING, support, oppose, threshold=3) == expected


@pytest.mark.parametrize("status", [s for s in ReportStatus if s != ReportStatus.PENDING])
def test_votes_never_move_a_report_past_pending(status):
    assert escalation.evaluate(status, 100, 0, threshold=3) is None
    assert escalation.evaluate(status, 0, 100, threshold=3) is None


def test_threshold_must_be_positive():
    with pytest.raises(ValueError):
        escalation.evaluate(ReportStatus.PENDING, 1, 0, threshold=0)


@pytest.mark.parametrize(
    "current, target",
    [
        (ReportStatus.PENDING, ReportStatus.ESCALATED),
        (ReportStatus.ESCALATED, ReportStatus.ASSIGNED),
        (ReportStatus.ASSIGNED, ReportStatus.WORKING),
        (ReportStatus.ASSIGNED, ReportStatus.RESOLVED),
        (ReportStatus.WORKING, ReportStatus.PENDING_CONFIRMATION),
        (ReportStatus.WORKING, ReportStatus.RESOLVED),
        (ReportStatus.PENDING_CONFIRMATION, ReportStatus.RESOLVED),
    ],
)
def test_allowed_edges(current, target):
    escalation.ensure_transition(current, target)


@pytest.mark.parametrize(
    "current, target",
    [
        (ReportStatus.PENDING, ReportStatus.ASSIGNED),
        (ReportStatus.PENDING, ReportStatus.RESOLVED),
        (ReportStatus.ESCALATED, ReportStatus.PENDING),
        (ReportStatus.ESCALATED, ReportStatus.RESOLVED),
        (ReportStatus.ASSIGNED, ReportStatus.PENDING_CONFIRMATION),
        (ReportStatus.PENDING_CONFIRMATION, ReportStatus.WORKING),
        (ReportStatus.RESOLVED, ReportStatus.RESOLVED),
        (ReportStatus.RESOLVED, ReportStatus.PENDING),
    ],
)
def test_other_edges_are_rejected(current, target):
    with pytest.raises(InvalidStateError):
        escalation.ensure_transition(current, target)


def test_terminal_message_says_already_resolved():
    with pytest.raises(InvalidStateError, match="already resolved"):
        escalation.ensure_transition(ReportStatus.RESOLVED, ReportStatus.RESOLVED)
