import asyncio
import math

import pytest

from conftest import citizen, report_input
from models.enums import ReportStatus, ReportType
from models.report import ReportFilter
from services.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError


async def test_create_starts_pending_with_zero_counters(store):
    report = await store.create(
        {"title": "Dumping", "type": "illegal_dumping", "latitude": 12.97, "longitude": 77.59},
        created_by="citizen-1",
    )

    assert report.status == ReportStatus.PENDING
    assert (report.support_count, report.opposition_count) == (0, 0)
    assert report.type == ReportType.ILLEGAL_DUMPING
    assert report.latitude == pytest.approx(12.97)
    assert report.longitude == pytest.approx(77.59)
    assert report.assigned_worker_id is None


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "illegal_dumping", "latitude": 1.0, "longitude": 1.0},
        {"title": "   ", "type": "illegal_dumping", "latitude": 1.0, "longitude": 1.0},
        {"title": "x", "latitude": 1.0, "longitude": 1.0},
        {"title": "x", "type": "not_a_type", "latitude": 1.0, "longitude": 1.0},
        {"title": "x", "type": "illegal_dumping", "longitude": 1.0},
        {"title": "x", "type": "illegal_dumping", "latitude": math.nan, "longitude": 1.0},
        {"title": "x", "type": "illegal_dumping", "latitude": 1.0, "longitude": math.inf},
        {"title": "x", "type": "illegal_dumping", "latitude": 91.0, "longitude": 1.0},
    ],
)
async def test_create_rejects_invalid_payloads(store, payload):
    with pytest.raises(ValidationError):
        await store.create(payload, created_by="citizen-1")


async def test_create_requires_owner(store):
    with pytest.raises(ValidationError):
        await store.create(report_input(), created_by="")


async def test_get_missing_report(store):
    with pytest.raises(NotFoundError):
        await store.get_by_id("nope")


async def test_list_by_filter(store):
    mine = await store.create(report_input(title="mine"), created_by="citizen-1")
    other = await store.create(
        report_input(title="other", type=ReportType.DEAD_ANIMAL), created_by="citizen-2"
    )

    assert [r.id for r in await store.list_by_filter(ReportFilter(created_by="citizen-1"))] == [mine.id]
    assert [r.id for r in await store.list_by_filter(ReportFilter(exclude_created_by="citizen-1"))] == [other.id]
    assert [r.id for r in await store.list_by_filter(ReportFilter(type=ReportType.DEAD_ANIMAL))] == [other.id]
    assert await store.list_by_filter(ReportFilter(statuses=[ReportStatus.RESOLVED])) == []
    assert len(await store.list_by_filter()) == 2

    await store.update_counters(mine.id, 2, 0)
    await store.update_counters(other.id, 1, 1)
    popular = await store.list_by_filter(ReportFilter(min_net_support=2))
    assert [r.id for r in popular] == [mine.id]
    assert popular[0].net_support == 2


async def test_update_status_is_compare_and_swap(store):
    report = await store.create(report_input(), created_by="citizen-1")

    moved = await store.update_status(report.id, ReportStatus.PENDING, ReportStatus.ESCALATED)
    assert moved.status == ReportStatus.ESCALATED

    with pytest.raises(ConflictError):
        await store.update_status(report.id, ReportStatus.PENDING, ReportStatus.ESCALATED)
    assert (await store.get_by_id(report.id)).status == ReportStatus.ESCALATED


async def test_update_status_refuses_edges_outside_the_state_machine(store):
    report = await store.create(report_input(), created_by="citizen-1")

    with pytest.raises(InvalidStateError):
        await store.update_status(report.id, ReportStatus.PENDING, ReportStatus.RESOLVED)
    with pytest.raises(InvalidStateError):
        await store.attach_resolution_proof(
            report.id, "worker-W", "https://img/proof.jpg", None, ReportStatus.PENDING
        )

    stored = await store.get_by_id(report.id)
    assert stored.status == ReportStatus.PENDING
    assert stored.resolved_image_url is None


async def test_racing_transitions_have_one_winner(store):
    report = await store.create(report_input(), created_by="citizen-1")

    results = await asyncio.gather(
        *[
            store.update_status(report.id, ReportStatus.PENDING, ReportStatus.ESCALATED)
            for _ in range(5)
        ],
        return_exceptions=True,
    )

    assert sum(1 for r in results if not isinstance(r, Exception)) == 1
    assert sum(1 for r in results if isinstance(r, ConflictError)) == 4


async def test_update_status_rejects_unknown_columns(store):
    report = await store.create(report_input(), created_by="citizen-1")
    with pytest.raises(ValueError):
        await store.update_status(
            report.id, ReportStatus.PENDING, ReportStatus.ESCALATED, support_count=99
        )


async def test_update_counters_is_atomic_under_concurrency(store):
    report = await store.create(report_input(), created_by="citizen-1")

    await asyncio.gather(*[store.update_counters(report.id, support_delta=1) for _ in range(20)])

    assert (await store.get_by_id(report.id)).support_count == 20


async def test_counters_never_go_negative(store):
    report = await store.create(report_input(), created_by="citizen-1")
    with pytest.raises(ValidationError):
        await store.update_counters(report.id, opposition_delta=-1)
    assert (await store.get_by_id(report.id)).opposition_count == 0


async def test_update_counters_missing_report(store):
    with pytest.raises(NotFoundError):
        await store.update_counters("nope", support_delta=1)


async def test_failed_transaction_rolls_back(store, database):
    report = await store.create(report_input(), created_by=citizen(1).user_id)

    with pytest.raises(RuntimeError):
        async with database.transaction():
            await store.update_counters(report.id, support_delta=1)
            raise RuntimeError("boom")

    assert (await store.get_by_id(report.id)).support_count == 0


async def test_reads_wait_for_open_transactions(store, database):
    report = await store.create(report_input(), created_by=citizen(1).user_id)
    entered = asyncio.Event()
    release = asyncio.Event()

    async def doomed_update():
        async with database.transaction():
            await store.update_counters(report.id, support_delta=1)
            entered.set()
            await release.wait()
            raise RuntimeError("boom")

    writer = asyncio.create_task(doomed_update())
    await entered.wait()
    reader = asyncio.create_task(store.get_by_id(report.id))
    await asyncio.sleep(0.05)
    assert not reader.done()

    release.set()
    with pytest.raises(RuntimeError):
        await writer
    assert (await reader).support_count == 0
