import io

import jwt as pyjwt
import pytest
from fastapi.testclient import TestClient

import config
from models.enums import NotificationType, ReportType, UserRole, VoteType
from models.report import ReportCreate
from models.user import AuthContext
from services.assignment import AssignmentCoordinator
from services.database import Database
from services.maps import MapRegistry
from services.notifier import DatabaseNotificationSink, NotificationEmitter, NotificationInbox
from services.report_store import ReportStore
from services.resolution import ResolutionPipeline
from services.vote_ledger import VoteLedger

THRESHOLD = 3


class RecordingSink:
    name = "recording"

    def __init__(self):
        self.sent = []

    async def deliver(self, notification_id, notification):
        self.sent.append(notification)

    def for_user(self, user_id, kind: NotificationType = None):
        return [
            n for n in self.sent
            if n.user_id == user_id and (kind is None or n.notification_type == kind)
        ]


class FakeStorage:
    def __init__(self):
        self.stored = []

    async def store(self, file, folder):
        self.stored.append((folder, file.filename))
        return f"https://images.example.test/{folder}/{file.filename}"


def citizen(n: int = 1) -> AuthContext:
    return AuthContext(user_id=f"citizen-{n}", role=UserRole.CITIZEN)


def worker(name: str = "W") -> AuthContext:
    return AuthContext(user_id=f"worker-{name}", role=UserRole.WORKER)


def admin() -> AuthContext:
    return AuthContext(user_id="admin-1", role=UserRole.ADMIN)


def report_input(**overrides) -> ReportCreate:
    data = dict(
        title="Garbage pile on 5th cross",
        description="Bags dumped next to the bus stop",
        type=ReportType.ILLEGAL_DUMPING,
        latitude=12.97,
        longitude=77.59,
    )
    data.update(overrides)
    return ReportCreate(**data)


@pytest.fixture
async def database(tmp_path):
    db = Database(str(tmp_path / "civicwatch-test.db"))
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def notifier(database, sink):
    return NotificationEmitter([DatabaseNotificationSink(database), sink], admin_ids=[admin().user_id])


@pytest.fixture
def store(database):
    return ReportStore(database)


@pytest.fixture
def ledger(store, notifier):
    return VoteLedger(store, notifier, threshold=THRESHOLD)


@pytest.fixture
def maps(database):
    return MapRegistry(database, cache_ttl=60)


@pytest.fixture
def assignment(store, notifier, maps):
    return AssignmentCoordinator(store, notifier, maps)


@pytest.fixture
def resolution(store, notifier):
    return ResolutionPipeline(store, notifier)


@pytest.fixture
def inbox(database):
    return NotificationInbox(database)


@pytest.fixture
async def escalated_report(store, ledger):
    report = await store.create(report_input(), created_by=citizen(0).user_id)
    for n in range(1, THRESHOLD + 1):
        await ledger.cast_vote(report.id, citizen(n), VoteType.SUPPORT)
    return await store.get_by_id(report.id)


# -------------------- HTTP fixtures -------------------- #

def token_for(user_id: str, role: UserRole) -> str:
    return pyjwt.encode(
        {"sub": user_id, "role": role.value}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM
    )


def auth_headers(user: AuthContext) -> dict:
    return {"Authorization": f"Bearer {token_for(user.user_id, user.role)}"}


def photo_file(name: str = "proof.jpg"):
    return {"photo": (name, io.BytesIO(b"\xff\xd8\xff fake jpeg"), "image/jpeg")}


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def client(tmp_path, monkeypatch, fake_storage):
    from main import app
    from routes.dependencies import get_object_storage

    monkeypatch.setattr(config, "DATABASE_PATH", str(tmp_path / "civicwatch-api.db"))
    monkeypatch.setattr(config, "ESCALATION_THRESHOLD", THRESHOLD)
    monkeypatch.setattr(config, "ADMIN_USER_IDS", [admin().user_id])
    monkeypatch.delenv("FIREBASE_PROJECT_ID", raising=False)
    app.dependency_overrides[get_object_storage] = lambda: fake_storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
