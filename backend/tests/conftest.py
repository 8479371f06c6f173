"""Shared fixtures: an in-memory store, a ticking clock and seeded users."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from casedesk.core.config import Settings
from casedesk.domain.records import User
from casedesk.repositories.profiles import ProfileRepository
from casedesk.repositories.users import UserRepository
from casedesk.services.case_desk import CaseDesk
from casedesk.storage.backend import MemoryBackend
from casedesk.submission.push_client import PushClient, PushResult
from casedesk.workflow.lifecycle import LifecycleController
from casedesk.workflow.locking import LockManager

STAFF_PASSWORD = "abc123@"


class TickingClock:
    """Returns a strictly increasing time, one minute per call."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(minutes=1)
        return self.now


class RecordingPushClient(PushClient):
    def __init__(self, result: PushResult | None = None) -> None:
        self.result = result or PushResult(success=True, message="stored")
        self.pushed: list[str] = []

    def push(self, profile):
        self.pushed.append(profile.id)
        return self.result


@pytest.fixture
def config() -> Settings:
    return Settings(
        APP_ENV="test",
        STORAGE_BACKEND="memory",
        EXTERNAL_PUSH_URL="",
        APPROVAL_POLICY="permissive",
        PUSH_FLAG_POLICY="first",
        _env_file=None,
    )


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(datetime(2026, 3, 11, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def users(backend, config) -> UserRepository:
    return UserRepository(backend, config)


@pytest.fixture
def profiles(backend, config) -> ProfileRepository:
    return ProfileRepository(backend, config)


@pytest.fixture
def locks(profiles) -> LockManager:
    return LockManager(profiles)


@pytest.fixture
def lifecycle(profiles, config, clock) -> LifecycleController:
    return LifecycleController(profiles, config, clock)


@pytest.fixture
def admin(users) -> User:
    return users.seed_admin()


@pytest.fixture
def alice(users) -> User:
    return users.create_user("Alice Nguyen", "alice", "0901111111", "North Ward", STAFF_PASSWORD)


@pytest.fixture
def bob(users) -> User:
    return users.create_user("Bob Tran", "bob", "0902222222", "South Ward", STAFF_PASSWORD)


@pytest.fixture
def push_client() -> RecordingPushClient:
    return RecordingPushClient()


@pytest.fixture
def desk(backend, config, clock, push_client, admin, alice, bob) -> CaseDesk:
    return CaseDesk(backend, config, push_client=push_client, clock=clock)


@pytest.fixture
def login(desk):
    """Log a user in and return their DeskSession."""

    def _login(username: str, password: str = STAFF_PASSWORD):
        outcome = desk.login(username, password)
        assert outcome.ok, outcome.message
        return outcome.data["session"]

    return _login
