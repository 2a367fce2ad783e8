import os
from datetime import datetime, timedelta, timezone

os.environ.setdefault("SHIFTGUARD_SKIP_DOTENV", "1")

import pytest

from observability.metrics import RegistryMetricsClient, reset_metrics_client, set_metrics_client
from shift_guard.phi.adapters import InMemoryAuditTrail
from shift_guard.phi.allowlist import DEFAULT_ALLOW_LIST
from shift_guard.phi.profile import profile_from_allow_list
from shift_guard.phi.service import EnforcementService
from shift_guard.store import InMemoryDocumentStore
from shift_guard.store.paths import baby_path
from shift_guard.triggers import TriggerRuntime

ENTITY_PATTERN = "artifacts/{appId}/users/{userId}/nicu_shifts/{shiftId}/babies/{babyId}"
BABY_PATH = baby_path("app1", "nurse1", "shift1", "baby1")
PARAMS = {"appId": "app1", "userId": "nurse1", "shiftId": "shift1", "babyId": "baby1"}


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 15, 7, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def profile():
    return profile_from_allow_list(DEFAULT_ALLOW_LIST)


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(clock):
    return InMemoryDocumentStore(clock=clock)


@pytest.fixture
def audit_trail():
    return InMemoryAuditTrail()


@pytest.fixture
def metrics():
    client = RegistryMetricsClient()
    set_metrics_client(client)
    yield client
    reset_metrics_client()


@pytest.fixture
def enforcement(store, audit_trail, profile):
    return EnforcementService(store, audit_trail, profile)


@pytest.fixture
def runtime(store, enforcement):
    runtime = TriggerRuntime(max_attempts=3, deadline_s=30.0, sleep=lambda _: None)
    runtime.bind(ENTITY_PATTERN, on_create=enforcement.on_create, on_update=enforcement.on_update)
    runtime.attach(store)
    return runtime
