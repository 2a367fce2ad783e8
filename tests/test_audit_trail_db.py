from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from shift_guard.common.exceptions import AuditWriteError
from shift_guard.phi.adapters import DatabaseAuditTrail, InMemoryAuditTrail
from shift_guard.phi.ports import AuditEntry, AuditWriteStatus, EnforcementAction, Finding, Severity
from shift_guard.phi.service import EnforcementService
from shift_guard.store import SqlDocumentStore
from shift_guard.store.dependencies import create_all, sessionmaker_for_engine
from shift_guard.triggers import TriggerRuntime

from tests.conftest import BABY_PATH, ENTITY_PATTERN, TickingClock

T0 = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def _engine():
    return create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False}, poolclass=StaticPool)


@pytest.fixture
def session_factory():
    engine = _engine()
    create_all(engine)
    return sessionmaker_for_engine(engine)


def _entry(scope_id="app1", minutes=0, dedupe_key=None):
    return AuditEntry(
        scope_id=scope_id,
        owner_id="nurse1",
        shift_id="shift1",
        entity_id="baby1",
        entity_kind="baby",
        action=EnforcementAction.REJECTED,
        severity=Severity.HIGH,
        timestamp=T0 + timedelta(minutes=minutes),
        findings=(Finding(field="notes", detector="name_like", count=1, sample="John ***"),),
        document_path=BABY_PATH,
        dedupe_key=dedupe_key,
    )


@pytest.mark.parametrize("trail_kind", ["db", "memory"])
def test_dedupe_key_suppresses_second_append(session_factory, trail_kind):
    trail = DatabaseAuditTrail(session_factory) if trail_kind == "db" else InMemoryAuditTrail()

    assert trail.append(_entry(dedupe_key="k" * 64)) is AuditWriteStatus.APPENDED
    assert trail.append(_entry(minutes=1, dedupe_key="k" * 64)) is AuditWriteStatus.DUPLICATE
    assert trail.append(_entry(minutes=2)) is AuditWriteStatus.APPENDED
    assert trail.append(_entry(minutes=3)) is AuditWriteStatus.APPENDED
    assert len(trail.list_entries()) == 3


def test_entries_round_trip_newest_first(session_factory):
    trail = DatabaseAuditTrail(session_factory)
    trail.append(_entry(minutes=0))
    trail.append(_entry(scope_id="app2", minutes=5))

    entries = trail.list_entries()

    assert [entry.scope_id for entry in entries] == ["app2", "app1"]
    assert entries[1].findings == _entry().findings
    assert entries[1].action is EnforcementAction.REJECTED
    assert entries[1].severity is Severity.HIGH
    assert entries[1].document_path == BABY_PATH


def test_list_entries_filters(session_factory):
    trail = DatabaseAuditTrail(session_factory)
    trail.append(_entry(scope_id="app1"))
    trail.append(_entry(scope_id="app2", minutes=1))

    assert [entry.scope_id for entry in trail.list_entries(scope_id="app1")] == ["app1"]
    assert trail.list_entries(owner_id="someone-else") == []
    assert len(trail.list_entries(limit=1)) == 1


def test_missing_table_raises_audit_write_error():
    trail = DatabaseAuditTrail(sessionmaker_for_engine(_engine()))

    with pytest.raises(AuditWriteError):
        trail.append(_entry())


def test_to_record_uses_audit_schema():
    record = _entry().to_record()

    assert record == {
        "scopeId": "app1",
        "ownerId": "nurse1",
        "shiftId": "shift1",
        "entityId": "baby1",
        "entityKind": "baby",
        "timestampServer": "2024-01-15T08:00:00+00:00",
        "findings": [{"field": "notes", "detector": "name_like", "count": 1, "sample": "John ***"}],
        "action": "rejected",
        "severity": "high",
    }


def test_audit_row_outlives_deleted_document(session_factory, profile):
    store = SqlDocumentStore(session_factory, clock=TickingClock())
    trail = DatabaseAuditTrail(session_factory)
    service = EnforcementService(store, trail, profile)
    runtime = TriggerRuntime(sleep=lambda _: None)
    runtime.bind(ENTITY_PATTERN, on_create=service.on_create, on_update=service.on_update)
    runtime.attach(store)

    store.set(BABY_PATH, {"notes": "Mom cell 555-123-4567"})

    assert store.get(BABY_PATH) is None
    [entry] = trail.list_entries(scope_id="app1")
    assert entry.entity_id == "baby1"
    assert entry.findings[0].detector == "phone_like"
