from datetime import datetime, timezone

from observability.enforcement_metrics import EnforcementMetrics
from shift_guard.store import DocumentChange, InMemoryDocumentStore
from shift_guard.triggers import TriggerRuntime, compile_path_pattern

from tests.conftest import BABY_PATH, ENTITY_PATTERN, PARAMS

NOW = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def _change(before=None, after=None, path=BABY_PATH):
    return DocumentChange(path=path, before=before, after=after if after is not None else {"a": "b"}, commit_time=NOW)


def test_compile_path_pattern_extracts_params():
    match = compile_path_pattern(ENTITY_PATTERN).match(BABY_PATH)

    assert match.groupdict() == PARAMS


def test_pattern_does_not_match_other_collections():
    regex = compile_path_pattern(ENTITY_PATTERN)

    assert regex.match("artifacts/app1/users/nurse1/nicu_shifts/shift1") is None
    assert regex.match(BABY_PATH + "/notes/n1") is None


def test_deliver_routes_by_change_kind_and_fills_params():
    seen = []
    runtime = TriggerRuntime(sleep=lambda _: None)
    runtime.bind(ENTITY_PATTERN, on_create=lambda c: seen.append(("create", c.params)), on_update=lambda c: seen.append(("update", c.params)))

    runtime.deliver(_change())
    runtime.deliver(_change(before={"a": "a"}))
    runtime.deliver(DocumentChange(path=BABY_PATH, before={"a": "b"}, after=None, commit_time=NOW))

    assert seen == [("create", PARAMS), ("update", PARAMS)]


def test_unmatched_path_is_not_delivered():
    runtime = TriggerRuntime(sleep=lambda _: None)
    runtime.bind(ENTITY_PATTERN, on_create=lambda c: {"status": "approved"})

    assert runtime.deliver(_change(path="artifacts/app1/users/nurse1/nicu_shifts/shift1")) == []


def test_failed_attempts_are_retried_with_backoff():
    calls = []
    sleeps = []

    def flaky(change):
        calls.append(change)
        if len(calls) < 3:
            raise RuntimeError("transient")
        return {"status": "approved"}

    runtime = TriggerRuntime(max_attempts=3, retry_base_s=0.01, retry_cap_s=0.05, sleep=sleeps.append)
    runtime.bind(ENTITY_PATTERN, on_create=flaky, name="validate")

    [result] = runtime.deliver(_change())

    assert result.ok
    assert result.attempts == 3
    assert result.result == {"status": "approved"}
    assert len(sleeps) == 2
    assert all(0 <= delay <= 0.05 for delay in sleeps)


def test_exhausted_retries_are_reported_not_raised():
    def broken(change):
        raise RuntimeError("always")

    runtime = TriggerRuntime(max_attempts=2, sleep=lambda _: None)
    runtime.bind(ENTITY_PATTERN, on_create=broken)

    [result] = runtime.deliver(_change())

    assert result.status == "failed"
    assert result.attempts == 2
    assert result.error == "RuntimeError"
    assert result.result is None


def test_attempt_past_deadline_counts_as_timeout(metrics):
    runtime = TriggerRuntime(max_attempts=2, deadline_s=0.0, sleep=lambda _: None)
    runtime.bind(ENTITY_PATTERN, on_create=lambda c: {"status": "approved"})

    [result] = runtime.deliver(_change())

    assert result.status == "timeout"
    assert result.attempts == 2
    assert metrics.counter_total(EnforcementMetrics.INVOCATION_TIMEOUTS) == 2


def test_attach_delivers_committed_writes():
    seen = []
    store = InMemoryDocumentStore()
    runtime = TriggerRuntime(sleep=lambda _: None)
    runtime.bind(ENTITY_PATTERN, on_create=seen.append)
    runtime.attach(store)

    store.set(BABY_PATH, {"pna_Days": 1})
    store.set(BABY_PATH, {"pna_Days": 1})

    assert len(seen) == 1
    assert seen[0].params == PARAMS
