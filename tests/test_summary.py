from datetime import datetime, timezone

import pytest

from observability.enforcement_metrics import EnforcementMetrics
from shift_guard.common.exceptions import CallableError
from shift_guard.store.paths import babies_collection, shift_path
from shift_guard.summary import Caller, ShiftSummaryFormatter, ShiftSummaryService, SummaryRequest
from shift_guard.summary.formatter import or_na, parse_timestamp

GENERATED_AT = datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc)
SHIFT = {"shiftDate": "2024-01-15", "shiftStartTime": "07:00", "assignmentType": "Primary"}
BABY = {
    "internalID_Nickname": "Bed 4 twin A",
    "gestationalAge_Weeks": 32,
    "gestationalAge_Days": 4,
    "correctedGestationalAge_Weeks": 34,
    "correctedGestationalAge_Days": 1,
    "pna_Days": 12,
    "bedRoomNumber": "4",
    "birthWeight": 1650,
    "reportSheet": {
        "maternalHistory": "GBS neg",
        "currentProblems": "RDS",
        "respiratoryMode": "CPAP",
        "respiratoryFlow": 6,
        "respiratoryFiO2": 30,
        "feedsRoute": "NG",
        "feedType": "EBM",
        "feedCalories": "24kcal",
        "feedVolume": 28,
        "medications": {"caffeine": True, "vitaminD": False, "otherMedications": "iron"},
        "labsOrdered": "CBC",
        "treatmentPlan": "wean CPAP",
    },
    "touchTimeLogs": [
        {"timestamp": "2024-01-15T11:00:00Z", "scheduledTime": "11:00", "completed": True,
         "temp": 36.9, "hr": 150, "rr": 50, "spo2": 96},
        {"timestamp": "2024-01-15T08:00:00Z", "scheduledTime": "08:00", "completed": True,
         "temp": 36.8, "hr": 148, "rr": 45, "spo2": 97, "feedVolume": 28, "feedRoute": "NG",
         "comments": "tolerated well"},
        {"timestamp": "2024-01-15T14:00:00Z", "scheduledTime": "14:00", "completed": False},
    ],
    "eventLogs": [
        {"timestamp": "2024-01-15T09:05:00Z", "eventType": "Brady", "eventDetails": "self-resolved"},
        {"timestamp": "2024-01-15T08:45:00Z", "eventType": "Desat", "eventDetails": "to 85%"},
    ],
}


@pytest.fixture
def formatter():
    return ShiftSummaryFormatter()


@pytest.fixture
def summaries(store, formatter):
    return ShiftSummaryService(store, formatter, clock=lambda: GENERATED_AT)


def _seed(store, babies=(BABY,)):
    store.set(shift_path("app1", "nurse1", "shift1"), SHIFT)
    for index, baby in enumerate(babies):
        store.add(babies_collection("app1", "nurse1", "shift1"), baby, doc_id=f"baby{index}")


def test_or_na():
    assert or_na(None) == "N/A"
    assert or_na("") == "N/A"
    assert or_na(0) == "0"
    assert or_na(1650, "g") == "1650g"


def test_parse_timestamp_variants():
    expected = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-15T08:00:00Z") == expected
    assert parse_timestamp("2024-01-15T08:00:00") == expected
    assert parse_timestamp(expected.timestamp() * 1000) == expected
    assert parse_timestamp("not a time") is None
    assert parse_timestamp(None) is None


def test_empty_shift_report_layout(formatter):
    text = formatter.render(SHIFT, [], GENERATED_AT)

    assert text == (
        "=== NICU SHIFT REPORT SUMMARY ===\n"
        "\n"
        "Shift Date: 2024-01-15\n"
        "Shift Start Time: 07:00\n"
        "Assignment Type: Primary\n"
        "Total Babies: 0\n"
        "\n"
        "=================================\n"
        "\n"
        "\n"
        "=== END OF SHIFT REPORT ===\n"
        "Generated: 2024-01-15 08:30:00 UTC\n"
        "Generated by NICU Shift Guard\n"
    )


def test_baby_section(formatter):
    lines = formatter.render(SHIFT, [BABY], GENERATED_AT).splitlines()

    for expected in (
        "--- Baby: Bed 4 twin A ---",
        "  GA: 32+4 weeks",
        "  CGA: 34+1 weeks",
        "  PNA: Day 12",
        "  Bed: 4",
        "  Birth Wt: 1650g | Last Wt: N/A",
        "  -- Clinical Summary --",
        "  Maternal Hx: GBS neg",
        "  Respiratory: CPAP @ 6L/min, FiO2 30%",
        "  Feeds: NG | EBM 24kcal 28ml",
        "  Medications: caffeine, iron",
        "  Labs: CBC",
        "  Tx Plan: wean CPAP",
        "  -- Touch Time Logs (3) --",
        "    08:00: T:36.8 HR:148 RR:45 SpO2:97 | Feed: 28ml NG",
        "      Note: tolerated well",
        "    11:00: T:36.9 HR:150 RR:50 SpO2:96",
        "  -- Event Log (2) --",
        "    08:45 AM - Desat: to 85%",
        "    09:05 AM - Brady: self-resolved",
    ):
        assert expected in lines

    assert lines.index("    08:00: T:36.8 HR:148 RR:45 SpO2:97 | Feed: 28ml NG") < lines.index(
        "    11:00: T:36.9 HR:150 RR:50 SpO2:96"
    )
    assert not any(line.strip().startswith("14:00") for line in lines)


def test_sparse_baby_renders_na(formatter):
    text = formatter.render(SHIFT, [{"internalID_Nickname": "Pod 2"}], GENERATED_AT)

    assert "  GA: N/A+N/A weeks" in text
    assert "  Bed: N/A" in text
    assert "Clinical Summary" not in text
    assert "Touch Time Logs" not in text
    assert "Event Log" not in text


def test_generate_caches_summary_on_shift(store, summaries):
    _seed(store, babies=(BABY, {"internalID_Nickname": "Pod 2"}))

    summary = summaries.generate(SummaryRequest("app1", "shift1"), Caller("nurse1"))

    assert summary.entity_count == 2
    assert summary.to_payload() == {
        "summaryText": summary.summary_text,
        "generatedAtIso": "2024-01-15T08:30:00+00:00",
        "entityCount": 2,
    }
    cached = store.get(shift_path("app1", "nurse1", "shift1"))
    assert cached["cachedSummary"] == summary.summary_text
    assert cached["summaryGeneratedAt"] == summary.generated_at_iso
    assert cached["shiftDate"] == "2024-01-15"


def test_unauthenticated_checked_first(summaries):
    with pytest.raises(CallableError) as excinfo:
        summaries.generate(SummaryRequest(None, None), None)

    assert excinfo.value.kind == CallableError.UNAUTHENTICATED


@pytest.mark.parametrize("request_args", [(None, "shift1"), ("app1", ""), ("app1", "   ")])
def test_missing_arguments(summaries, request_args):
    with pytest.raises(CallableError) as excinfo:
        summaries.generate(SummaryRequest(*request_args), Caller("nurse1"))

    assert excinfo.value.kind == CallableError.INVALID_ARGUMENT


def test_other_owners_shift_is_not_found(store, summaries):
    _seed(store)

    with pytest.raises(CallableError) as excinfo:
        summaries.generate(SummaryRequest("app1", "shift1"), Caller("someone-else"))

    assert excinfo.value.kind == CallableError.NOT_FOUND


def test_unexpected_failure_is_internal_and_generic(store, metrics):
    class ExplodingFormatter(ShiftSummaryFormatter):
        def render(self, shift, babies, generated_at):
            raise KeyError("secret detail")

    _seed(store)
    service = ShiftSummaryService(store, ExplodingFormatter())

    with pytest.raises(CallableError) as excinfo:
        service.generate(SummaryRequest("app1", "shift1"), Caller("nurse1"))

    assert excinfo.value.kind == CallableError.INTERNAL
    assert "secret" not in excinfo.value.message
    assert metrics.counter_value(EnforcementMetrics.SUMMARY_REQUESTS, {"result": "internal"}) == 1


@pytest.mark.parametrize("request_args", [("app1", "shift1/babies/baby0"), ("app1/users/x", "shift1")])
def test_ids_must_be_single_path_segments(store, summaries, request_args):
    _seed(store)

    with pytest.raises(CallableError) as excinfo:
        summaries.generate(SummaryRequest(*request_args), Caller("nurse1"))

    assert excinfo.value.kind == CallableError.INVALID_ARGUMENT
    baby = store.get(babies_collection("app1", "nurse1", "shift1") + "/baby0")
    assert "cachedSummary" not in baby


def test_three_babies_get_three_sections(store, summaries):
    babies = ({"internalID_Nickname": f"Pod {number}"} for number in (1, 2, 3))
    _seed(store, babies=tuple(babies))

    summary = summaries.generate(SummaryRequest("app1", "shift1"), Caller("nurse1"))

    assert summary.entity_count == 3
    assert summary.summary_text.count("--- Baby: ") == 3
    for number in (1, 2, 3):
        assert f"--- Baby: Pod {number} ---" in summary.summary_text
    assert "Total Babies: 3" in summary.summary_text
    cached = store.get(shift_path("app1", "nurse1", "shift1"))
    assert cached["summaryGeneratedAt"] == "2024-01-15T08:30:00+00:00"
