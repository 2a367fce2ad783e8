import json

from shift_guard.phi.enforcement import OutcomeStatus, evaluate_create, evaluate_update
from shift_guard.phi.ports import EnforcementAction

CLEAN = {"internalID_Nickname": "Bed 4 twin A", "reportSheet": {"currentProblems": "RDS, on CPAP"}}
TAINTED = {
    "internalID_Nickname": "Bed 4 twin A",
    "reportSheet": {"maternalHistory": "Mother: Jane Smith, cell 555-123-4567"},
}


def test_clean_create_is_approved(profile):
    outcome = evaluate_create(CLEAN, profile)

    assert outcome.status is OutcomeStatus.APPROVED
    assert not outcome.violated
    assert outcome.to_marker() == {"status": "approved"}


def test_tainted_create_is_blocked(profile):
    outcome = evaluate_create(TAINTED, profile)

    assert outcome.status is OutcomeStatus.BLOCKED
    assert outcome.action is EnforcementAction.REJECTED
    assert outcome.restore_to is None
    assert outcome.detectors == ["name_like", "phone_like"]
    assert outcome.to_marker() == {
        "status": "blocked",
        "reason": "PHI detected",
        "findings": ["reportSheet.maternalHistory"],
    }


def test_marker_carries_no_matched_text(profile):
    marker = json.dumps(evaluate_create(TAINTED, profile).to_marker())

    assert "Jane" not in marker
    assert "555" not in marker


def test_clean_update_is_approved(profile):
    assert evaluate_update(CLEAN, TAINTED, profile).status is OutcomeStatus.APPROVED


def test_tainted_update_rolls_back_to_prior(profile):
    outcome = evaluate_update(TAINTED, CLEAN, profile)

    assert outcome.status is OutcomeStatus.ROLLED_BACK
    assert outcome.action is EnforcementAction.ROLLED_BACK
    assert outcome.restore_to == CLEAN
    assert outcome.restore_to is not CLEAN
    assert outcome.to_marker()["status"] == "rolled_back"


def test_tainted_update_over_tainted_prior_is_rejected(profile):
    outcome = evaluate_update(TAINTED, {"notes": "John Doe"}, profile)

    assert outcome.status is OutcomeStatus.BLOCKED
    assert outcome.action is EnforcementAction.REJECTED
    assert outcome.restore_to is None


def test_tainted_update_without_prior_is_rejected(profile):
    outcome = evaluate_update(TAINTED, None, profile)

    assert outcome.status is OutcomeStatus.BLOCKED
    assert outcome.action is EnforcementAction.REJECTED


def test_field_paths_are_unique_and_in_scan_order(profile):
    record = {
        "notes": "Jane Smith 555-123-4567",
        "eventLogs": [{"eventDetails": "parent email jdoe@gmail.com"}],
    }

    assert evaluate_create(record, profile).field_paths == ["notes", "eventLogs[0].eventDetails"]
