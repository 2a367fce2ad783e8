import pytest

from shift_guard.api.auth import TokenVerifier, bearer_token
from shift_guard.common.exceptions import AuthenticationError

NOW = 1_705_305_600.0


def _verifier(secret="s3cret", now=NOW):
    return TokenVerifier(secret, ttl_s=3600, now=lambda: now)


def test_issue_and_verify_round_trip():
    verifier = _verifier()

    assert verifier.verify(verifier.issue("nurse1")).uid == "nurse1"


def test_uid_may_contain_dots():
    verifier = _verifier()

    assert verifier.verify(verifier.issue("nurse.one@unit")).uid == "nurse.one@unit"


def test_tampered_token_is_rejected():
    token = _verifier().issue("nurse1")
    uid, expires, signature = token.rsplit(".", 2)

    with pytest.raises(AuthenticationError):
        _verifier().verify(f"admin.{expires}.{signature}")


def test_token_from_other_secret_is_rejected():
    with pytest.raises(AuthenticationError):
        _verifier(secret="other").verify(_verifier().issue("nurse1"))


def test_expired_token_is_rejected():
    token = _verifier().issue("nurse1")

    with pytest.raises(AuthenticationError):
        _verifier(now=NOW + 3601).verify(token)


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b"])
def test_malformed_tokens(token):
    with pytest.raises(AuthenticationError):
        _verifier().verify(token)


def test_unconfigured_verifier_rejects_everything():
    verifier = TokenVerifier(None)

    assert not verifier.configured
    with pytest.raises(AuthenticationError):
        verifier.verify("nurse1.9999999999.abc")
    with pytest.raises(AuthenticationError):
        verifier.issue("nurse1")


def test_bearer_token_parsing():
    assert bearer_token("Bearer abc.def") == "abc.def"
    assert bearer_token("bearer  abc ") == "abc"
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer ") is None
    assert bearer_token(None) is None


def test_signing_without_secret_raises_authentication_error():
    verifier = TokenVerifier(None)

    with pytest.raises(AuthenticationError):
        verifier._sign("nurse1.123")
