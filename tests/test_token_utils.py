from datetime import datetime, timedelta, timezone

import pytest

from shared.token_utils import (
    build_session_token, compute_expiry, generate_session_id, is_expired, parse_session_token, sign_session,
    verify_session,
)


def test_sign_and_verify():
    session_id = generate_session_id()
    signature = sign_session(session_id, "1", "secret")
    assert len(signature) == 64
    assert verify_session(session_id, "1", signature, "secret")
    assert not verify_session(session_id, "2", signature, "secret")
    assert not verify_session(session_id, "1", signature, "other-secret")


def test_parse_session_token():
    signature = "a" * 64
    assert parse_session_token(build_session_token("abc", signature)) == ("abc", signature)
    for bad in ("", "abc", "abc.", ".sig", "abc.short"):
        with pytest.raises(ValueError):
            parse_session_token(bad)


def test_expiry():
    assert not is_expired(compute_expiry(60))
    assert is_expired(datetime.now(timezone.utc) - timedelta(seconds=1))
    # Naive timestamps are read as UTC
    assert is_expired(datetime.utcnow() - timedelta(minutes=5))
