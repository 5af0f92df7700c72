"""
Session Token Utilities

HMAC-SHA256 based signing and verification for portal/API session tokens.
Uses stdlib only - no external crypto libraries.

Wire format: "<session_id>.<signature>" where signature covers the session id
and the user the session was opened for.
"""

from __future__ import annotations

import hmac
import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from typing import Tuple


def generate_session_id() -> str:
    """Generate unique session ID (UUID4 hex)"""
    return uuid.uuid4().hex


def sign_session(session_id: str, user_id: str, secret: str) -> str:
    """
    Sign a session with HMAC-SHA256.

    Args:
        session_id: Unique session identifier
        user_id: User the session was opened for (the original actor)
        secret: Server-side signing secret

    Returns:
        Hex-encoded HMAC-SHA256 signature (64 hex chars)
    """
    message = f"{session_id}|{user_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_session(session_id: str, user_id: str, signature: str, secret: str) -> bool:
    """Verify a session signature (constant-time comparison)."""
    expected = sign_session(session_id, user_id, secret)
    return hmac.compare_digest(signature, expected)


def build_session_token(session_id: str, signature: str) -> str:
    return f"{session_id}.{signature}"


def parse_session_token(token: str) -> Tuple[str, str]:
    """
    Split a session token into (session_id, signature).

    Raises:
        ValueError: If the token is not in "<id>.<signature>" form
    """
    raw = str(token or "").strip()
    session_id, sep, signature = raw.partition(".")
    if not sep or not session_id or not signature:
        raise ValueError("Malformed session token")
    if len(signature) != 64:
        raise ValueError("Malformed session token signature")
    return session_id, signature


def is_expired(expires_at: datetime) -> bool:
    """Check if a session has expired. Naive datetimes are treated as UTC."""
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc) > expires_at


def compute_expiry(ttl_seconds: int = 43200) -> datetime:
    """
    Compute session expiry timestamp.

    Args:
        ttl_seconds: Time to live in seconds (default: 12 hours)

    Returns:
        Expiry timestamp (UTC)
    """
    return datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
