"""
Authentication and session lifecycle.

Passwords are bcrypt hashes. A session row carries the effective user and,
while a super admin is logged in as somebody else, the original user. The
token handed to clients is "<session_id>.<hmac>" (see shared/token_utils.py).
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.config import BCRYPT_ROUNDS, SESSION_SECRET, SESSION_TTL_SECONDS
from sanctuary.models import AuthSession, User, UserRole, AccountStatus, AuditEventType
from sanctuary.services.audit import record_event
from shared.token_utils import (
    generate_session_id,
    sign_session,
    verify_session,
    build_session_token,
    parse_session_token,
    is_expired,
    compute_expiry,
)

logger = logging.getLogger(__name__)

NOTIFICATION_KEYS = ("proposals", "invoices", "tasks", "tickets", "classes")


def default_notification_preferences() -> dict:
    return {key: True for key in NOTIFICATION_KEYS}


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


class SessionError(Exception):
    """Session could not be resolved; `status_code` is the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message)
        self.status_code = status_code


class SessionManager:
    """
    Opens, resolves, switches and closes login sessions.
    """

    def __init__(self, db: Session, secret: str = SESSION_SECRET, ttl_seconds: int = SESSION_TTL_SECONDS):
        self.db = db
        self.secret = secret
        self.ttl_seconds = ttl_seconds

    # ========================================================================
    # LOGIN / LOGOUT
    # ========================================================================

    def login(self, email: str, password: str) -> Tuple[bool, Optional[str], Optional[AuthSession], str]:
        """
        Authenticate by email and password and open a new session.

        Returns:
            (success, token or None, session or None, message)
        """
        normalized = str(email or "").strip().lower()
        user = self.db.scalars(select(User).where(User.email == normalized)).first()
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {normalized!r}")
            return False, None, None, "Invalid email or password"
        if user.status == AccountStatus.SUSPENDED:
            logger.warning(f"Suspended user {user.id} attempted to log in")
            return False, None, None, "Account suspended"

        session_id = generate_session_id()
        session = AuthSession(
            session_id=session_id,
            user_id=user.id,
            signed_for=user.id,
            expires_at=compute_expiry(self.ttl_seconds).replace(tzinfo=None),
        )
        user.last_login_at = datetime.utcnow()
        self.db.add(session)
        record_event(self.db, AuditEventType.LOGIN, user.id, "user", user.id, f"{user.name} logged in")
        self.db.commit()
        self.db.refresh(session)

        token = build_session_token(session_id, sign_session(session_id, user.id, self.secret))
        logger.info(f"User {user.id} logged in (session {session_id[:8]})")
        return True, token, session, "Logged in"

    def logout(self, session: AuthSession) -> Tuple[bool, str]:
        session.is_active = False
        record_event(self.db, AuditEventType.LOGOUT, session.original_user_id or session.user_id,
                     "session", session.session_id, "Session closed")
        self.db.commit()
        logger.info(f"Session {session.session_id[:8]} closed")
        return True, "Logged out"

    # ========================================================================
    # RESOLUTION
    # ========================================================================

    def resolve(self, token: Optional[str]) -> Tuple[AuthSession, User, Optional[User]]:
        """
        Resolve a session token to (session, effective user, original user).

        A session whose effective user was deleted falls back to the original
        user when impersonating, otherwise it is invalidated.

        Raises:
            SessionError: missing, malformed, forged, expired or orphaned session
        """
        if not token:
            raise SessionError("Not authenticated")
        try:
            session_id, signature = parse_session_token(token)
        except ValueError as e:
            raise SessionError(str(e))

        session = self.db.scalars(select(AuthSession).where(AuthSession.session_id == session_id)).first()
        if not session or not session.is_active:
            raise SessionError("Session not found")
        if not verify_session(session_id, session.signed_for, signature, self.secret):
            logger.warning(f"Session {session_id[:8]} presented with a bad signature")
            raise SessionError("Invalid session signature")
        if is_expired(session.expires_at):
            session.is_active = False
            self.db.commit()
            raise SessionError("Session expired")

        user = self.db.get(User, session.user_id)
        original = self.db.get(User, session.original_user_id) if session.original_user_id else None
        if session.original_user_id and original is None:
            session.is_active = False
            self.db.commit()
            raise SessionError("Original session user no longer exists")
        if user is None:
            if original is not None:
                logger.warning(f"Impersonated user {session.user_id} no longer exists, reverting session")
                session.user_id = original.id
                session.original_user_id = None
                user, original = original, None
            else:
                session.is_active = False
                self.db.commit()
                raise SessionError("Session user no longer exists")

        session.last_activity_at = datetime.utcnow()
        self.db.commit()
        return session, user, original

    # ========================================================================
    # LOGIN-AS (IMPERSONATION)
    # ========================================================================

    def login_as(self, session: AuthSession, target_user_id: str) -> Tuple[bool, Optional[User], str]:
        """
        Switch the effective user of a super admin's session.

        The first switch remembers the original actor; chained switches keep
        that first original.
        """
        original_id = session.original_user_id or session.user_id
        original = self.db.get(User, original_id)
        if not original or original.role != UserRole.SUPER_ADMIN:
            return False, None, "Only super admins can log in as another user"

        target = self.db.get(User, target_user_id)
        if not target:
            return False, None, f"User {target_user_id} not found"
        if target.id == original.id:
            return False, None, "Cannot log in as yourself"
        if target.status == AccountStatus.SUSPENDED:
            return False, None, "Cannot log in as a suspended user"

        session.original_user_id = original.id
        session.user_id = target.id
        record_event(self.db, AuditEventType.LOGIN_AS, original.id, "user", target.id,
                     f"{original.name} logged in as {target.name}")
        self.db.commit()
        logger.info(f"Super admin {original.id} is now acting as {target.id}")
        return True, target, f"Now logged in as {target.name}"

    def revert(self, session: AuthSession) -> Tuple[bool, Optional[User], str]:
        if not session.original_user_id:
            return False, None, "Not logged in as another user"

        original = self.db.get(User, session.original_user_id)
        if not original:
            return False, None, "Original user no longer exists"

        previous = session.user_id
        session.user_id = original.id
        session.original_user_id = None
        record_event(self.db, AuditEventType.REVERT_LOGIN, original.id, "user", previous,
                     f"{original.name} returned to their own account")
        self.db.commit()
        logger.info(f"Super admin {original.id} reverted from {previous}")
        return True, original, f"Returned to {original.name}"
