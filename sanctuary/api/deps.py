"""
Shared FastAPI dependencies: database session, session resolution and
permission gates.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from sanctuary.database import get_db
from sanctuary.models import AuthSession, User, AccountStatus
from sanctuary.services.access import has_permission, is_client
from sanctuary.services.auth import SessionManager, SessionError

logger = logging.getLogger(__name__)


@dataclass
class Actor:
    """The effective user of a request plus the session it arrived on."""
    user: User
    session: AuthSession
    original_user: Optional[User] = None

    @property
    def is_impersonating(self) -> bool:
        return self.original_user is not None


def session_actor(
    x_session_token: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> Actor:
    """Resolve the session without account-state checks (session routes only)."""
    try:
        session, user, original = SessionManager(db).resolve(x_session_token)
    except SessionError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return Actor(user=user, session=session, original_user=original)


def active_actor(actor: Actor = Depends(session_actor)) -> Actor:
    """Session actor whose account is not suspended."""
    if actor.user.status == AccountStatus.SUSPENDED:
        raise HTTPException(status_code=403, detail="Account suspended")
    return actor


def current_actor(actor: Actor = Depends(active_actor)) -> Actor:
    """Active actor; clients must also have signed the waiver."""
    if is_client(actor.user) and not actor.user.waiver_signed:
        raise HTTPException(status_code=403, detail="Waiver signature required")
    return actor


def require_permission(actor: Actor, permission: str) -> None:
    if not has_permission(actor.user, permission):
        logger.warning(f"User {actor.user.id} denied: missing {permission}")
        raise HTTPException(status_code=403, detail=f"Permission '{permission}' required")


def require_staff(actor: Actor, permission: Optional[str] = None) -> None:
    """Non-client actor, optionally holding `permission`."""
    if is_client(actor.user):
        raise HTTPException(status_code=403, detail="Staff access required")
    if permission:
        require_permission(actor, permission)


def raise_for_refusal(message: str, not_found: bool = False) -> None:
    """Map a manager refusal onto an HTTP error."""
    if not_found or message.endswith("not found"):
        raise HTTPException(status_code=404, detail=message)
    raise HTTPException(status_code=400, detail=message)
