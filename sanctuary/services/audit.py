"""Audit trail helpers."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.models import AuditLog, AuditEventType

logger = logging.getLogger(__name__)


def record_event(
    db: Session,
    event_type: AuditEventType,
    actor_id: Optional[str],
    resource_type: str,
    resource_id: Optional[str],
    message: str,
) -> AuditLog:
    """Add an audit row to the session; the caller commits."""
    entry = AuditLog(
        event_type=event_type,
        actor_id=actor_id,
        resource_type=resource_type,
        resource_id=resource_id,
        message=message,
    )
    db.add(entry)
    return entry


def recent_events(db: Session, limit: int = 100, resource_type: Optional[str] = None) -> List[AuditLog]:
    query = select(AuditLog)
    if resource_type:
        query = query.where(AuditLog.resource_type == resource_type)
    return db.scalars(query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit)).all()
