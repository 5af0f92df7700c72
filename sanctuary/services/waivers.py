"""Liability waiver signing."""

import logging
from datetime import date
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from sanctuary.models import User, WaiverRecord, AuditEventType
from sanctuary.services.access import is_client, organization_for
from sanctuary.services.audit import record_event

logger = logging.getLogger(__name__)


class WaiverManager:
    def __init__(self, db: Session):
        self.db = db

    def sign(self, user: User, agreed: bool, signature: str, initials: str,
             today: Optional[date] = None) -> Tuple[bool, Optional[WaiverRecord], str]:
        """
        Record a client's signed waiver and mark the user as signed.
        """
        today = today or date.today()
        if not is_client(user):
            return False, None, "Only clients sign the waiver"
        signature = str(signature or "").strip()
        initials = str(initials or "").strip()
        if not agreed:
            return False, None, "You must agree to the waiver terms"
        if not signature or not initials:
            return False, None, "Signature and initials are required"

        org = organization_for(self.db, user)
        record = WaiverRecord(
            user_id=user.id,
            user_name=user.name,
            organization_id=org.id if org else None,
            organization_name=org.name if org else "Individual",
            signed_date=today,
            signature=signature,
            initials=initials.upper(),
        )
        user.waiver_signed = True
        user.waiver_signed_date = today
        self.db.add(record)
        record_event(self.db, AuditEventType.WAIVER_SIGNED, user.id, "user", user.id,
                     f"{user.name} signed the waiver")
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"Waiver signed by {user.id} ({record.organization_name})")
        return True, record, "Waiver signed"
