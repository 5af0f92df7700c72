"""Support tickets and their message threads."""

import logging
import re
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.models import SupportTicket, TicketMessage, User, TicketStatus, Priority
from sanctuary.services.access import is_client, organization_for

logger = logging.getLogger(__name__)

_TICKET_NUMBER = re.compile(r"^TCK-(\d+)$")


class SupportManager:
    """
    Opens tickets, appends replies and moves tickets between buckets.
    """

    def __init__(self, db: Session):
        self.db = db

    def _next_ticket_id(self) -> str:
        numbers = [
            int(match.group(1))
            for match in (_TICKET_NUMBER.match(ticket_id) for ticket_id in self.db.scalars(select(SupportTicket.id)))
            if match
        ]
        return f"TCK-{max(numbers, default=1000) + 1}"

    def create_ticket(self, user: User, subject: str, description: str,
                      priority: str = Priority.MEDIUM.value) -> Tuple[bool, Optional[SupportTicket], str]:
        subject = str(subject or "").strip()
        description = str(description or "").strip()
        if not subject or not description:
            return False, None, "Subject and description are required"
        try:
            level = Priority(priority)
        except ValueError as e:
            return False, None, str(e)

        org = organization_for(self.db, user)
        now = datetime.utcnow()
        ticket = SupportTicket(
            id=self._next_ticket_id(),
            client_id=user.id,
            client_name=user.name,
            organization_name=org.name if org else "Unknown Org",
            subject=subject,
            status=TicketStatus.OPEN,
            priority=level,
            created_at=now,
            last_updated=now,
        )
        ticket.messages = [
            TicketMessage(position=0, sender_id=user.id, sender_name=user.name, text=description,
                          timestamp=now, is_admin=not is_client(user)),
        ]
        self.db.add(ticket)
        self.db.commit()
        self.db.refresh(ticket)
        logger.info(f"Ticket {ticket.id} opened by {user.id}: {subject}")
        return True, ticket, f"Ticket {ticket.id} created"

    def reply(self, user: User, ticket_id: str, text: str) -> Tuple[bool, Optional[SupportTicket], str]:
        """Append a message; replying to a Resolved ticket reopens it."""
        ticket = self.db.get(SupportTicket, ticket_id)
        if not ticket:
            return False, None, f"Ticket {ticket_id} not found"
        text = str(text or "").strip()
        if not text:
            return False, None, "Message cannot be empty"
        if ticket.status == TicketStatus.ARCHIVED:
            return False, None, "Archived tickets cannot receive replies"

        now = datetime.utcnow()
        ticket.messages.append(TicketMessage(
            position=len(ticket.messages),
            sender_id=user.id,
            sender_name=user.name,
            text=text,
            timestamp=now,
            is_admin=not is_client(user),
        ))
        if ticket.status == TicketStatus.RESOLVED:
            ticket.status = TicketStatus.OPEN
            logger.info(f"Ticket {ticket.id} reopened by reply")
        ticket.last_updated = now
        self.db.commit()
        self.db.refresh(ticket)
        return True, ticket, "Reply sent"

    def update_status(self, ticket_id: str, status: str) -> Tuple[bool, Optional[SupportTicket], str]:
        ticket = self.db.get(SupportTicket, ticket_id)
        if not ticket:
            return False, None, f"Ticket {ticket_id} not found"
        try:
            ticket.status = TicketStatus(status)
        except ValueError as e:
            return False, None, str(e)
        ticket.last_updated = datetime.utcnow()
        self.db.commit()
        self.db.refresh(ticket)
        logger.info(f"Ticket {ticket.id} is now {ticket.status.value}")
        return True, ticket, f"Ticket {ticket.id} is now {ticket.status.value}"
