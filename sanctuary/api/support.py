from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_permission, require_staff, raise_for_refusal
from sanctuary.api.serializers import ticket_out
from sanctuary.models import SupportTicket
from sanctuary.services.access import filter_tickets, TICKET_BUCKETS
from sanctuary.services.support import SupportManager

router = APIRouter(prefix="/tickets", tags=["support"])


class TicketCreate(BaseModel):
    subject: str
    description: str
    priority: str = "Medium"


class TicketReply(BaseModel):
    text: str


class TicketStatusUpdate(BaseModel):
    status: str


def _visible_ticket(db: Session, actor: Actor, ticket_id: str) -> SupportTicket:
    ticket = db.get(SupportTicket, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    visible = {t.id for bucket in TICKET_BUCKETS for t in filter_tickets(db, actor.user, bucket)}
    if ticket.id not in visible:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.get("")
def list_tickets(bucket: str = "Active", actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_support")
    if bucket not in TICKET_BUCKETS:
        raise HTTPException(status_code=400, detail=f"Unknown bucket '{bucket}'")
    return [ticket_out(ticket, include_messages=False) for ticket in filter_tickets(db, actor.user, bucket)]


@router.get("/{ticket_id}")
def get_ticket(ticket_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_support")
    return ticket_out(_visible_ticket(db, actor, ticket_id))


@router.post("")
def create_ticket(req: TicketCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_support")
    success, ticket, message = SupportManager(db).create_ticket(actor.user, req.subject, req.description, req.priority)
    if not success:
        raise_for_refusal(message)
    return ticket_out(ticket)


@router.post("/{ticket_id}/reply")
def reply(ticket_id: str, req: TicketReply, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_support")
    _visible_ticket(db, actor, ticket_id)
    success, ticket, message = SupportManager(db).reply(actor.user, ticket_id, req.text)
    if not success:
        raise_for_refusal(message)
    return ticket_out(ticket)


@router.put("/{ticket_id}/status")
def update_status(ticket_id: str, req: TicketStatusUpdate,
                  actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_support")
    success, ticket, message = SupportManager(db).update_status(ticket_id, req.status)
    if not success:
        raise_for_refusal(message)
    return ticket_out(ticket)
