from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_permission, require_staff, raise_for_refusal
from sanctuary.api.serializers import invoice_out
from sanctuary.models import Invoice, InvoiceStatus
from sanctuary.services.access import filter_invoices, invoice_owner_name, is_client
from sanctuary.services.invoices import InvoiceManager

router = APIRouter(prefix="/invoices", tags=["invoices"])


class InvoiceItem(BaseModel):
    description: str
    cost: float


class InvoiceCreate(BaseModel):
    client_name: str
    items: List[InvoiceItem]
    type: str = "One-Time"
    terms: str = "Net 14"
    proposal_id: Optional[str] = None
    due_date: Optional[date] = None


class InvoiceUpdate(BaseModel):
    client_name: Optional[str] = None
    items: Optional[List[InvoiceItem]] = None
    type: Optional[str] = None
    terms: Optional[str] = None
    due_date: Optional[date] = None


def _visible_invoice(db: Session, actor: Actor, invoice_id: str) -> Invoice:
    invoice = db.get(Invoice, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    if is_client(actor.user) and (
        invoice.status == InvoiceStatus.DRAFT or invoice.client_name != invoice_owner_name(db, actor.user)
    ):
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


def _result(success, invoice, message):
    if not success:
        raise_for_refusal(message)
    return {**invoice_out(invoice), "message": message}


@router.get("")
def list_invoices(status: Optional[str] = None, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_finance")
    invoices = filter_invoices(db, actor.user)
    if status:
        invoices = [invoice for invoice in invoices if invoice.status.value == status]
    return [invoice_out(invoice) for invoice in invoices]


@router.get("/{invoice_id}")
def get_invoice(invoice_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_finance")
    return invoice_out(_visible_invoice(db, actor, invoice_id))


@router.post("")
def create_invoice(req: InvoiceCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_finance")
    return _result(*InvoiceManager(db).create_draft(
        actor.user.id, req.client_name, [item.model_dump() for item in req.items],
        invoice_type=req.type, terms=req.terms, proposal_id=req.proposal_id, due_date=req.due_date,
    ))


@router.put("/{invoice_id}")
def update_invoice(invoice_id: str, req: InvoiceUpdate,
                   actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_finance")
    changes = req.model_dump(exclude_none=True)
    return _result(*InvoiceManager(db).update_draft(invoice_id, changes))


@router.post("/{invoice_id}/send")
def approve_and_send(invoice_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_finance")
    return _result(*InvoiceManager(db).approve_and_send(actor.user.id, invoice_id))


@router.post("/{invoice_id}/pay")
def pay_invoice(invoice_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    if is_client(actor.user):
        require_permission(actor, "view_finance")
        _visible_invoice(db, actor, invoice_id)
    else:
        require_permission(actor, "edit_finance")
    return _result(*InvoiceManager(db).pay(actor.user.id, invoice_id))


@router.delete("/{invoice_id}")
def delete_invoice(invoice_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_finance")
    success, message = InvoiceManager(db).delete(actor.user.id, invoice_id)
    if not success:
        raise_for_refusal(message)
    return {"status": "deleted", "message": message}


@router.get("/{invoice_id}/email")
def email_draft(invoice_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "view_finance")
    success, email, message = InvoiceManager(db).email_draft(invoice_id)
    if not success:
        raise_for_refusal(message)
    return email


@router.post("/mark-overdue")
def mark_overdue(actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_finance")
    marked = InvoiceManager(db).mark_overdue()
    return {"marked": [invoice.id for invoice in marked]}
