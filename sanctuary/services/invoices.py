"""
Invoice lifecycle: Draft -> Pending -> Paid, with an Overdue sweep.
"""

import logging
import random
from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.models import Invoice, InvoiceStatus, InvoiceType, PaymentTerms, AuditEventType
from sanctuary.services.audit import record_event
from sanctuary.services.content import generate_invoice_email

logger = logging.getLogger(__name__)

TERM_DAYS = {
    PaymentTerms.NET_14.value: 14,
    PaymentTerms.NET_30.value: 30,
}


def calculate_due_date(issue_date: Optional[date], terms: str) -> Optional[date]:
    """Due date for the payment terms; Immediate (or unknown) terms are due on issue."""
    if not issue_date:
        return None
    return issue_date + timedelta(days=TERM_DAYS.get(str(terms), 0))


def normalize_items(items: List[dict]) -> List[dict]:
    normalized = []
    for item in items or []:
        description = str(item.get("description") or "").strip()
        if not description:
            continue
        normalized.append({"description": description, "cost": float(item.get("cost") or 0)})
    return normalized


def items_total(items: List[dict]) -> float:
    return float(sum(float(item.get("cost") or 0) for item in items or []))


class InvoiceManager:
    """
    Creates, edits, issues and settles invoices.
    """

    def __init__(self, db: Session):
        self.db = db

    def _new_invoice_id(self, today: date) -> str:
        while True:
            candidate = f"INV-{today.year}-{random.randint(1000, 9999)}"
            if not self.db.get(Invoice, candidate):
                return candidate

    def _set_status(self, invoice: Invoice, status: InvoiceStatus, actor_id: Optional[str]):
        previous = invoice.status
        invoice.status = status
        record_event(self.db, AuditEventType.INVOICE_STATUS_CHANGED, actor_id, "invoice", invoice.id,
                     f"Invoice {invoice.id}: {previous.value} -> {status.value}")

    def create_draft(
        self,
        actor_id: Optional[str],
        client_name: str,
        items: List[dict],
        invoice_type: str = InvoiceType.ONE_TIME.value,
        terms: str = PaymentTerms.NET_14.value,
        proposal_id: Optional[str] = None,
        due_date: Optional[date] = None,
        today: Optional[date] = None,
        commit: bool = True,
    ) -> Tuple[bool, Optional[Invoice], str]:
        """
        Create a Draft invoice. Amount is always the sum of the item costs.

        Returns:
            (success, invoice or None, message)
        """
        today = today or date.today()
        client_name = str(client_name or "").strip()
        if not client_name:
            return False, None, "Client name is required"
        try:
            inv_type = InvoiceType(invoice_type)
            terms_value = PaymentTerms(terms).value
        except ValueError as e:
            return False, None, str(e)
        lines = normalize_items(items)
        if not lines:
            return False, None, "At least one line item is required"

        invoice = Invoice(
            id=self._new_invoice_id(today),
            proposal_id=proposal_id,
            client_name=client_name,
            type=inv_type,
            status=InvoiceStatus.DRAFT,
            terms=terms_value,
            items=lines,
            amount=items_total(lines),
            issue_date=None,
            due_date=due_date,
        )
        self.db.add(invoice)
        record_event(self.db, AuditEventType.INVOICE_CREATED, actor_id, "invoice", invoice.id,
                     f"Draft invoice {invoice.id} for {client_name} ({invoice.amount:.2f})")
        if commit:
            self.db.commit()
            self.db.refresh(invoice)
        logger.info(f"Draft invoice {invoice.id} created for {client_name}")
        return True, invoice, f"Invoice {invoice.id} created"

    def update_draft(self, invoice_id: str, changes: dict) -> Tuple[bool, Optional[Invoice], str]:
        invoice = self.db.get(Invoice, invoice_id)
        if not invoice:
            return False, None, f"Invoice {invoice_id} not found"
        if invoice.status != InvoiceStatus.DRAFT:
            return False, None, "Only draft invoices can be edited"

        if changes.get("client_name") is not None:
            name = str(changes["client_name"]).strip()
            if not name:
                return False, None, "Client name is required"
            invoice.client_name = name
        if changes.get("type") is not None:
            try:
                invoice.type = InvoiceType(changes["type"])
            except ValueError as e:
                return False, None, str(e)
        if changes.get("terms") is not None:
            try:
                invoice.terms = PaymentTerms(changes["terms"]).value
            except ValueError as e:
                return False, None, str(e)
        if changes.get("due_date") is not None:
            invoice.due_date = changes["due_date"]
        if changes.get("items") is not None:
            lines = normalize_items(changes["items"])
            if not lines:
                return False, None, "At least one line item is required"
            invoice.items = lines
        invoice.amount = items_total(invoice.items)

        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"Draft invoice {invoice.id} updated")
        return True, invoice, f"Invoice {invoice.id} updated"

    def approve_and_send(self, actor_id: str, invoice_id: str,
                         today: Optional[date] = None) -> Tuple[bool, Optional[Invoice], str]:
        """Issue a draft: status Pending, issued today, due date from the terms."""
        today = today or date.today()
        invoice = self.db.get(Invoice, invoice_id)
        if not invoice:
            return False, None, f"Invoice {invoice_id} not found"
        if invoice.status != InvoiceStatus.DRAFT:
            return False, None, f"Invoice {invoice_id} is {invoice.status.value}, not Draft"

        invoice.issue_date = today
        invoice.due_date = calculate_due_date(today, invoice.terms)
        self._set_status(invoice, InvoiceStatus.PENDING, actor_id)
        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"Invoice {invoice.id} sent to {invoice.client_name}, due {invoice.due_date}")
        return True, invoice, f"Invoice {invoice.id} sent"

    def pay(self, actor_id: str, invoice_id: str) -> Tuple[bool, Optional[Invoice], str]:
        invoice = self.db.get(Invoice, invoice_id)
        if not invoice:
            return False, None, f"Invoice {invoice_id} not found"
        if invoice.status not in (InvoiceStatus.PENDING, InvoiceStatus.OVERDUE):
            return False, None, f"Invoice {invoice_id} is {invoice.status.value} and cannot be paid"

        self._set_status(invoice, InvoiceStatus.PAID, actor_id)
        self.db.commit()
        self.db.refresh(invoice)
        logger.info(f"Invoice {invoice.id} marked paid")
        return True, invoice, f"Invoice {invoice.id} paid"

    def delete(self, actor_id: str, invoice_id: str) -> Tuple[bool, str]:
        invoice = self.db.get(Invoice, invoice_id)
        if not invoice:
            return False, f"Invoice {invoice_id} not found"
        self.db.delete(invoice)
        record_event(self.db, AuditEventType.INVOICE_DELETED, actor_id, "invoice", invoice_id,
                     f"Deleted invoice {invoice_id}")
        self.db.commit()
        logger.info(f"Invoice {invoice_id} deleted")
        return True, f"Invoice {invoice_id} deleted"

    def email_draft(self, invoice_id: str) -> Tuple[bool, Optional[dict], str]:
        invoice = self.db.get(Invoice, invoice_id)
        if not invoice:
            return False, None, f"Invoice {invoice_id} not found"
        email = generate_invoice_email(invoice.client_name, invoice.id, invoice.amount, invoice.due_date)
        return True, email, "Email drafted"

    def mark_overdue(self, today: Optional[date] = None) -> List[Invoice]:
        """Move Pending invoices past their due date to Overdue."""
        today = today or date.today()
        stale = self.db.scalars(
            select(Invoice).where(Invoice.status == InvoiceStatus.PENDING, Invoice.due_date < today)
        ).all()
        for invoice in stale:
            self._set_status(invoice, InvoiceStatus.OVERDUE, None)
        if stale:
            self.db.commit()
            logger.info(f"Marked {len(stale)} invoices overdue")
        return list(stale)

    def is_proposal_paid(self, proposal) -> bool:
        """
        A proposal counts as paid when a Paid invoice references it, or a Paid
        invoice for the same client is within 100 of the upfront estimate.
        """
        paid = self.db.scalars(select(Invoice).where(Invoice.status == InvoiceStatus.PAID)).all()
        if any(invoice.proposal_id == proposal.id for invoice in paid):
            return True
        return any(
            invoice.client_name == proposal.client_name
            and abs(float(invoice.amount or 0) - float(proposal.estimated_upfront or 0)) < 100
            for invoice in paid
        )
