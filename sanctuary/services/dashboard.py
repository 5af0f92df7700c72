"""
Dashboard aggregates: activity feed, invoice performance chart, KPIs and
priority actions, all computed over the actor's filtered view.
"""

import calendar
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.models import (
    User, Invoice, Task, ProposalStatus, InvoiceStatus, TaskStatus, TicketStatus, Priority,
)
from sanctuary.services.access import (
    is_client, filter_proposals, filter_invoices, filter_tickets, filter_projects,
)
from sanctuary.services.auth import default_notification_preferences

RECENT_WINDOW = timedelta(days=2)
CHART_PERIODS = ("6months", "ytd")


def _at_midnight(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.min) if value else None


def chart_months(period: str, today: date) -> List[date]:
    """First day of each month in the chart window, oldest first."""
    if period == "ytd":
        return [date(today.year, month, 1) for month in range(1, today.month + 1)]
    months = []
    for back in range(5, -1, -1):
        index = today.year * 12 + (today.month - 1) - back
        year, month = divmod(index, 12)
        months.append(date(year, month + 1, 1))
    return months


def invoice_performance(invoices: List[Invoice], period: str = "6months", today: Optional[date] = None) -> List[dict]:
    """
    Invoice amounts bucketed by month of issue (falling back to the due date)
    for the last six months or the year to date.
    """
    today = today or date.today()
    buckets = [
        {"month": start.strftime("%Y-%m"), "label": calendar.month_abbr[start.month], "value": 0.0}
        for start in chart_months(period, today)
    ]
    by_key = {bucket["month"]: bucket for bucket in buckets}
    for invoice in invoices:
        when = invoice.issue_date or invoice.due_date
        if not when:
            continue
        bucket = by_key.get(when.strftime("%Y-%m"))
        if bucket:
            bucket["value"] += float(invoice.amount or 0)
    return buckets


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def _visible_tasks(self, user: User) -> List[Task]:
        project_ids = [project.id for project in filter_projects(self.db, user)]
        if not project_ids:
            return []
        return self.db.scalars(
            select(Task).where(Task.project_id.in_(project_ids), Task.is_archived.is_(False)).order_by(Task.id)
        ).all()

    def activity_feed(self, user: User, now: Optional[datetime] = None) -> List[dict]:
        """Feed entries honoring the actor's notification preferences, newest first."""
        now = now or datetime.utcnow()
        prefs = {**default_notification_preferences(), **(user.notification_preferences or {})}
        feed = []

        def push(entry_id, kind, title, description, timestamp, link):
            feed.append({"id": entry_id, "type": kind, "title": title, "description": description,
                         "timestamp": timestamp, "link": link})

        if prefs.get("proposals"):
            for proposal in filter_proposals(self.db, user):
                created = _at_midnight(proposal.created_at)
                if created and created > now - RECENT_WINDOW:
                    push(f"np-{proposal.id}", "proposal", "New Proposal Created",
                         f"{proposal.client_name} - {', '.join(proposal.services or [])}", created, "proposals")
                if proposal.status == ProposalStatus.ACCEPTED:
                    push(f"ap-{proposal.id}", "proposal", "Proposal Accepted",
                         f"{proposal.client_name} accepted proposal", created, "proposals")

        if prefs.get("tasks"):
            for task in self._visible_tasks(user):
                if task.assignee == user.name or f"@{user.name}" in (task.description or ""):
                    push(f"nt-{task.id}", "task", "Task Assignment", f"{task.title} assigned to you", now, "operations")
                due = _at_midnight(task.due_date)
                if due and now < due < now + RECENT_WINDOW and task.status != TaskStatus.DONE:
                    push(f"dl-{task.id}", "task", "Approaching Deadline", f"{task.title} due soon", now, "operations")

        if prefs.get("invoices"):
            for invoice in filter_invoices(self.db, user):
                if invoice.status == InvoiceStatus.PAID:
                    push(f"ip-{invoice.id}", "invoice", "Invoice Paid",
                         f"#{invoice.id} - ${invoice.amount:,.0f}", now - timedelta(hours=1), "invoices")
                issued = _at_midnight(invoice.issue_date)
                if invoice.status == InvoiceStatus.PENDING and issued and issued > now - RECENT_WINDOW:
                    push(f"ni-{invoice.id}", "invoice", "New Invoice Issued",
                         f"#{invoice.id} to {invoice.client_name}", issued, "invoices")
                if invoice.status == InvoiceStatus.DRAFT and not is_client(user):
                    push(f"dr-{invoice.id}", "invoice", "Invoice Needs Review",
                         f"#{invoice.id} for {invoice.client_name} generated. Review before sending.",
                         now + timedelta(milliseconds=100), "invoices")

        if prefs.get("tickets"):
            for ticket in filter_tickets(self.db, user, "Active"):
                if ticket.status == TicketStatus.OPEN:
                    push(f"tk-{ticket.id}", "ticket", "New Support Ticket",
                         f"{ticket.subject} ({ticket.priority.value})", now, "support")

        # Stable sort keeps insertion order for equal timestamps
        return sorted(feed, key=lambda entry: entry["timestamp"], reverse=True)

    def kpis(self, user: User) -> dict:
        invoices = filter_invoices(self.db, user)
        tasks = self._visible_tasks(user)
        tickets = filter_tickets(self.db, user, "Active")
        return {
            "proposals": len(filter_proposals(self.db, user)),
            "pending_payouts": float(sum(inv.amount or 0 for inv in invoices if inv.status != InvoiceStatus.PAID)),
            "active_tasks": sum(1 for task in tasks if task.status != TaskStatus.DONE),
            "open_tickets": sum(1 for ticket in tickets if ticket.status == TicketStatus.OPEN),
        }

    def priority_actions(self, user: User) -> dict:
        tasks = [
            task for task in self._visible_tasks(user)
            if task.priority == Priority.HIGH and task.status != TaskStatus.DONE
        ]
        tickets = [ticket for ticket in filter_tickets(self.db, user, "Active") if ticket.status == TicketStatus.OPEN]
        return {"tasks": tasks[:3], "tickets": tickets[:2]}

    def chart(self, user: User, period: str = "6months", today: Optional[date] = None) -> List[dict]:
        return invoice_performance(filter_invoices(self.db, user), period, today)
