"""
Proposal lifecycle and the marketing strategy attached to a proposal.

Draft -> Sent to Client -> Accepted | Rejected. Accepting a proposal raises
an Upfront draft invoice for its one-off investment lines.

The strategy lifecycle lives in `Proposal.marketing_data`:
Pending Team Approval -> Approved -> Live, with Changes Requested looping
back to Approved once staff save their edits.
"""

import copy
import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from sanctuary.models import (
    Proposal, Organization, User, ProposalStatus, StrategyStatus, InvoiceType, PaymentTerms,
    AuditEventType,
)
from sanctuary.services.access import has_permission, is_client
from sanctuary.services.audit import record_event
from sanctuary.services.content import (
    generate_proposal_content, investment_totals, generate_marketing_strategy, intake_questions,
)
from sanctuary.services.invoices import InvoiceManager, calculate_due_date

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = (ProposalStatus.DRAFT, ProposalStatus.SENT_TO_CLIENT)
CONTENT_SECTIONS = ("hero", "engine", "phases", "investment", "strategy", "ad_spend")


def empty_marketing_data() -> dict:
    return {
        "status": StrategyStatus.DRAFTING.value,
        "content": None,
        "answers": {},
        "assets": [],
        "feedback_history": [],
        "rebranding_required": False,
    }


def _valid_investment(lines) -> bool:
    if lines is None:
        return True
    if not isinstance(lines, list):
        return False
    for line in lines:
        if not isinstance(line, dict):
            return False
        for key in ("cost_initial", "cost_monthly"):
            try:
                float(line.get(key) or 0)
            except (TypeError, ValueError):
                return False
    return True


class ProposalManager:
    """
    Drafts, edits and moves proposals through their lifecycle.
    """

    def __init__(self, db: Session):
        self.db = db

    def _transition(self, proposal: Proposal, status: ProposalStatus, actor_id: str):
        previous = proposal.status
        proposal.status = status
        record_event(self.db, AuditEventType.PROPOSAL_STATUS_CHANGED, actor_id, "proposal", proposal.id,
                     f"Proposal {proposal.id}: {previous.value} -> {status.value}")

    def _apply_content(self, proposal: Proposal, content: dict) -> Optional[str]:
        """Merge edited sections into the proposal; returns a refusal message on bad input."""
        merged = copy.deepcopy(proposal.content or {})
        for section in CONTENT_SECTIONS:
            if section in content and content[section] is not None:
                merged[section] = content[section]
        if not _valid_investment(merged.get("investment")):
            return "Investment lines need numeric costs"
        totals = investment_totals(merged)
        proposal.content = merged
        proposal.estimated_upfront = totals["upfront"]
        proposal.estimated_retainer = totals["retainer"]
        return None

    # ========================================================================
    # AUTHORING
    # ========================================================================

    def create_draft(
        self,
        actor_id: str,
        organization_id: str,
        services: List[str],
        user_ids: Optional[List[str]] = None,
        notes: str = "",
        today: Optional[date] = None,
    ) -> Tuple[bool, Optional[Proposal], str]:
        """
        Generate a draft proposal for an organization.

        The client e-mail lists the selected organization users; estimates are
        the summed initial and monthly costs of the generated investment lines.
        """
        org = self.db.get(Organization, organization_id)
        if not org:
            return False, None, f"Organization {organization_id} not found"
        services = [str(service).strip() for service in services or [] if str(service).strip()]
        if not services:
            return False, None, "Select at least one service"

        selected = [user for user in org.users if user.id in set(user_ids or [])]
        content = generate_proposal_content(org.name, org.industry, services, notes)
        totals = investment_totals(content)

        proposal = Proposal(
            organization_id=org.id,
            client_name=org.name,
            client_email=", ".join(user.email for user in selected),
            services=services,
            custom_details=str(notes or ""),
            estimated_upfront=totals["upfront"],
            estimated_retainer=totals["retainer"],
            content=content,
            status=ProposalStatus.DRAFT,
            created_at=today or date.today(),
        )
        self.db.add(proposal)
        self.db.commit()
        self.db.refresh(proposal)
        logger.info(f"Draft proposal {proposal.id} generated for {org.name}")
        return True, proposal, f"Draft proposal created for {org.name}"

    def update_content(self, proposal_id: str, content: dict,
                       custom_details: Optional[str] = None) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        if proposal.status not in EDITABLE_STATUSES:
            return False, None, f"Proposal is {proposal.status.value} and locked for editing"

        error = self._apply_content(proposal, content or {})
        if error:
            return False, None, error
        if custom_details is not None:
            proposal.custom_details = custom_details
        self.db.commit()
        self.db.refresh(proposal)
        logger.info(f"Proposal {proposal.id} content updated")
        return True, proposal, "Proposal updated"

    def save_draft(self, actor_id: str, proposal_id: str,
                   content: Optional[dict] = None) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        if proposal.status not in EDITABLE_STATUSES + (ProposalStatus.REVIEW_PENDING,):
            return False, None, f"Proposal is {proposal.status.value} and cannot return to Draft"

        if content:
            error = self._apply_content(proposal, content)
            if error:
                return False, None, error
        if proposal.status != ProposalStatus.DRAFT:
            self._transition(proposal, ProposalStatus.DRAFT, actor_id)
        self.db.commit()
        self.db.refresh(proposal)
        return True, proposal, "Draft saved"

    def submit_for_review(self, actor_id: str, proposal_id: str) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        if proposal.status != ProposalStatus.DRAFT:
            return False, None, "Only drafts can be submitted for review"
        self._transition(proposal, ProposalStatus.REVIEW_PENDING, actor_id)
        self.db.commit()
        self.db.refresh(proposal)
        return True, proposal, "Proposal submitted for review"

    def send_to_client(self, actor_id: str, proposal_id: str) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        if proposal.status not in (ProposalStatus.DRAFT, ProposalStatus.REVIEW_PENDING):
            return False, None, f"Proposal is {proposal.status.value} and cannot be sent"

        self._transition(proposal, ProposalStatus.SENT_TO_CLIENT, actor_id)
        self.db.commit()
        self.db.refresh(proposal)
        logger.info(f"Proposal {proposal.id} sent to {proposal.client_name}")
        return True, proposal, "Proposal sent to client portal"

    # ========================================================================
    # CLIENT DECISION
    # ========================================================================

    def can_decide(self, user: User, proposal: Proposal) -> bool:
        """Clients of the proposal's organization, or staff with edit_proposals."""
        if is_client(user):
            return bool(user.organization_id) and user.organization_id == proposal.organization_id
        return has_permission(user, "edit_proposals")

    def accept(self, user: User, proposal_id: str,
               today: Optional[date] = None) -> Tuple[bool, Optional[Proposal], str]:
        """
        Accept a proposal that was sent to the client and raise an Upfront
        draft invoice (Net 30) for its one-off investment lines.
        """
        today = today or date.today()
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        if proposal.status != ProposalStatus.SENT_TO_CLIENT:
            return False, None, f"Proposal is {proposal.status.value}, not Sent to Client"

        self._transition(proposal, ProposalStatus.ACCEPTED, user.id)

        lines = [
            {"description": line.get("item") or "Service", "cost": float(line.get("cost_initial") or 0)}
            for line in (proposal.content or {}).get("investment") or []
            if float(line.get("cost_initial") or 0) > 0
        ]
        message = f"Proposal {proposal.id} accepted"
        if lines:
            ok, invoice, invoice_message = InvoiceManager(self.db).create_draft(
                user.id,
                proposal.client_name,
                lines,
                invoice_type=InvoiceType.UPFRONT.value,
                terms=PaymentTerms.NET_30.value,
                proposal_id=proposal.id,
                due_date=calculate_due_date(today, PaymentTerms.NET_30.value),
                today=today,
                commit=False,
            )
            if not ok:
                    return False, None, invoice_message
            invoice.issue_date = today
            message = f"{message}; draft invoice {invoice.id} raised"

        self.db.commit()
        self.db.refresh(proposal)
        logger.info(message)
        return True, proposal, message

    def reject(self, user: User, proposal_id: str) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        if proposal.status != ProposalStatus.SENT_TO_CLIENT:
            return False, None, f"Proposal is {proposal.status.value}, not Sent to Client"

        self._transition(proposal, ProposalStatus.REJECTED, user.id)
        self.db.commit()
        self.db.refresh(proposal)
        logger.info(f"Proposal {proposal.id} rejected by {user.id}")
        return True, proposal, "Proposal rejected"

    def delete(self, proposal_id: str) -> Tuple[bool, str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, f"Proposal {proposal_id} not found"
        self.db.delete(proposal)
        self.db.commit()
        logger.info(f"Proposal {proposal_id} deleted")
        return True, "Proposal deleted"

    # ========================================================================
    # MARKETING STRATEGY
    # ========================================================================

    def _set_marketing(self, proposal: Proposal, **updates) -> dict:
        data = copy.deepcopy(proposal.marketing_data or empty_marketing_data())
        data.update(updates)
        proposal.marketing_data = data
        return data

    def strategy_questions(self, proposal_id: str) -> Tuple[bool, Optional[List[dict]], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        return True, intake_questions(proposal.services), "ok"

    def generate_strategy(self, proposal_id: str, answers: dict, assets: Optional[List[dict]] = None,
                          rebranding_required: bool = False) -> Tuple[bool, Optional[Proposal], str]:
        """Build the strategy from intake answers; locked until the proposal is paid."""
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        if not InvoiceManager(self.db).is_proposal_paid(proposal):
            return False, None, "Strategy generation is locked until the proposal invoice is paid"

        answers = {key: str(value) for key, value in (answers or {}).items() if value is not None}
        self._set_marketing(
            proposal,
            status=StrategyStatus.PENDING_APPROVAL.value,
            content=generate_marketing_strategy(proposal.client_name, answers),
            answers=answers,
            assets=list(assets or []),
            rebranding_required=bool(rebranding_required),
        )
        self.db.commit()
        self.db.refresh(proposal)
        logger.info(f"Marketing strategy generated for proposal {proposal.id}")
        return True, proposal, "Strategy sent for team approval"

    def _strategy_status(self, proposal: Proposal) -> Optional[StrategyStatus]:
        data = proposal.marketing_data or {}
        if not data.get("content"):
            return None
        return StrategyStatus(data.get("status", StrategyStatus.DRAFTING.value))

    def approve_strategy(self, proposal_id: str) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        status = self._strategy_status(proposal)
        if status not in (StrategyStatus.PENDING_APPROVAL, StrategyStatus.MODIFICATION_REQUESTED):
            return False, None, "No strategy awaiting team approval"
        self._set_marketing(proposal, status=StrategyStatus.APPROVED.value)
        self.db.commit()
        self.db.refresh(proposal)
        return True, proposal, "Strategy approved"

    def accept_strategy(self, proposal_id: str) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        if self._strategy_status(proposal) != StrategyStatus.APPROVED:
            return False, None, "Only an approved strategy can go live"
        self._set_marketing(proposal, status=StrategyStatus.LIVE.value)
        self.db.commit()
        self.db.refresh(proposal)
        logger.info(f"Marketing strategy for proposal {proposal.id} is live")
        return True, proposal, "Strategy live"

    def request_strategy_change(self, author: User, proposal_id: str,
                                note: str) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        note = str(note or "").strip()
        if not note:
            return False, None, "A note describing the change is required"
        if self._strategy_status(proposal) not in (StrategyStatus.APPROVED, StrategyStatus.PENDING_APPROVAL):
            return False, None, "Strategy is not open for change requests"

        history = list((proposal.marketing_data or {}).get("feedback_history") or [])
        history.append({"date": datetime.utcnow().date().isoformat(), "note": note, "author": author.name})
        self._set_marketing(proposal, status=StrategyStatus.MODIFICATION_REQUESTED.value, feedback_history=history)
        self.db.commit()
        self.db.refresh(proposal)
        return True, proposal, "Change request recorded"

    def save_strategy_edits(self, proposal_id: str, content: dict) -> Tuple[bool, Optional[Proposal], str]:
        proposal = self.db.get(Proposal, proposal_id)
        if not proposal:
            return False, None, f"Proposal {proposal_id} not found"
        status = self._strategy_status(proposal)
        if status is None:
            return False, None, "No strategy to edit"
        if status == StrategyStatus.LIVE:
            return False, None, "Live strategies cannot be edited"

        updates = {"content": dict(content or {})}
        if status == StrategyStatus.MODIFICATION_REQUESTED:
            updates["status"] = StrategyStatus.APPROVED.value
        self._set_marketing(proposal, **updates)
        self.db.commit()
        self.db.refresh(proposal)
        return True, proposal, "Strategy saved"
