from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_permission, require_staff, raise_for_refusal
from sanctuary.api.serializers import proposal_out
from sanctuary.models import Proposal
from sanctuary.services.access import filter_proposals, is_client
from sanctuary.services.invoices import InvoiceManager
from sanctuary.services.proposals import ProposalManager

router = APIRouter(prefix="/proposals", tags=["proposals"])


class ProposalCreate(BaseModel):
    organization_id: str
    services: List[str]
    user_ids: List[str] = []
    notes: str = ""


class ProposalContentUpdate(BaseModel):
    content: Dict[str, Any] = {}
    custom_details: Optional[str] = None


class StrategyRequest(BaseModel):
    answers: Dict[str, Any] = {}
    assets: List[Dict[str, Any]] = []
    rebranding_required: bool = False


class StrategyChangeRequest(BaseModel):
    note: str


class StrategyEdit(BaseModel):
    content: Dict[str, Any]


def _visible_proposal(db: Session, actor: Actor, proposal_id: str) -> Proposal:
    proposal = db.get(Proposal, proposal_id)
    if not proposal:
        raise HTTPException(status_code=404, detail="Proposal not found")
    if is_client(actor.user) and proposal.organization_id != actor.user.organization_id:
        raise HTTPException(status_code=404, detail="Proposal not found")
    return proposal


def _result(success, proposal, message):
    if not success:
        raise_for_refusal(message)
    return {**proposal_out(proposal), "message": message}


@router.get("")
def list_proposals(actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_proposals")
    return [proposal_out(p) for p in filter_proposals(db, actor.user)]


@router.get("/{proposal_id}")
def get_proposal(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_proposals")
    proposal = _visible_proposal(db, actor, proposal_id)
    return {**proposal_out(proposal), "is_paid": InvoiceManager(db).is_proposal_paid(proposal)}


@router.post("")
def create_proposal(req: ProposalCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_proposals")
    return _result(*ProposalManager(db).create_draft(
        actor.user.id, req.organization_id, req.services, user_ids=req.user_ids, notes=req.notes,
    ))


@router.put("/{proposal_id}/content")
def update_content(proposal_id: str, req: ProposalContentUpdate,
                   actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_proposals")
    return _result(*ProposalManager(db).update_content(proposal_id, req.content, req.custom_details))


@router.post("/{proposal_id}/save-draft")
def save_draft(proposal_id: str, req: Optional[ProposalContentUpdate] = None,
               actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_proposals")
    content = req.content if req else None
    return _result(*ProposalManager(db).save_draft(actor.user.id, proposal_id, content))


@router.post("/{proposal_id}/submit-review")
def submit_for_review(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_proposals")
    return _result(*ProposalManager(db).submit_for_review(actor.user.id, proposal_id))


@router.post("/{proposal_id}/send")
def send_to_client(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_proposals")
    return _result(*ProposalManager(db).send_to_client(actor.user.id, proposal_id))


@router.post("/{proposal_id}/accept")
def accept_proposal(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    manager = ProposalManager(db)
    proposal = _visible_proposal(db, actor, proposal_id)
    if not manager.can_decide(actor.user, proposal):
        raise HTTPException(status_code=403, detail="Not allowed to accept this proposal")
    return _result(*manager.accept(actor.user, proposal_id))


@router.post("/{proposal_id}/reject")
def reject_proposal(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    manager = ProposalManager(db)
    proposal = _visible_proposal(db, actor, proposal_id)
    if not manager.can_decide(actor.user, proposal):
        raise HTTPException(status_code=403, detail="Not allowed to reject this proposal")
    return _result(*manager.reject(actor.user, proposal_id))


@router.delete("/{proposal_id}")
def delete_proposal(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_proposals")
    success, message = ProposalManager(db).delete(proposal_id)
    if not success:
        raise_for_refusal(message)
    return {"status": "deleted", "message": message}


# ============================================================================
# MARKETING STRATEGY
# ============================================================================

@router.get("/{proposal_id}/strategy/questions")
def strategy_questions(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_marketing")
    _visible_proposal(db, actor, proposal_id)
    success, questions, message = ProposalManager(db).strategy_questions(proposal_id)
    if not success:
        raise_for_refusal(message)
    return questions


@router.post("/{proposal_id}/strategy")
def generate_strategy(proposal_id: str, req: StrategyRequest,
                      actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_marketing")
    _visible_proposal(db, actor, proposal_id)
    return _result(*ProposalManager(db).generate_strategy(
        proposal_id, req.answers, assets=req.assets, rebranding_required=req.rebranding_required,
    ))


@router.post("/{proposal_id}/strategy/approve")
def approve_strategy(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_marketing")
    return _result(*ProposalManager(db).approve_strategy(proposal_id))


@router.post("/{proposal_id}/strategy/accept")
def accept_strategy(proposal_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    if not is_client(actor.user):
        raise HTTPException(status_code=403, detail="Only the client can put a strategy live")
    _visible_proposal(db, actor, proposal_id)
    return _result(*ProposalManager(db).accept_strategy(proposal_id))


@router.post("/{proposal_id}/strategy/request-change")
def request_strategy_change(proposal_id: str, req: StrategyChangeRequest,
                            actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_marketing")
    _visible_proposal(db, actor, proposal_id)
    return _result(*ProposalManager(db).request_strategy_change(actor.user, proposal_id, req.note))


@router.put("/{proposal_id}/strategy")
def save_strategy_edits(proposal_id: str, req: StrategyEdit,
                        actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_marketing")
    return _result(*ProposalManager(db).save_strategy_edits(proposal_id, req.content))
