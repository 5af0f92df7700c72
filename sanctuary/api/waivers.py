from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, active_actor, current_actor
from sanctuary.api.serializers import waiver_out, user_out
from sanctuary.services.access import filter_waivers
from sanctuary.services.waivers import WaiverManager

router = APIRouter(prefix="/waivers", tags=["waivers"])


class WaiverSignRequest(BaseModel):
    agreed: bool
    signature: str
    initials: str


@router.post("/sign")
def sign_waiver(req: WaiverSignRequest, actor: Actor = Depends(active_actor), db: Session = Depends(get_db)):
    success, record, message = WaiverManager(db).sign(actor.user, req.agreed, req.signature, req.initials)
    if not success:
        status = 403 if message.startswith("Only clients") else 400
        raise HTTPException(status_code=status, detail=message)
    return {"waiver": waiver_out(record), "user": user_out(actor.user), "message": message}


@router.get("")
def list_waivers(search: str = "", actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    return [waiver_out(record) for record in filter_waivers(db, actor.user, search)]
