from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_staff, raise_for_refusal
from sanctuary.api.serializers import channel_out, message_out, user_out
from sanctuary.models import Organization
from sanctuary.services.chat import ChatManager

router = APIRouter(prefix="/chat", tags=["chat"])


class ChannelCreate(BaseModel):
    name: str
    type: str = "public"


class MemberToggle(BaseModel):
    user_id: str


class MessageCreate(BaseModel):
    text: str


def _refuse(message: str):
    if message.startswith("No access"):
        raise HTTPException(status_code=403, detail=message)
    raise_for_refusal(message)


@router.get("/organizations")
def available_organizations(actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    return [{"id": org.id, "name": org.name} for org in ChatManager(db).available_organizations(actor.user)]


@router.get("/organizations/{org_id}/users")
def organization_users(org_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    manager = ChatManager(db)
    org = db.get(Organization, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    if not manager.can_access_org(actor.user, org):
        raise HTTPException(status_code=403, detail="No access to this organization")
    return [user_out(user) for user in manager.organization_users(org)]


@router.get("/organizations/{org_id}/channels")
def list_channels(org_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    success, channels, message = ChatManager(db).channels(actor.user, org_id)
    if not success:
        _refuse(message)
    return [channel_out(channel) for channel in channels]


@router.post("/organizations/{org_id}/channels")
def create_channel(org_id: str, req: ChannelCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    success, channel, message = ChatManager(db).create_channel(actor.user, org_id, req.name, req.type)
    if not success:
        _refuse(message)
    return channel_out(channel)


@router.get("/organizations/{org_id}/mentions")
def mention_candidates(org_id: str, q: str = "", actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    manager = ChatManager(db)
    org = db.get(Organization, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    if not manager.can_access_org(actor.user, org):
        raise HTTPException(status_code=403, detail="No access to this organization")
    success, users, message = manager.mention_candidates(org_id, q)
    return [{"id": user.id, "name": user.name} for user in users]


@router.delete("/channels/{channel_id}")
def delete_channel(channel_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor)
    success, message = ChatManager(db).delete_channel(channel_id)
    if not success:
        _refuse(message)
    return {"status": "deleted", "message": message}


@router.post("/channels/{channel_id}/members")
def toggle_member(channel_id: str, req: MemberToggle, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor)
    success, channel, message = ChatManager(db).toggle_member(channel_id, req.user_id)
    if not success:
        _refuse(message)
    return channel_out(channel)


@router.get("/channels/{channel_id}/messages")
def list_messages(channel_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    success, messages, message = ChatManager(db).messages(actor.user, channel_id)
    if not success:
        _refuse(message)
    return [message_out(item) for item in messages]


@router.post("/channels/{channel_id}/messages")
def send_message(channel_id: str, req: MessageCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    success, item, message = ChatManager(db).send(actor.user, channel_id, req.text)
    if not success:
        _refuse(message)
    return message_out(item)
