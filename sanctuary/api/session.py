from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, session_actor, active_actor, raise_for_refusal
from sanctuary.api.serializers import user_out
from sanctuary.services.access import is_client
from sanctuary.services.auth import SessionManager
from sanctuary.services.directory import DirectoryManager

router = APIRouter(prefix="/session", tags=["session"])


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginAsRequest(BaseModel):
    user_id: str


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str


def _session_payload(actor_user, original_user=None, token=None) -> dict:
    payload = {
        "user": user_out(actor_user),
        "original_user": user_out(original_user) if original_user else None,
        "is_impersonating": original_user is not None,
        "requires_waiver": is_client(actor_user) and not actor_user.waiver_signed,
    }
    if token:
        payload["token"] = token
    return payload


@router.post("/login")
def login(req: LoginRequest, db: Session = Depends(get_db)):
    manager = SessionManager(db)
    success, token, session, message = manager.login(req.email, req.password)
    if not success:
        status = 403 if message == "Account suspended" else 401
        raise HTTPException(status_code=status, detail=message)
    _, user, original = manager.resolve(token)
    return _session_payload(user, original, token=token)


@router.post("/logout")
def logout(actor: Actor = Depends(session_actor), db: Session = Depends(get_db)):
    success, message = SessionManager(db).logout(actor.session)
    return {"status": "logged_out", "message": message}


@router.get("/me")
def me(actor: Actor = Depends(session_actor)):
    return _session_payload(actor.user, actor.original_user)


@router.post("/login-as")
def login_as(req: LoginAsRequest, actor: Actor = Depends(active_actor), db: Session = Depends(get_db)):
    success, target, message = SessionManager(db).login_as(actor.session, req.user_id)
    if not success:
        if message.startswith("Only super admins"):
            raise HTTPException(status_code=403, detail=message)
        raise_for_refusal(message)
    original = actor.original_user or actor.user
    return {**_session_payload(target, original), "message": message}


@router.post("/revert")
def revert(actor: Actor = Depends(session_actor), db: Session = Depends(get_db)):
    success, original, message = SessionManager(db).revert(actor.session)
    if not success:
        raise_for_refusal(message)
    return {**_session_payload(original), "message": message}


@router.post("/password")
def change_password(req: PasswordChangeRequest, actor: Actor = Depends(active_actor), db: Session = Depends(get_db)):
    success, message = DirectoryManager(db).set_password(actor.user, req.current_password, req.new_password)
    if not success:
        raise HTTPException(status_code=400, detail=message)
    return {"status": "ok", "message": message}
