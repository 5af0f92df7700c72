from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_permission, require_staff, raise_for_refusal
from sanctuary.api.serializers import user_out, organization_out
from sanctuary.models import Organization, User, UserKind
from sanctuary.services.access import visible_organizations, is_client, is_super_admin
from sanctuary.services.audit import recent_events
from sanctuary.services.directory import DirectoryManager

router = APIRouter(tags=["directory"])


class OrganizationCreate(BaseModel):
    name: str
    industry: str = ""
    website: str = ""
    admin_first_name: str
    admin_last_name: str = ""
    admin_email: str
    admin_phone: str = ""


class PersonCreate(BaseModel):
    first_name: str
    last_name: str = ""
    email: str
    phone: str = ""
    bio: str = ""
    permissions: Optional[List[str]] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    permissions: Optional[List[str]] = None


class AssignmentRequest(BaseModel):
    employee_id: str


class PermissionToggle(BaseModel):
    permission: str


def _require_editor(actor: Actor):
    require_staff(actor, "edit_users")


# ============================================================================
# ORGANIZATIONS
# ============================================================================

@router.get("/organizations")
def list_organizations(search: str = "", scope: str = "directory",
                       actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_operations" if scope == "operations" else "view_users")
    return [organization_out(org) for org in visible_organizations(db, actor.user, search, scope)]


@router.get("/organizations/{org_id}")
def get_organization(org_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    org = db.get(Organization, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    if is_client(actor.user) and actor.user.organization_id != org.id:
        raise HTTPException(status_code=403, detail="Not your organization")
    return organization_out(org)


@router.post("/organizations")
def create_organization(req: OrganizationCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, org, message = DirectoryManager(db).create_organization(
        actor.user.id, req.name, req.industry, req.admin_first_name, req.admin_last_name, req.admin_email,
        website=req.website, admin_phone=req.admin_phone,
    )
    if not success:
        if "already" in message:
            raise HTTPException(status_code=409, detail=message)
        raise_for_refusal(message)
    return organization_out(org)


@router.delete("/organizations/{org_id}")
def delete_organization(org_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, message = DirectoryManager(db).delete_organization(actor.user.id, org_id)
    if not success:
        raise_for_refusal(message)
    return {"status": "deleted", "message": message}


@router.post("/organizations/{org_id}/toggle-status")
def toggle_organization_status(org_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, org, message = DirectoryManager(db).toggle_organization_status(actor.user.id, org_id)
    if not success:
        raise_for_refusal(message)
    return organization_out(org)


@router.post("/organizations/{org_id}/assign")
def toggle_assignment(org_id: str, req: AssignmentRequest,
                      actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, org, message = DirectoryManager(db).toggle_assignment(org_id, req.employee_id)
    if not success:
        raise_for_refusal(message)
    return {**organization_out(org, include_users=False), "message": message}


@router.post("/organizations/{org_id}/users")
def add_org_client(org_id: str, req: PersonCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, user, message = DirectoryManager(db).add_org_client(
        actor.user.id, org_id, req.first_name, req.last_name, req.email, phone=req.phone, permissions=req.permissions,
    )
    if not success:
        if "already in use" in message:
            raise HTTPException(status_code=409, detail=message)
        raise_for_refusal(message)
    return user_out(user)


# ============================================================================
# PEOPLE
# ============================================================================

def _people(db: Session, kind: UserKind, search: str) -> List[User]:
    users = db.scalars(select(User).where(User.kind == kind).order_by(User.created_at, User.id)).all()
    needle = search.strip().lower()
    if needle:
        users = [user for user in users if needle in user.name.lower() or needle in user.email.lower()]
    return users


@router.get("/team")
def list_team(search: str = "", actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "view_users")
    return [user_out(user) for user in _people(db, UserKind.TEAM, search)]


@router.get("/individuals")
def list_individuals(search: str = "", actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "view_users")
    return [user_out(user) for user in _people(db, UserKind.INDIVIDUAL, search)]


@router.post("/team")
def add_team_member(req: PersonCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, user, message = DirectoryManager(db).add_team_member(
        actor.user.id, req.first_name, req.last_name, req.email, phone=req.phone, bio=req.bio,
        permissions=req.permissions,
    )
    if not success:
        if "already in use" in message:
            raise HTTPException(status_code=409, detail=message)
        raise_for_refusal(message)
    return user_out(user)


@router.post("/individuals")
def add_individual(req: PersonCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, user, message = DirectoryManager(db).add_individual(
        actor.user.id, req.first_name, req.last_name, req.email, phone=req.phone, bio=req.bio,
        permissions=req.permissions,
    )
    if not success:
        if "already in use" in message:
            raise HTTPException(status_code=409, detail=message)
        raise_for_refusal(message)
    return user_out(user)


@router.get("/users/{user_id}")
def get_user(user_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id != actor.user.id:
        require_permission(actor, "view_users")
        if is_client(actor.user) and user.organization_id != actor.user.organization_id:
            raise HTTPException(status_code=403, detail="Not your organization")
    return user_out(user)


@router.put("/users/{user_id}")
def update_user(user_id: str, req: UserUpdate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    changes = req.model_dump(exclude={"permissions"}, exclude_none=True)
    success, user, message = DirectoryManager(db).update_user(actor.user.id, user_id, changes, req.permissions)
    if not success:
        if "already in use" in message:
            raise HTTPException(status_code=409, detail=message)
        raise_for_refusal(message)
    return user_out(user)


@router.delete("/users/{user_id}")
def delete_user(user_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, message = DirectoryManager(db).delete_user(actor.user.id, user_id)
    if not success:
        raise_for_refusal(message)
    return {"status": "deleted", "message": message}


@router.post("/users/{user_id}/toggle-status")
def toggle_user_status(user_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, user, message = DirectoryManager(db).toggle_user_status(actor.user.id, user_id)
    if not success:
        raise_for_refusal(message)
    return user_out(user)


@router.post("/users/{user_id}/permissions/toggle")
def toggle_user_permission(user_id: str, req: PermissionToggle,
                           actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    _require_editor(actor)
    success, user, message = DirectoryManager(db).toggle_user_permission(actor.user.id, user_id, req.permission)
    if not success:
        raise_for_refusal(message)
    return user_out(user)


@router.get("/audit")
def audit_log(limit: int = 100, resource_type: Optional[str] = None,
              actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    if not is_super_admin(actor.user):
        raise HTTPException(status_code=403, detail="Super admin access required")
    return [
        {
            "id": entry.id,
            "event_type": entry.event_type.value,
            "actor_id": entry.actor_id,
            "resource_type": entry.resource_type,
            "resource_id": entry.resource_id,
            "message": entry.message,
            "timestamp": entry.timestamp,
        }
        for entry in recent_events(db, limit=max(1, min(limit, 500)), resource_type=resource_type)
    ]
