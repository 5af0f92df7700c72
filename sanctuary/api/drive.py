from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_permission, raise_for_refusal
from sanctuary.api.serializers import drive_item_out
from sanctuary.services.access import has_permission
from sanctuary.services.drive import DriveManager

router = APIRouter(prefix="/drive", tags=["drive"])


class DriveItemCreate(BaseModel):
    parent_id: Optional[str] = None
    name: str
    type: str = "folder"
    size: Optional[str] = None
    tags: List[str] = []
    content: Optional[List[Dict[str, Any]]] = None


class DriveRename(BaseModel):
    name: str


@router.get("")
def list_folder(parent_id: Optional[str] = None, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_operations")
    manager = DriveManager(db)
    success, items, message = manager.children(parent_id)
    if not success:
        raise_for_refusal(message)
    return {
        "parent_id": parent_id,
        "breadcrumbs": [{"id": crumb.id, "name": crumb.name} for crumb in manager.breadcrumbs(parent_id)],
        "items": [drive_item_out(item) for item in items],
    }


@router.post("")
def create_item(req: DriveItemCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    success, item, message = DriveManager(db).create(
        req.parent_id, req.name, req.type, size=req.size, content=req.content, tags=req.tags,
    )
    if not success:
        raise_for_refusal(message)
    return drive_item_out(item)


@router.put("/{item_id}")
def rename_item(item_id: str, req: DriveRename, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    success, item, message = DriveManager(db).rename(item_id, req.name)
    if not success:
        raise_for_refusal(message)
    return drive_item_out(item)


@router.delete("/{item_id}")
def delete_item(item_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    success, count, message = DriveManager(db).delete(item_id)
    if not success:
        raise_for_refusal(message)
    return {"status": "deleted", "deleted": count, "message": message}


@router.get("/{item_id}/sheet")
def view_spreadsheet(item_id: str, reveal: bool = False,
                     actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_operations")
    reveal = reveal and has_permission(actor.user, "edit_operations")
    success, sheet, message = DriveManager(db).spreadsheet(item_id, reveal=reveal)
    if not success:
        raise_for_refusal(message)
    return sheet
