from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_permission, raise_for_refusal
from sanctuary.api.serializers import project_out, task_out
from sanctuary.models import Project, Task
from sanctuary.services.access import filter_projects, visible_organizations, can_view_project
from sanctuary.services.operations import OperationsManager

router = APIRouter(tags=["operations"])


class ProjectCreate(BaseModel):
    organization_id: str
    title: str
    description: str = ""
    due_date: Optional[date] = None
    members: List[str] = []
    strategy: str = ""


class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = None
    members: Optional[List[str]] = None
    status: Optional[str] = None


class MemberToggle(BaseModel):
    member: str


class TaskCreate(BaseModel):
    title: str
    description: str = ""
    status: str = "To Do"
    assignee: str = "Unassigned"
    due_date: Optional[date] = None
    priority: str = "Medium"
    label: Optional[Dict[str, Any]] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    assignee: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[str] = None
    label: Optional[Dict[str, Any]] = None


class ChecklistCreate(BaseModel):
    text: str


class ChecklistUpdate(BaseModel):
    text: Optional[str] = None
    toggle: bool = False


class AttachmentRequest(BaseModel):
    item_id: str


def _project(db: Session, actor: Actor, project_id: str) -> Project:
    project = db.get(Project, project_id)
    if not project or not can_view_project(db, actor.user, project):
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _task(db: Session, actor: Actor, task_id: str) -> Task:
    task = db.get(Task, task_id)
    if not task or not can_view_project(db, actor.user, task.project):
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _task_result(success, task, message):
    if not success:
        raise_for_refusal(message)
    return {**task_out(task), "message": message}


def _project_result(success, project, message):
    if not success:
        raise_for_refusal(message)
    return {**project_out(project), "message": message}


# ============================================================================
# PROJECTS
# ============================================================================

@router.get("/projects")
def list_projects(organization_id: Optional[str] = None, include_archived: bool = False,
                  actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_operations")
    projects = filter_projects(db, actor.user)
    if organization_id:
        projects = [project for project in projects if project.organization_id == organization_id]
    if not include_archived:
        projects = [project for project in projects if not project.is_archived]
    return [project_out(project) for project in projects]


@router.get("/projects/{project_id}")
def get_project(project_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_operations")
    return project_out(_project(db, actor, project_id), include_tasks=True)


@router.post("/projects")
def create_project(req: ProjectCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    allowed = {org.id for org in visible_organizations(db, actor.user, scope="operations")}
    if req.organization_id not in allowed:
        raise HTTPException(status_code=403, detail="Organization is not assigned to you")
    return _project_result(*OperationsManager(db).create_project(
        req.organization_id, req.title, req.description, req.due_date, req.members, req.strategy,
    ))


@router.put("/projects/{project_id}")
def update_project(project_id: str, req: ProjectUpdate,
                   actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _project(db, actor, project_id)
    return _project_result(*OperationsManager(db).update_project(project_id, req.model_dump(exclude_none=True)))


@router.delete("/projects/{project_id}")
def delete_project(project_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _project(db, actor, project_id)
    success, message = OperationsManager(db).delete_project(project_id)
    if not success:
        raise_for_refusal(message)
    return {"status": "deleted", "message": message}


@router.post("/projects/{project_id}/archive")
def toggle_project_archive(project_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _project(db, actor, project_id)
    return _project_result(*OperationsManager(db).toggle_project_archive(project_id))


@router.post("/projects/{project_id}/members")
def toggle_project_member(project_id: str, req: MemberToggle,
                          actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _project(db, actor, project_id)
    return _project_result(*OperationsManager(db).toggle_member(project_id, req.member))


# ============================================================================
# TASKS
# ============================================================================

@router.post("/projects/{project_id}/tasks")
def create_task(project_id: str, req: TaskCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _project(db, actor, project_id)
    return _task_result(*OperationsManager(db).create_task(project_id, req.model_dump()))


@router.put("/tasks/{task_id}")
def update_task(task_id: str, req: TaskUpdate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _task(db, actor, task_id)
    return _task_result(*OperationsManager(db).update_task(task_id, req.model_dump(exclude_none=True)))


@router.delete("/tasks/{task_id}")
def delete_task(task_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _task(db, actor, task_id)
    success, message = OperationsManager(db).delete_task(task_id)
    if not success:
        raise_for_refusal(message)
    return {"status": "deleted", "message": message}


@router.post("/tasks/{task_id}/archive")
def toggle_task_archive(task_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _task(db, actor, task_id)
    return _task_result(*OperationsManager(db).toggle_task_archive(task_id))


@router.post("/tasks/{task_id}/checklist")
def add_checklist_item(task_id: str, req: ChecklistCreate,
                       actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _task(db, actor, task_id)
    return _task_result(*OperationsManager(db).add_checklist_item(task_id, req.text))


@router.put("/tasks/{task_id}/checklist/{item_id}")
def update_checklist_item(task_id: str, item_id: str, req: ChecklistUpdate,
                          actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _task(db, actor, task_id)
    return _task_result(*OperationsManager(db).update_checklist_item(task_id, item_id, req.text, req.toggle))


@router.delete("/tasks/{task_id}/checklist/{item_id}")
def delete_checklist_item(task_id: str, item_id: str,
                          actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _task(db, actor, task_id)
    return _task_result(*OperationsManager(db).delete_checklist_item(task_id, item_id))


@router.post("/tasks/{task_id}/attachments")
def attach_file(task_id: str, req: AttachmentRequest,
                actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "edit_operations")
    _task(db, actor, task_id)
    return _task_result(*OperationsManager(db).attach_file(task_id, req.item_id))
