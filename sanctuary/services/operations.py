"""
Operations: projects and their task boards.
"""

import logging
from datetime import date, datetime, time
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from sanctuary.models import (
    Project, Task, DriveItem, Organization, ProjectStatus, TaskStatus, Priority, DriveItemType, new_id,
)
from sanctuary.services.content import generate_project_tasks

logger = logging.getLogger(__name__)

STRATEGY_MIN_LENGTH = 10
DUE_SOON_HOURS = 48

TASK_FIELDS = ("title", "description", "assignee", "due_date", "label")


def compute_progress(tasks: List[Task]) -> int:
    """Percentage of non-archived tasks that are Done (0 when there are none)."""
    live = [task for task in tasks if not task.is_archived]
    if not live:
        return 0
    done = sum(1 for task in live if task.status == TaskStatus.DONE)
    return int(round(done * 100.0 / len(live)))


def task_due_state(due_date: Optional[date], now: Optional[datetime] = None) -> Optional[str]:
    """'overdue', 'due_soon' (under 48h) or 'safe'; None without a due date."""
    if not due_date:
        return None
    now = now or datetime.utcnow()
    hours = (datetime.combine(due_date, time.min) - now).total_seconds() / 3600.0
    if hours < 0:
        return "overdue"
    if hours < DUE_SOON_HOURS:
        return "due_soon"
    return "safe"


class OperationsManager:
    """
    Project and task lifecycle.
    """

    def __init__(self, db: Session):
        self.db = db

    def _refresh_progress(self, project: Project):
        project.progress = compute_progress(project.tasks)

    # ========================================================================
    # PROJECTS
    # ========================================================================

    def create_project(
        self,
        organization_id: str,
        title: str,
        description: str = "",
        due_date: Optional[date] = None,
        members: Optional[List[str]] = None,
        strategy: str = "",
        today: Optional[date] = None,
    ) -> Tuple[bool, Optional[Project], str]:
        """
        Create a project; a strategy longer than ten characters seeds the
        board with template tasks.
        """
        if not self.db.get(Organization, organization_id):
            return False, None, f"Organization {organization_id} not found"
        title = str(title or "").strip()
        if not title:
            return False, None, "Project title is required"

        project = Project(
            organization_id=organization_id,
            title=title,
            description=str(description or ""),
            status=ProjectStatus.ACTIVE,
            progress=0,
            due_date=due_date,
            members=list(members or []),
            is_archived=False,
        )
        self.db.add(project)
        self.db.flush()

        generated = 0
        if len(str(strategy or "").strip()) > STRATEGY_MIN_LENGTH:
            for planned in generate_project_tasks(strategy, today=today):
                project.tasks.append(Task(
                    organization_id=organization_id,
                    title=planned["title"],
                    description=planned["description"],
                    status=TaskStatus.TODO,
                    assignee="Unassigned",
                    due_date=planned["due_date"],
                    priority=Priority(planned["priority"]),
                    checklist=planned["checklist"],
                    attachments=[],
                ))
                generated += 1

        self._refresh_progress(project)
        self.db.commit()
        self.db.refresh(project)
        logger.info(f"Project {project.id} '{title}' created with {generated} generated tasks")
        return True, project, f"Project '{title}' created"

    def update_project(self, project_id: str, changes: dict) -> Tuple[bool, Optional[Project], str]:
        project = self.db.get(Project, project_id)
        if not project:
            return False, None, f"Project {project_id} not found"

        if changes.get("title") is not None:
            title = str(changes["title"]).strip()
            if not title:
                return False, None, "Project title is required"
            project.title = title
        if changes.get("description") is not None:
            project.description = str(changes["description"])
        if changes.get("due_date") is not None:
            project.due_date = changes["due_date"]
        if changes.get("members") is not None:
            project.members = list(changes["members"])
        if changes.get("status") is not None:
            try:
                project.status = ProjectStatus(changes["status"])
            except ValueError as e:
                return False, None, str(e)

        self.db.commit()
        self.db.refresh(project)
        return True, project, "Project updated"

    def delete_project(self, project_id: str) -> Tuple[bool, str]:
        project = self.db.get(Project, project_id)
        if not project:
            return False, f"Project {project_id} not found"
        task_count = len(project.tasks)
        self.db.delete(project)
        self.db.commit()
        logger.info(f"Project {project_id} deleted with {task_count} tasks")
        return True, "Project deleted"

    def toggle_project_archive(self, project_id: str) -> Tuple[bool, Optional[Project], str]:
        project = self.db.get(Project, project_id)
        if not project:
            return False, None, f"Project {project_id} not found"
        project.is_archived = not project.is_archived
        self.db.commit()
        self.db.refresh(project)
        return True, project, "Project archived" if project.is_archived else "Project restored"

    def toggle_member(self, project_id: str, member: str) -> Tuple[bool, Optional[Project], str]:
        project = self.db.get(Project, project_id)
        if not project:
            return False, None, f"Project {project_id} not found"
        member = str(member or "").strip()
        if not member:
            return False, None, "Member is required"
        members = list(project.members or [])
        if member in members:
            members.remove(member)
        else:
            members.append(member)
        project.members = members
        self.db.commit()
        self.db.refresh(project)
        return True, project, "Members updated"

    # ========================================================================
    # TASKS
    # ========================================================================

    def create_task(self, project_id: str, data: dict) -> Tuple[bool, Optional[Task], str]:
        project = self.db.get(Project, project_id)
        if not project:
            return False, None, f"Project {project_id} not found"
        title = str(data.get("title") or "").strip()
        if not title:
            return False, None, "Task title is required"
        try:
            status = TaskStatus(data.get("status") or TaskStatus.TODO.value)
            priority = Priority(data.get("priority") or Priority.MEDIUM.value)
        except ValueError as e:
            return False, None, str(e)

        task = Task(
            organization_id=project.organization_id,
            title=title,
            description=str(data.get("description") or ""),
            status=status,
            assignee=str(data.get("assignee") or "Unassigned"),
            due_date=data.get("due_date"),
            priority=priority,
            label=data.get("label"),
            checklist=[],
            attachments=[],
        )
        project.tasks.append(task)
        self._refresh_progress(project)
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Task {task.id} added to project {project.id}")
        return True, task, "Task created"

    def update_task(self, task_id: str, changes: dict) -> Tuple[bool, Optional[Task], str]:
        task = self.db.get(Task, task_id)
        if not task:
            return False, None, f"Task {task_id} not found"

        for field in TASK_FIELDS:
            if changes.get(field) is not None:
                setattr(task, field, changes[field])
        if not str(task.title or "").strip():
            self.db.rollback()
            return False, None, "Task title is required"
        try:
            if changes.get("status") is not None:
                task.status = TaskStatus(changes["status"])
            if changes.get("priority") is not None:
                task.priority = Priority(changes["priority"])
        except ValueError as e:
            self.db.rollback()
            return False, None, str(e)

        self._refresh_progress(task.project)
        self.db.commit()
        self.db.refresh(task)
        return True, task, "Task updated"

    def delete_task(self, task_id: str) -> Tuple[bool, str]:
        task = self.db.get(Task, task_id)
        if not task:
            return False, f"Task {task_id} not found"
        project = task.project
        project.tasks.remove(task)
        self._refresh_progress(project)
        self.db.commit()
        return True, "Task deleted"

    def toggle_task_archive(self, task_id: str) -> Tuple[bool, Optional[Task], str]:
        task = self.db.get(Task, task_id)
        if not task:
            return False, None, f"Task {task_id} not found"
        task.is_archived = not task.is_archived
        self._refresh_progress(task.project)
        self.db.commit()
        self.db.refresh(task)
        return True, task, "Task archived" if task.is_archived else "Task restored"

    # Checklist items are stored inline; every change reassigns the list so the
    # JSON column is flagged dirty.

    def add_checklist_item(self, task_id: str, text: str) -> Tuple[bool, Optional[Task], str]:
        task = self.db.get(Task, task_id)
        if not task:
            return False, None, f"Task {task_id} not found"
        text = str(text or "").strip()
        if not text:
            return False, None, "Checklist text is required"
        task.checklist = list(task.checklist or []) + [{"id": new_id("ck"), "text": text, "completed": False}]
        self.db.commit()
        self.db.refresh(task)
        return True, task, "Checklist item added"

    def update_checklist_item(self, task_id: str, item_id: str, text: Optional[str] = None,
                              toggle: bool = False) -> Tuple[bool, Optional[Task], str]:
        task = self.db.get(Task, task_id)
        if not task:
            return False, None, f"Task {task_id} not found"
        items = [dict(item) for item in task.checklist or []]
        target = next((item for item in items if item["id"] == item_id), None)
        if target is None:
            return False, None, f"Checklist item {item_id} not found"
        if text is not None:
            if not str(text).strip():
                return False, None, "Checklist text is required"
            target["text"] = str(text).strip()
        if toggle:
            target["completed"] = not target.get("completed", False)
        task.checklist = items
        self.db.commit()
        self.db.refresh(task)
        return True, task, "Checklist updated"

    def delete_checklist_item(self, task_id: str, item_id: str) -> Tuple[bool, Optional[Task], str]:
        task = self.db.get(Task, task_id)
        if not task:
            return False, None, f"Task {task_id} not found"
        items = [item for item in task.checklist or [] if item["id"] != item_id]
        if len(items) == len(task.checklist or []):
            return False, None, f"Checklist item {item_id} not found"
        task.checklist = items
        self.db.commit()
        self.db.refresh(task)
        return True, task, "Checklist item removed"

    def attach_file(self, task_id: str, item_id: str) -> Tuple[bool, Optional[Task], str]:
        task = self.db.get(Task, task_id)
        if not task:
            return False, None, f"Task {task_id} not found"
        item = self.db.get(DriveItem, item_id)
        if not item:
            return False, None, f"Drive item {item_id} not found"
        if item.type == DriveItemType.FOLDER:
            return False, None, "Folders cannot be attached"
        attachments = list(task.attachments or [])
        if item_id in attachments:
            return False, None, f"{item.name} is already attached"
        task.attachments = attachments + [item_id]
        self.db.commit()
        self.db.refresh(task)
        return True, task, f"{item.name} attached"
