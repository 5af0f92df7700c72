"""Document drive: a folder tree of file metadata and credential spreadsheets."""

import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.models import DriveItem, DriveItemType, Task

logger = logging.getLogger(__name__)

MASK = "••••••••"


def mask_rows(rows: List[dict], reveal: bool = False) -> List[dict]:
    if reveal:
        return [dict(row) for row in rows or []]
    return [{**row, "password": MASK} if "password" in row else dict(row) for row in rows or []]


class DriveManager:
    def __init__(self, db: Session):
        self.db = db

    def children(self, parent_id: Optional[str]) -> Tuple[bool, List[DriveItem], str]:
        if parent_id:
            folder = self.db.get(DriveItem, parent_id)
            if not folder:
                return False, [], f"Folder {parent_id} not found"
            if folder.type != DriveItemType.FOLDER:
                return False, [], f"{folder.name} is not a folder"
        query = select(DriveItem).where(
            DriveItem.parent_id.is_(None) if not parent_id else DriveItem.parent_id == parent_id
        )
        items = self.db.scalars(query).all()
        # Folders first, then by name
        items = sorted(items, key=lambda item: (item.type != DriveItemType.FOLDER, item.name.lower()))
        return True, items, "ok"

    def breadcrumbs(self, folder_id: Optional[str]) -> List[DriveItem]:
        """Folders from the root down to `folder_id` (empty at the root)."""
        crumbs = []
        seen = set()
        current = self.db.get(DriveItem, folder_id) if folder_id else None
        while current is not None and current.id not in seen:
            seen.add(current.id)
            crumbs.insert(0, current)
            current = self.db.get(DriveItem, current.parent_id) if current.parent_id else None
        return crumbs

    def create(self, parent_id: Optional[str], name: str, item_type: str = DriveItemType.FOLDER.value,
               size: Optional[str] = None, content: Optional[List[dict]] = None,
               tags: Optional[List[str]] = None) -> Tuple[bool, Optional[DriveItem], str]:
        name = str(name or "").strip()
        if not name:
            return False, None, "Name is required"
        try:
            kind = DriveItemType(item_type)
        except ValueError as e:
            return False, None, str(e)
        if parent_id:
            parent = self.db.get(DriveItem, parent_id)
            if not parent:
                return False, None, f"Folder {parent_id} not found"
            if parent.type != DriveItemType.FOLDER:
                return False, None, f"{parent.name} is not a folder"

        item = DriveItem(
            parent_id=parent_id or None,
            name=name,
            type=kind,
            size=size if kind != DriveItemType.FOLDER else None,
            updated_at=date.today(),
            tags=list(tags or []),
            content=list(content or []) if kind == DriveItemType.SPREADSHEET else None,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        logger.info(f"Drive {kind.value} '{name}' created under {parent_id or 'root'}")
        return True, item, f"{name} created"

    def rename(self, item_id: str, name: str) -> Tuple[bool, Optional[DriveItem], str]:
        item = self.db.get(DriveItem, item_id)
        if not item:
            return False, None, f"Drive item {item_id} not found"
        name = str(name or "").strip()
        if not name:
            return False, None, "Name is required"
        item.name = name
        item.updated_at = date.today()
        self.db.commit()
        self.db.refresh(item)
        return True, item, "Renamed"

    def _subtree_ids(self, root_id: str) -> List[str]:
        ids = []
        pending = [root_id]
        while pending:
            current = pending.pop()
            ids.append(current)
            pending.extend(self.db.scalars(select(DriveItem.id).where(DriveItem.parent_id == current)).all())
        return ids

    def delete(self, item_id: str) -> Tuple[bool, int, str]:
        """Delete an item and everything below it; attachments pointing at them are dropped."""
        item = self.db.get(DriveItem, item_id)
        if not item:
            return False, 0, f"Drive item {item_id} not found"

        doomed = self._subtree_ids(item_id)
        for task in self.db.scalars(select(Task)).all():
            if any(att in doomed for att in task.attachments or []):
                task.attachments = [att for att in task.attachments if att not in doomed]
        # Children before parents
        for doomed_id in reversed(doomed):
            self.db.delete(self.db.get(DriveItem, doomed_id))
            self.db.flush()
        self.db.commit()
        logger.info(f"Deleted drive item {item_id} and {len(doomed) - 1} descendants")
        return True, len(doomed), f"Deleted {len(doomed)} item(s)"

    def spreadsheet(self, item_id: str, reveal: bool = False) -> Tuple[bool, Optional[dict], str]:
        item = self.db.get(DriveItem, item_id)
        if not item:
            return False, None, f"Drive item {item_id} not found"
        if item.type != DriveItemType.SPREADSHEET:
            return False, None, f"{item.name} is not a spreadsheet"
        return True, {"id": item.id, "name": item.name, "rows": mask_rows(item.content or [], reveal)}, "ok"
