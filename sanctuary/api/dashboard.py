from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_permission
from sanctuary.api.serializers import task_out, ticket_out
from sanctuary.services.auth import default_notification_preferences
from sanctuary.services.dashboard import DashboardService, CHART_PERIODS
from sanctuary.services.directory import DirectoryManager

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


class PreferencesUpdate(BaseModel):
    proposals: Optional[bool] = None
    invoices: Optional[bool] = None
    tasks: Optional[bool] = None
    tickets: Optional[bool] = None
    classes: Optional[bool] = None


@router.get("")
def overview(period: str = "6months", actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_dashboard")
    if period not in CHART_PERIODS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(CHART_PERIODS)}")
    service = DashboardService(db)
    actions = service.priority_actions(actor.user)
    return {
        "kpis": service.kpis(actor.user),
        "activity": service.activity_feed(actor.user),
        "chart": {"period": period, "months": service.chart(actor.user, period)},
        "priority_actions": {
            "tasks": [task_out(task) for task in actions["tasks"]],
            "tickets": [ticket_out(ticket, include_messages=False) for ticket in actions["tickets"]],
        },
    }


@router.get("/activity")
def activity(actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_dashboard")
    return DashboardService(db).activity_feed(actor.user)


@router.get("/chart")
def chart(period: str = "6months", actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_dashboard")
    if period not in CHART_PERIODS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(CHART_PERIODS)}")
    return DashboardService(db).chart(actor.user, period)


@router.get("/preferences")
def get_preferences(actor: Actor = Depends(current_actor)):
    return {**default_notification_preferences(), **(actor.user.notification_preferences or {})}


@router.put("/preferences")
def update_preferences(req: PreferencesUpdate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    success, user, message = DirectoryManager(db).update_notification_preferences(
        actor.user, req.model_dump(exclude_none=True),
    )
    return dict(user.notification_preferences)
