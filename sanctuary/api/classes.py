from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from pydantic import BaseModel

from sanctuary.api.deps import Actor, get_db, current_actor, require_permission, require_staff, raise_for_refusal
from sanctuary.api.serializers import event_out
from sanctuary.models import ClassEvent
from sanctuary.services.access import is_super_admin
from sanctuary.services.classes import ClassManager

router = APIRouter(prefix="/classes", tags=["classes"])


class EventCreate(BaseModel):
    name: str
    description: str = ""
    cover_image: str = ""
    price: float = 0
    date: date
    time: str = "10:00"
    duration: str = "60 mins"
    total_seats: int = 10
    is_recurring: bool = False
    recurring_cycle: str = "None"
    occurrences: Optional[int] = None
    facilitator_id: str
    facilitator_payout_type: str = "Flat Fee"
    facilitator_payout_value: float = 0
    organizer_id: Optional[str] = None
    organizer_payout_type: Optional[str] = None
    organizer_payout_value: Optional[float] = None


def _event(db: Session, event_id: str) -> ClassEvent:
    event = db.get(ClassEvent, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("")
def list_events(start: Optional[date] = None, end: Optional[date] = None,
                actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_classes")
    manager = ClassManager(db)
    return [
        event_out(event, actor.user, show_attendees=manager.can_see_attendees(actor.user, event))
        for event in manager.list_events(start, end)
    ]


@router.get("/calendar")
def month_calendar(year: int, month: int, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_classes")
    if month < 1 or month > 12:
        raise HTTPException(status_code=400, detail="month must be in range 1..12")
    if year < 1 or year > 9999:
        raise HTTPException(status_code=400, detail="year must be in range 1..9999")
    cells = ClassManager(db).calendar(year, month)
    return {
        "year": year,
        "month": month,
        "cells": [
            None if cell is None else {
                "date": cell["date"],
                "day": cell["day"],
                "events": [event_out(event, actor.user) for event in cell["events"]],
            }
            for cell in cells
        ],
    }


@router.get("/payouts")
def payout_report(start: Optional[date] = None, end: Optional[date] = None,
                  actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor)
    require_permission(actor, "view_classes")
    report = ClassManager(db).payout_report(start, end)
    if not is_super_admin(actor.user):
        # Facilitators only see their own line
        report["people"] = [entry for entry in report["people"] if entry["user_id"] == actor.user.id]
        report["events"] = []
        report["totals"] = None
    return report


@router.get("/{event_id}")
def get_event(event_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_classes")
    event = _event(db, event_id)
    return event_out(event, actor.user, show_attendees=ClassManager(db).can_see_attendees(actor.user, event))


@router.post("")
def create_event(req: EventCreate, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_classes")
    success, events, message = ClassManager(db).create_event(actor.user.id, req.model_dump())
    if not success:
        raise_for_refusal(message)
    return {"message": message, "events": [event_out(event, actor.user, show_attendees=True) for event in events]}


@router.delete("/{event_id}")
def delete_event(event_id: str, scope: str = "single",
                 actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_staff(actor, "edit_classes")
    if scope not in ("single", "series"):
        raise HTTPException(status_code=400, detail="scope must be 'single' or 'series'")
    success, count, message = ClassManager(db).delete_event(actor.user.id, event_id, scope)
    if not success:
        raise_for_refusal(message)
    return {"status": "deleted", "deleted": count, "message": message}


@router.post("/{event_id}/book")
def book(event_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_classes")
    success, event, message = ClassManager(db).book(actor.user, event_id)
    if not success:
        if message == "Only clients can book classes":
            raise HTTPException(status_code=403, detail=message)
        raise_for_refusal(message)
    return {**event_out(event, actor.user), "message": message}


@router.post("/{event_id}/cancel")
def cancel_booking(event_id: str, actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    require_permission(actor, "view_classes")
    success, event, message = ClassManager(db).cancel_booking(actor.user, event_id)
    if not success:
        raise_for_refusal(message)
    return {**event_out(event, actor.user), "message": message}
