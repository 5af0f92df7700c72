"""
Classes and events: recurring series generation, seat booking, the month
calendar grid and facilitator/organizer payouts.
"""

import calendar
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from sanctuary.config import RECURRENCE_DEFAULTS, RECURRENCE_MAX_OCCURRENCES
from sanctuary.models import (
    ClassEvent, User, RecurringCycle, PayoutType, UserKind, AuditEventType, new_id,
)
from sanctuary.services.access import is_client, is_super_admin
from sanctuary.services.audit import record_event

logger = logging.getLogger(__name__)

CYCLE_STEP_DAYS = {
    RecurringCycle.DAILY: 1,
    RecurringCycle.WEEKLY: 7,
    RecurringCycle.BIWEEKLY: 14,
}


# ============================================================================
# PURE HELPERS
# ============================================================================

def add_months(start: date, months: int) -> date:
    """Same day `months` later, clamped to the target month's length."""
    index = start.year * 12 + (start.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(start.day, calendar.monthrange(year, month)[1]))


def occurrence_dates(start: date, cycle: RecurringCycle, count: int) -> List[date]:
    """
    Dates of a series starting at `start`. A non-recurring cycle yields just
    the start date.
    """
    if cycle == RecurringCycle.NONE or count <= 1:
        return [start]
    if cycle == RecurringCycle.MONTHLY:
        return [add_months(start, offset) for offset in range(count)]
    step = CYCLE_STEP_DAYS[cycle]
    return [start + timedelta(days=step * offset) for offset in range(count)]


def resolve_occurrence_count(cycle: RecurringCycle, requested: Optional[int]) -> int:
    if cycle == RecurringCycle.NONE:
        return 1
    count = requested if requested else RECURRENCE_DEFAULTS.get(cycle.value, 1)
    return max(1, min(int(count), RECURRENCE_MAX_OCCURRENCES))


def booked_seats(event: ClassEvent) -> int:
    return max(0, int(event.total_seats or 0) - int(event.available_seats or 0))


def payout_amount(payout_type: Optional[PayoutType], value: Optional[float], revenue: float) -> float:
    if payout_type is None or not value:
        return 0.0
    if payout_type == PayoutType.PERCENTAGE:
        return round(revenue * float(value) / 100.0, 2)
    return float(value)


def event_financials(event: ClassEvent) -> Dict[str, float]:
    """Revenue, payouts and house net for a single event."""
    revenue = float(event.price or 0) * booked_seats(event)
    facilitator = payout_amount(event.facilitator_payout_type, event.facilitator_payout_value, revenue)
    organizer = 0.0
    if event.organizer_id:
        organizer = payout_amount(event.organizer_payout_type, event.organizer_payout_value, revenue)
    return {
        "revenue": revenue,
        "facilitator_payout": facilitator,
        "organizer_payout": organizer,
        "house_net": round(revenue - facilitator - organizer, 2),
    }


def month_grid(year: int, month: int, events: List[ClassEvent]) -> List[Optional[dict]]:
    """
    Calendar cells for a month, Sunday first: leading None cells for the
    weekday offset, then one cell per day with its events sorted by time.
    """
    first = date(year, month, 1)
    offset = (first.weekday() + 1) % 7
    by_day: Dict[date, List[ClassEvent]] = {}
    for event in events:
        if event.date.year == year and event.date.month == month:
            by_day.setdefault(event.date, []).append(event)

    cells: List[Optional[dict]] = [None] * offset
    for day in range(1, calendar.monthrange(year, month)[1] + 1):
        current = date(year, month, day)
        cells.append({
            "date": current,
            "day": day,
            "events": sorted(by_day.get(current, []), key=lambda e: (e.time or "", e.name)),
        })
    return cells


# ============================================================================
# MANAGER
# ============================================================================

class ClassManager:
    """
    Schedules events and series, books seats and reports payouts.
    """

    def __init__(self, db: Session):
        self.db = db

    def _team_member(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        user = self.db.get(User, user_id)
        if not user or user.kind != UserKind.TEAM:
            return None
        return user

    def create_event(self, actor_id: str, data: dict) -> Tuple[bool, List[ClassEvent], str]:
        """
        Create an event, or a whole series when it recurs.

        Args:
            actor_id: Creating user
            data: name, description, cover_image, price, date, time, duration,
                total_seats, is_recurring, recurring_cycle, occurrences,
                facilitator_id, facilitator_payout_type/value, organizer_id,
                organizer_payout_type/value

        Returns:
            (success, created events, message)
        """
        name = str(data.get("name") or "").strip()
        if not name:
            return False, [], "Event name is required"
        facilitator = self._team_member(data.get("facilitator_id"))
        if not facilitator:
            return False, [], "A facilitator from the team is required"
        start = data.get("date")
        if not isinstance(start, date):
            return False, [], "Event date is required"
        total_seats = int(data.get("total_seats") or 0)
        if total_seats < 0:
            return False, [], "Seat count cannot be negative"
        if float(data.get("price") or 0) < 0:
            return False, [], "Price cannot be negative"

        organizer = None
        if data.get("organizer_id"):
            organizer = self.db.get(User, data["organizer_id"])
            if not organizer:
                return False, [], f"Organizer {data['organizer_id']} not found"

        try:
            cycle = RecurringCycle(data.get("recurring_cycle") or RecurringCycle.NONE.value)
            fac_type = PayoutType(data.get("facilitator_payout_type") or PayoutType.FLAT.value)
            org_type = PayoutType(data.get("organizer_payout_type") or PayoutType.FLAT.value) if organizer else None
        except ValueError as e:
            return False, [], str(e)
        if not data.get("is_recurring"):
            cycle = RecurringCycle.NONE

        dates = occurrence_dates(start, cycle, resolve_occurrence_count(cycle, data.get("occurrences")))
        series_id = new_id("sr") if len(dates) > 1 else None

        events = []
        for occurrence in dates:
            event = ClassEvent(
                series_id=series_id,
                name=name,
                description=str(data.get("description") or ""),
                cover_image=str(data.get("cover_image") or ""),
                price=float(data.get("price") or 0),
                date=occurrence,
                time=str(data.get("time") or "10:00"),
                duration=str(data.get("duration") or "60 mins"),
                total_seats=total_seats,
                available_seats=total_seats,
                is_recurring=cycle != RecurringCycle.NONE,
                recurring_cycle=cycle,
                facilitator_id=facilitator.id,
                facilitator_name=facilitator.name,
                facilitator_picture=facilitator.profile_picture,
                facilitator_bio=facilitator.bio,
                facilitator_payout_type=fac_type,
                facilitator_payout_value=float(data.get("facilitator_payout_value") or 0),
                organizer_id=organizer.id if organizer else None,
                organizer_name=organizer.name if organizer else None,
                organizer_picture=organizer.profile_picture if organizer else None,
                organizer_bio=organizer.bio if organizer else None,
                organizer_payout_type=org_type,
                organizer_payout_value=float(data.get("organizer_payout_value") or 0) if organizer else None,
                attendees=[],
            )
            self.db.add(event)
            events.append(event)

        self.db.flush()
        record_event(self.db, AuditEventType.CLASS_CREATED, actor_id, "class", events[0].id,
                     f"Scheduled {name} ({len(events)} occurrence(s))")
        self.db.commit()
        for event in events:
            self.db.refresh(event)
        logger.info(f"Class '{name}' scheduled: {len(events)} occurrence(s), cycle {cycle.value}")
        return True, events, f"Scheduled {len(events)} occurrence(s) of {name}"

    def delete_event(self, actor_id: str, event_id: str, scope: str = "single") -> Tuple[bool, int, str]:
        """Delete one occurrence, or every occurrence of its series with scope='series'."""
        event = self.db.get(ClassEvent, event_id)
        if not event:
            return False, 0, f"Event {event_id} not found"

        if scope == "series" and event.series_id:
            doomed = self.db.scalars(select(ClassEvent).where(ClassEvent.series_id == event.series_id)).all()
        else:
            doomed = [event]
        for item in doomed:
            self.db.delete(item)
        record_event(self.db, AuditEventType.CLASS_DELETED, actor_id, "class", event_id,
                     f"Deleted {len(doomed)} occurrence(s) of {event.name}")
        self.db.commit()
        logger.info(f"Deleted {len(doomed)} occurrence(s) of event {event_id}")
        return True, len(doomed), f"Deleted {len(doomed)} occurrence(s)"

    def book(self, user: User, event_id: str) -> Tuple[bool, Optional[ClassEvent], str]:
        event = self.db.get(ClassEvent, event_id)
        if not event:
            return False, None, f"Event {event_id} not found"
        if not is_client(user):
            return False, None, "Only clients can book classes"
        attendees = list(event.attendees or [])
        if user.id in attendees:
            return False, None, "Already booked"
        if int(event.available_seats or 0) <= 0:
            return False, None, "Class is full"

        attendees.append(user.id)
        event.attendees = attendees
        event.available_seats = int(event.available_seats) - 1
        record_event(self.db, AuditEventType.CLASS_BOOKED, user.id, "class", event.id,
                     f"{user.name} booked {event.name} on {event.date}")
        self.db.commit()
        self.db.refresh(event)
        logger.info(f"User {user.id} booked event {event.id} ({event.available_seats} seats left)")
        return True, event, "Booked"

    def cancel_booking(self, user: User, event_id: str) -> Tuple[bool, Optional[ClassEvent], str]:
        event = self.db.get(ClassEvent, event_id)
        if not event:
            return False, None, f"Event {event_id} not found"
        attendees = list(event.attendees or [])
        if user.id not in attendees:
            return False, None, "No booking to cancel"

        attendees.remove(user.id)
        event.attendees = attendees
        event.available_seats = min(int(event.total_seats or 0), int(event.available_seats or 0) + 1)
        record_event(self.db, AuditEventType.CLASS_BOOKING_CANCELLED, user.id, "class", event.id,
                     f"{user.name} cancelled {event.name} on {event.date}")
        self.db.commit()
        self.db.refresh(event)
        return True, event, "Booking cancelled"

    def can_see_attendees(self, user: User, event: ClassEvent) -> bool:
        return is_super_admin(user) or user.id == event.facilitator_id

    def list_events(self, start: Optional[date] = None, end: Optional[date] = None) -> List[ClassEvent]:
        query = select(ClassEvent)
        if start:
            query = query.where(ClassEvent.date >= start)
        if end:
            query = query.where(ClassEvent.date <= end)
        return self.db.scalars(query.order_by(ClassEvent.date, ClassEvent.time, ClassEvent.id)).all()

    def calendar(self, year: int, month: int) -> List[Optional[dict]]:
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        return month_grid(year, month, self.list_events(first, last))

    def payout_report(self, start: Optional[date] = None, end: Optional[date] = None) -> dict:
        """
        Per-event financials and per-person payout totals over a date range.
        """
        events = self.list_events(start, end)
        rows = []
        people: Dict[str, dict] = {}
        totals = {"revenue": 0.0, "payouts": 0.0, "house_net": 0.0}

        def credit(person_id, person_name, amount):
            entry = people.setdefault(person_id, {"user_id": person_id, "name": person_name,
                                                  "events": 0, "payout": 0.0})
            entry["events"] += 1
            entry["payout"] = round(entry["payout"] + amount, 2)

        for event in events:
            figures = event_financials(event)
            rows.append({"event_id": event.id, "name": event.name, "date": event.date,
                         "booked_seats": booked_seats(event), **figures})
            credit(event.facilitator_id, event.facilitator_name, figures["facilitator_payout"])
            if event.organizer_id:
                credit(event.organizer_id, event.organizer_name, figures["organizer_payout"])
            totals["revenue"] += figures["revenue"]
            totals["payouts"] += figures["facilitator_payout"] + figures["organizer_payout"]
            totals["house_net"] += figures["house_net"]

        return {
            "events": rows,
            "people": sorted(people.values(), key=lambda entry: (-entry["payout"], entry["name"])),
            "totals": {key: round(value, 2) for key, value in totals.items()},
        }
