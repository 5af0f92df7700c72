from datetime import date, timedelta

from sanctuary.models import ClassEvent, RecurringCycle, PayoutType
from sanctuary.services.classes import (
    add_months, occurrence_dates, resolve_occurrence_count, event_financials, month_grid, payout_amount,
)


def _event_body(**overrides):
    body = {
        "name": "Moonlight Sound Bath",
        "date": (date.today() + timedelta(days=3)).isoformat(),
        "time": "20:00",
        "price": 40,
        "total_seats": 8,
        "facilitator_id": "2",
        "facilitator_payout_type": "Percentage",
        "facilitator_payout_value": 30,
    }
    body.update(overrides)
    return body


def test_add_months_clamps_to_month_end():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)


def test_occurrence_dates():
    start = date(2026, 3, 2)
    assert occurrence_dates(start, RecurringCycle.NONE, 5) == [start]
    assert occurrence_dates(start, RecurringCycle.BIWEEKLY, 3) == [start, date(2026, 3, 16), date(2026, 3, 30)]
    assert occurrence_dates(date(2026, 1, 31), RecurringCycle.MONTHLY, 3) == [
        date(2026, 1, 31), date(2026, 2, 28), date(2026, 3, 31),
    ]


def test_resolve_occurrence_count():
    assert resolve_occurrence_count(RecurringCycle.WEEKLY, None) == 8
    assert resolve_occurrence_count(RecurringCycle.DAILY, None) == 7
    assert resolve_occurrence_count(RecurringCycle.MONTHLY, 0) == 6
    assert resolve_occurrence_count(RecurringCycle.DAILY, 100) == 52
    assert resolve_occurrence_count(RecurringCycle.NONE, 5) == 1


def test_payout_maths():
    assert payout_amount(PayoutType.FLAT, 15, 75) == 15
    assert payout_amount(PayoutType.PERCENTAGE, 50, 900) == 450
    assert payout_amount(None, 50, 900) == 0

    event = ClassEvent(price=150, total_seats=10, available_seats=4,
                       facilitator_payout_type=PayoutType.PERCENTAGE, facilitator_payout_value=50)
    assert event_financials(event) == {
        "revenue": 900.0, "facilitator_payout": 450.0, "organizer_payout": 0.0, "house_net": 450.0,
    }


def test_month_grid_leading_blanks():
    # April 2026 starts on a Wednesday
    event = ClassEvent(name="Yin", date=date(2026, 4, 10), time="09:00")
    cells = month_grid(2026, 4, [event])
    assert cells[:3] == [None, None, None]
    assert len(cells) == 33
    assert cells[3]["day"] == 1
    assert cells[12]["events"] == [event]

    assert month_grid(2026, 3, [])[0]["day"] == 1


def test_calendar_endpoint(client, james):
    resp = client.get("/classes/calendar?year=2026&month=4", headers=james)
    assert resp.status_code == 200
    assert resp.json()["cells"][:3] == [None, None, None]
    assert client.get("/classes/calendar?year=2026&month=13", headers=james).status_code == 400
    assert client.get("/classes/calendar?year=0&month=1", headers=james).status_code == 400
    assert client.get("/classes/calendar?year=10000&month=1", headers=james).status_code == 400


def test_create_weekly_series_with_default_count(client, admin):
    resp = client.post("/classes", json=_event_body(is_recurring=True, recurring_cycle="Weekly"), headers=admin)
    assert resp.status_code == 200
    events = resp.json()["events"]
    assert len(events) == 8
    assert len({event["series_id"] for event in events}) == 1
    assert events[1]["date"] == (date.today() + timedelta(days=10)).isoformat()
    assert all(event["available_seats"] == 8 for event in events)

    deleted = client.delete(f"/classes/{events[2]['id']}?scope=series", headers=admin).json()
    assert deleted["deleted"] == 8


def test_single_event_and_refusals(client, admin, elena):
    events = client.post("/classes", json=_event_body(), headers=admin).json()["events"]
    assert len(events) == 1
    assert events[0]["series_id"] is None

    assert client.post("/classes", json=_event_body(facilitator_id="c1"), headers=admin).status_code == 400
    assert client.post("/classes", json=_event_body(), headers=elena).status_code == 403
    assert client.delete("/classes/ev-404", headers=admin).status_code == 404


def test_booking_flow(client, admin, michael, james, aris):
    booked = client.post("/classes/ev-1/book", headers=michael).json()
    assert booked["available_seats"] == 11
    assert booked["booked_by_me"] is True
    assert client.post("/classes/ev-1/book", headers=michael).status_code == 400
    assert client.post("/classes/ev-1/book", headers=aris).status_code == 403

    cancelled = client.post("/classes/ev-2/cancel", headers=james).json()
    assert cancelled["available_seats"] == 5
    assert client.post("/classes/ev-2/cancel", headers=james).status_code == 400


def test_full_class_refuses_booking(client, admin, michael):
    event_id = client.post("/classes", json=_event_body(total_seats=0), headers=admin).json()["events"][0]["id"]
    resp = client.post(f"/classes/{event_id}/book", headers=michael)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Class is full"


def test_attendees_visible_to_admin_and_facilitator(client, admin, aris, james):
    assert client.get("/classes/ev-1", headers=admin).json()["attendees"] == ["c1", "c2"]
    assert client.get("/classes/ev-1", headers=aris).json()["financials"]["facilitator_payout"] == 15
    assert "attendees" not in client.get("/classes/ev-1", headers=james).json()
    assert "attendees" not in client.get("/classes/ev-2", headers=aris).json()


def test_payout_report(client, admin, aris, james):
    report = client.get("/classes/payouts", headers=admin).json()
    assert report["totals"] == {"revenue": 975.0, "payouts": 465.0, "house_net": 510.0}
    assert [entry["user_id"] for entry in report["people"]] == ["1", "2"]

    own = client.get("/classes/payouts", headers=aris).json()
    assert own["people"] == [{"user_id": "2", "name": "Dr. Aris (Naturopath)", "events": 1, "payout": 15.0}]
    assert own["totals"] is None

    assert client.get("/classes/payouts", headers=james).status_code == 403


def test_payout_report_needs_view_classes(client, admin, marcus):
    assert client.get("/classes/payouts", headers=marcus).status_code == 200
    resp = client.post("/users/3/permissions/toggle", json={"permission": "view_classes"}, headers=admin)
    assert "view_classes" not in resp.json()["permissions"]
    assert client.get("/classes/payouts", headers=marcus).status_code == 403
