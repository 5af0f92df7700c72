from datetime import date

from sanctuary.models import Invoice, InvoiceStatus
from sanctuary.services.dashboard import chart_months, invoice_performance


def test_chart_months():
    today = date(2026, 2, 10)
    assert chart_months("6months", today) == [
        date(2025, 9, 1), date(2025, 10, 1), date(2025, 11, 1), date(2025, 12, 1), date(2026, 1, 1), date(2026, 2, 1),
    ]
    assert chart_months("ytd", today) == [date(2026, 1, 1), date(2026, 2, 1)]


def test_invoice_performance_falls_back_to_due_date():
    today = date(2026, 2, 10)
    invoices = [
        Invoice(amount=100, issue_date=date(2026, 2, 1), status=InvoiceStatus.PAID),
        Invoice(amount=50, issue_date=None, due_date=date(2026, 1, 20), status=InvoiceStatus.DRAFT),
        Invoice(amount=999, issue_date=date(2024, 1, 1), status=InvoiceStatus.PAID),
    ]
    buckets = invoice_performance(invoices, "ytd", today)
    assert [(b["label"], b["value"]) for b in buckets] == [("Jan", 50.0), ("Feb", 100.0)]


def test_admin_kpis_and_priority_actions(client, admin):
    data = client.get("/dashboard", headers=admin).json()
    assert data["kpis"] == {"proposals": 2, "pending_payouts": 26300.0, "active_tasks": 6, "open_tickets": 1}
    assert [task["id"] for task in data["priority_actions"]["tasks"]] == ["t1", "t4", "t5"]
    assert [ticket["id"] for ticket in data["priority_actions"]["tickets"]] == ["TCK-1001"]
    assert len(data["chart"]["months"]) == 6


def test_chart_bucket_totals(client, admin):
    months = client.get("/dashboard/chart", headers=admin).json()
    today = date.today()
    index = today.year * 12 + (today.month - 1) - 1
    last_month = f"{index // 12:04d}-{index % 12 + 1:02d}"
    bucket = next(entry for entry in months if entry["month"] == last_month)
    assert bucket["value"] == 11700.0


def test_client_dashboard_is_scoped(client, michael, james):
    kpis = client.get("/dashboard", headers=michael).json()["kpis"]
    assert kpis == {"proposals": 0, "pending_payouts": 0.0, "active_tasks": 0, "open_tickets": 0}

    james_view = client.get("/dashboard", headers=james).json()
    assert james_view["kpis"]["proposals"] == 1
    assert all(entry["value"] == 0 for entry in james_view["chart"]["months"])


def test_unknown_period(client, admin):
    assert client.get("/dashboard?period=weekly", headers=admin).status_code == 400
    assert client.get("/dashboard/chart?period=weekly", headers=admin).status_code == 400


def test_activity_feed_and_preferences(client, admin):
    feed = client.get("/dashboard/activity", headers=admin).json()
    assert feed[0]["id"] == "dr-INV-2026-003"
    assert "tk-TCK-1001" in [entry["id"] for entry in feed]

    prefs = client.put("/dashboard/preferences", json={"tickets": False}, headers=admin).json()
    assert prefs["tickets"] is False
    assert prefs["invoices"] is True
    assert client.get("/dashboard/preferences", headers=admin).json()["tickets"] is False

    feed = client.get("/dashboard/activity", headers=admin).json()
    assert all(entry["type"] != "ticket" for entry in feed)
