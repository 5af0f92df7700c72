from datetime import date, timedelta

from sanctuary.models import Invoice, InvoiceStatus
from sanctuary.services.invoices import InvoiceManager, calculate_due_date, normalize_items


def _draft(client, headers, **overrides):
    body = {
        "client_name": "Executive Wellness Group",
        "items": [{"description": "Breathwork series", "cost": 1200}, {"description": "Sound bath", "cost": 300}],
        "terms": "Net 14",
    }
    body.update(overrides)
    return client.post("/invoices", json=body, headers=headers)


def test_due_date_from_terms():
    issued = date(2026, 3, 1)
    assert calculate_due_date(issued, "Net 14") == date(2026, 3, 15)
    assert calculate_due_date(issued, "Net 30") == date(2026, 3, 31)
    assert calculate_due_date(issued, "Immediate") == issued
    assert calculate_due_date(None, "Net 30") is None


def test_normalize_items_drops_blank_lines():
    assert normalize_items([{"description": " Reiki ", "cost": "80"}, {"description": "", "cost": 10}]) == [
        {"description": "Reiki", "cost": 80.0},
    ]


def test_create_draft_sums_items(client, admin):
    resp = _draft(client, admin)
    assert resp.status_code == 200
    invoice = resp.json()
    assert invoice["status"] == "Draft"
    assert invoice["amount"] == 1500
    assert invoice["id"].startswith(f"INV-{date.today().year}-")
    assert invoice["issue_date"] is None


def test_create_requires_items_and_finance_rights(client, admin, marcus):
    assert _draft(client, admin, items=[]).status_code == 400
    assert _draft(client, admin, terms="Net 90").status_code == 400
    # view_invoices is a view-only grant
    assert _draft(client, marcus).status_code == 403


def test_edit_only_drafts(client, admin):
    invoice_id = _draft(client, admin).json()["id"]
    resp = client.put(f"/invoices/{invoice_id}", json={"items": [{"description": "Retreat day", "cost": 900}]},
                      headers=admin)
    assert resp.json()["amount"] == 900

    assert client.put("/invoices/INV-2026-002", json={"client_name": "Someone"}, headers=admin).status_code == 400


def test_send_sets_issue_and_due_dates(client, admin):
    invoice_id = _draft(client, admin, terms="Net 30").json()["id"]
    sent = client.post(f"/invoices/{invoice_id}/send", headers=admin).json()
    assert sent["status"] == "Pending"
    assert sent["issue_date"] == date.today().isoformat()
    assert sent["due_date"] == (date.today() + timedelta(days=30)).isoformat()
    assert client.post(f"/invoices/{invoice_id}/send", headers=admin).status_code == 400


def test_pay_only_pending_or_overdue(client, admin):
    assert client.post("/invoices/INV-2026-005/pay", headers=admin).json()["status"] == "Paid"
    assert client.post("/invoices/INV-2026-005/pay", headers=admin).status_code == 400
    assert client.post("/invoices/INV-2026-003/pay", headers=admin).status_code == 400


def test_client_invoice_visibility(client, admin, james):
    invoice_id = _draft(client, admin).json()["id"]
    assert client.get("/invoices", headers=james).json() == []
    assert client.get(f"/invoices/{invoice_id}", headers=james).status_code == 404

    client.post(f"/invoices/{invoice_id}/send", headers=admin)
    assert [inv["id"] for inv in client.get("/invoices", headers=james).json()] == [invoice_id]
    assert client.get("/invoices/INV-2026-002", headers=james).status_code == 404
    assert client.post("/invoices/INV-2026-002/pay", headers=james).status_code == 404


def test_individual_without_finance_access(client, michael):
    assert client.get("/invoices", headers=michael).status_code == 403


def test_email_draft(client, admin):
    email = client.get("/invoices/INV-2026-002/email", headers=admin).json()
    assert email["subject"] == "Invoice INV-2026-002"
    assert "Apex Innovations" in email["body"]
    assert "$2,500.00" in email["body"]


def test_delete(client, admin):
    assert client.delete("/invoices/INV-2026-003", headers=admin).status_code == 200
    assert client.get("/invoices/INV-2026-003", headers=admin).status_code == 404


def test_mark_overdue_sweeps_stale_pending(db):
    manager = InvoiceManager(db)
    today = date.today()
    ok, invoice, _ = manager.create_draft("1", "Zenith Health", [{"description": "Audit", "cost": 100}])
    manager.approve_and_send("1", invoice.id, today=today - timedelta(days=40))

    marked = manager.mark_overdue(today)
    assert [inv.id for inv in marked] == [invoice.id]
    assert db.get(Invoice, invoice.id).status == InvoiceStatus.OVERDUE
    # Seeded pending invoices are not yet due
    assert db.get(Invoice, "INV-2026-002").status == InvoiceStatus.PENDING
