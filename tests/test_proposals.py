from datetime import date

from sanctuary.models import Invoice, Proposal, User, InvoiceStatus, ProposalStatus
from sanctuary.services.proposals import ProposalManager


def test_client_sees_only_their_organization(client, admin, james, elena):
    assert len(client.get("/proposals", headers=admin).json()) == 2
    assert [p["id"] for p in client.get("/proposals", headers=james).json()] == ["1"]
    assert client.get("/proposals/2", headers=james).status_code == 404
    assert client.get("/proposals/1", headers=elena).status_code == 404


def test_create_draft_from_services(client, admin):
    resp = client.post("/proposals", json={
        "organization_id": "org3",
        "services": ["Corporate Wellness Program", "Integration Coaching"],
        "notes": "Board wants measurable outcomes.",
    }, headers=admin)
    assert resp.status_code == 200
    proposal = resp.json()
    assert proposal["status"] == "Draft"
    assert proposal["client_name"] == "Serenity Foundation"
    assert proposal["estimated_upfront"] == 5000
    assert proposal["estimated_retainer"] == 6000
    assert [line["item"] for line in proposal["content"]["investment"]] == [
        "Corporate Wellness Program", "Integration Coaching",
    ]


def test_create_draft_needs_services(client, admin):
    resp = client.post("/proposals", json={"organization_id": "org3", "services": []}, headers=admin)
    assert resp.status_code == 400
    resp = client.post("/proposals", json={"organization_id": "nope", "services": ["Retreat Stay"]}, headers=admin)
    assert resp.status_code == 404


def test_content_edit_recomputes_estimates(client, admin):
    resp = client.put("/proposals/2/content", json={"content": {"investment": [
        {"item": "2-Week Retreat", "cost_initial": 6000, "cost_monthly": 0},
        {"item": "Integration Coaching", "cost_initial": 0, "cost_monthly": 1500},
    ]}}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["estimated_upfront"] == 6000
    assert resp.json()["estimated_retainer"] == 1500
    # Untouched sections survive
    assert resp.json()["content"]["hero"]["subtitle"] == "Path to Integration"


def test_content_edit_refuses_non_numeric_investment(client, admin):
    resp = client.put("/proposals/2/content", json={"content": {"investment": [
        {"item": "2-Week Retreat", "cost_initial": "abc"},
    ]}}, headers=admin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Investment lines need numeric costs"

    resp = client.put("/proposals/2/content", json={"content": {"investment": "oops"}}, headers=admin)
    assert resp.status_code == 400
    resp = client.post("/proposals/2/save-draft", json={"content": {"investment": [["x", 1]]}}, headers=admin)
    assert resp.status_code == 400

    # Stored content is unchanged
    proposal = client.get("/proposals/2", headers=admin).json()
    assert all(isinstance(line, dict) for line in proposal["content"]["investment"])



def test_lifecycle_draft_review_send(client, admin):
    assert client.post("/proposals/2/submit-review", headers=admin).json()["status"] == "Review Pending"
    assert client.post("/proposals/2/send", headers=admin).json()["status"] == "Sent to Client"
    assert client.post("/proposals/2/send", headers=admin).status_code == 400
    assert client.post("/proposals/2/save-draft", headers=admin).json()["status"] == "Draft"


def test_accept_raises_upfront_draft_invoice(client, admin, james):
    resp = client.post("/proposals/1/accept", headers=james)
    assert resp.status_code == 200
    assert resp.json()["status"] == "Accepted"
    assert "draft invoice" in resp.json()["message"]

    drafts = client.get("/invoices", params={"status": "Draft"}, headers=admin).json()
    raised = [inv for inv in drafts if inv["proposal_id"] == "1"]
    assert len(raised) == 1
    invoice = raised[0]
    assert invoice["client_name"] == "Executive Wellness Group"
    assert invoice["type"] == "Upfront"
    assert invoice["terms"] == "Net 30"
    assert invoice["amount"] == 12000
    assert [item["description"] for item in invoice["items"]] == ["Retreat Stay (4 Weeks)", "Naturopathic Package"]

    # Accepted proposals are locked
    assert client.post("/proposals/1/reject", headers=james).status_code == 400
    resp = client.put("/proposals/1/content", json={"content": {"strategy": []}}, headers=admin)
    assert resp.status_code == 400


def test_reject(client, james):
    resp = client.post("/proposals/1/reject", headers=james)
    assert resp.status_code == 200
    assert resp.json()["status"] == "Rejected"


def test_staff_without_edit_cannot_decide(client, aris):
    assert client.post("/proposals/1/accept", headers=aris).status_code == 403


def test_strategy_locked_until_paid_then_goes_live(client, admin, james):
    resp = client.post("/proposals/1/strategy", json={"answers": {"goal": "fill the spring retreats"}},
                       headers=james)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Strategy generation is locked until the proposal invoice is paid"

    client.post("/proposals/1/accept", headers=james)
    invoice_id = next(inv["id"] for inv in client.get("/invoices", headers=admin).json() if inv["proposal_id"] == "1")
    assert client.post(f"/invoices/{invoice_id}/send", headers=admin).status_code == 200
    assert client.post(f"/invoices/{invoice_id}/pay", headers=james).status_code == 200
    assert client.get("/proposals/1", headers=james).json()["is_paid"] is True

    resp = client.post("/proposals/1/strategy", json={"answers": {"goal": "fill the spring retreats"}},
                       headers=james)
    assert resp.status_code == 200
    marketing = resp.json()["marketing_data"]
    assert marketing["status"] == "Pending Team Approval"
    assert "fill the spring retreats" in marketing["content"]["executive_summary"]

    # Only approved strategies can go live
    assert client.post("/proposals/1/strategy/accept", headers=james).status_code == 400
    assert client.post("/proposals/1/strategy/approve", headers=admin).json()["marketing_data"]["status"] == "Approved"

    resp = client.post("/proposals/1/strategy/request-change", json={"note": "Softer tone please"}, headers=james)
    assert resp.json()["marketing_data"]["status"] == "Changes Requested"
    assert resp.json()["marketing_data"]["feedback_history"][0]["author"] == "James Wilson"

    resp = client.put("/proposals/1/strategy", json={"content": {"executive_summary": "Gentler plan"}}, headers=admin)
    assert resp.json()["marketing_data"]["status"] == "Approved"

    assert client.post("/proposals/1/strategy/accept", headers=admin).status_code == 403
    resp = client.post("/proposals/1/strategy/accept", headers=james)
    assert resp.json()["marketing_data"]["status"] == "Live"
    assert client.put("/proposals/1/strategy", json={"content": {}}, headers=admin).status_code == 400


def test_strategy_questions_follow_services(client, james):
    questions = client.get("/proposals/1/strategy/questions", headers=james).json()
    assert [q["id"] for q in questions] == ["goal"]


def test_paid_by_matching_amount(db):
    proposal = db.get(Proposal, "1")
    db.add(Invoice(id="INV-TEST-1", client_name=proposal.client_name, status=InvoiceStatus.PAID,
                   amount=11950, items=[], terms="Net 14", issue_date=date(2026, 1, 1)))
    db.commit()
    success, updated, message = ProposalManager(db).generate_strategy("1", {"goal": "growth"})
    assert success, message


def test_can_decide_rules(db):
    manager = ProposalManager(db)
    proposal = db.get(Proposal, "1")
    assert manager.can_decide(db.get(User, "c1"), proposal)
    assert not manager.can_decide(db.get(User, "c2"), proposal)
    assert manager.can_decide(db.get(User, "3"), proposal)
    assert not manager.can_decide(db.get(User, "2"), proposal)
    assert proposal.status == ProposalStatus.SENT_TO_CLIENT
