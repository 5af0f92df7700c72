from types import SimpleNamespace

from sanctuary.models import User, UserRole
from sanctuary.services.access import (
    has_permission, toggle_permission, visible_organizations, filter_invoices, filter_tickets,
    filter_projects, filter_waivers, invoice_owner_name,
)


def _user(**fields):
    fields.setdefault("permissions", [])
    fields.setdefault("role", UserRole.EMPLOYEE)
    return SimpleNamespace(**fields)


def test_has_permission_honours_legacy_invoice_alias():
    legacy = _user(permissions=["view_invoices"])
    assert has_permission(legacy, "view_finance")
    assert not has_permission(legacy, "edit_finance")
    assert not has_permission(None, "view_finance")


def test_removing_view_drops_edit():
    assert toggle_permission(["view_finance", "edit_finance", "view_support"], "view_finance") == ["view_support"]


def test_adding_edit_adds_view():
    assert toggle_permission(["view_support"], "edit_finance") == ["view_support", "edit_finance", "view_finance"]


def test_removing_edit_keeps_view():
    assert toggle_permission(["view_finance", "edit_finance"], "edit_finance") == ["view_finance"]


def test_visible_organizations_per_role(db):
    admin, aris, james = db.get(User, "1"), db.get(User, "2"), db.get(User, "c1")
    assert [org.id for org in visible_organizations(db, admin)] == ["org1", "org2", "org3"]
    assert [org.id for org in visible_organizations(db, james)] == ["org1"]
    # Staff see the whole directory but only assigned organizations in operations
    assert len(visible_organizations(db, aris)) == 3
    assert [org.id for org in visible_organizations(db, aris, scope="operations")] == ["org1", "org2"]
    assert [org.id for org in visible_organizations(db, admin, search="serenity")] == ["org3"]


def test_client_invoice_view_excludes_drafts_and_other_clients(db):
    james = db.get(User, "c1")
    assert invoice_owner_name(db, james) == "Executive Wellness Group"
    assert filter_invoices(db, james) == []
    assert len(filter_invoices(db, db.get(User, "1"))) == 15

    michael = db.get(User, "ind1")
    assert invoice_owner_name(db, michael) == "Michael Chen"


def test_ticket_buckets(db):
    admin = db.get(User, "1")
    assert {t.id for t in filter_tickets(db, admin, "Active")} == {"TCK-1001", "TCK-1002"}
    assert filter_tickets(db, admin, "Archived") == []
    assert [t.id for t in filter_tickets(db, db.get(User, "c1"))] == ["TCK-1001"]
    assert [t.id for t in filter_tickets(db, db.get(User, "c2"))] == ["TCK-1002"]


def test_project_visibility(db):
    assert [p.id for p in filter_projects(db, db.get(User, "1"))] == ["p1", "p2", "p3"]
    assert [p.id for p in filter_projects(db, db.get(User, "c1"))] == ["p1", "p2"]
    # Staff see projects they are members of
    assert [p.id for p in filter_projects(db, db.get(User, "2"))] == ["p1"]


def test_waiver_visibility(db):
    assert [w.id for w in filter_waivers(db, db.get(User, "c1"))] == ["wv-1"]
    assert len(filter_waivers(db, db.get(User, "1"))) == 2
    assert [w.id for w in filter_waivers(db, db.get(User, "1"), search="holistic")] == ["wv-2"]
