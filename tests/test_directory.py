from sanctuary.models import Organization, ChatChannel, User
from sanctuary.services.directory import DirectoryManager


def _new_org(**overrides):
    body = {
        "name": "Mountain Clinic",
        "industry": "Healthcare",
        "admin_first_name": "Nora",
        "admin_last_name": "Hale",
        "admin_email": "Nora@Mountain.example",
    }
    body.update(overrides)
    return body


def test_list_organizations_by_role(client, admin, james):
    assert len(client.get("/organizations", headers=admin).json()) == 3
    assert [org["id"] for org in client.get("/organizations", headers=james).json()] == ["org1"]
    found = client.get("/organizations", params={"search": "life"}, headers=admin).json()
    assert [org["name"] for org in found] == ["Holistic Life Path"]


def test_client_cannot_open_other_organization(client, james):
    assert client.get("/organizations/org1", headers=james).status_code == 200
    assert client.get("/organizations/org2", headers=james).status_code == 403


def test_create_organization_with_admin_user(client, admin):
    resp = client.post("/organizations", json=_new_org(), headers=admin)
    assert resp.status_code == 200
    org = resp.json()
    assert org["status"] == "Onboarding"
    assert [user["email"] for user in org["users"]] == ["nora@mountain.example"]
    assert org["users"][0]["name"] == "Nora Hale"
    assert org["users"][0]["role"] == "CLIENT"


def test_duplicate_organization_and_email_are_conflicts(client, admin):
    resp = client.post("/organizations", json=_new_org(name="Holistic Life Path"), headers=admin)
    assert resp.status_code == 409

    resp = client.post("/organizations", json=_new_org(admin_email="JAMES@corpwell.com"), headers=admin)
    assert resp.status_code == 409
    assert "already in use" in resp.json()["detail"]
    # Nothing half-created
    assert len(client.get("/organizations", headers=admin).json()) == 3


def test_directory_edits_need_edit_users(client, marcus, james):
    assert client.post("/organizations", json=_new_org(), headers=marcus).status_code == 403
    assert client.post("/organizations", json=_new_org(), headers=james).status_code == 403


def test_delete_organization_removes_users_and_chat(client, admin, db):
    assert client.delete("/organizations/org2", headers=admin).status_code == 200
    assert db.get(Organization, "org2") is None
    assert db.get(User, "c2") is None
    assert db.get(ChatChannel, "ch-3") is None
    assert client.delete("/organizations/org2", headers=admin).status_code == 404


def test_toggle_organization_status(client, admin):
    assert client.post("/organizations/org1/toggle-status", headers=admin).json()["status"] == "Suspended"
    assert client.post("/organizations/org1/toggle-status", headers=admin).json()["status"] == "Active"


def test_toggle_assignment(client, admin):
    org = client.post("/organizations/org3/assign", json={"employee_id": "3"}, headers=admin).json()
    assert org["assigned_employees"] == ["3"]
    org = client.post("/organizations/org3/assign", json={"employee_id": "3"}, headers=admin).json()
    assert org["assigned_employees"] == []
    resp = client.post("/organizations/org3/assign", json={"employee_id": "c1"}, headers=admin)
    assert resp.status_code == 404


def test_add_people(client, admin):
    member = client.post("/team", json={"first_name": "Lena", "last_name": "Moss", "email": "lena@sadaya.com"},
                         headers=admin).json()
    assert member["kind"] == "team"
    assert member["role"] == "EMPLOYEE"

    client_user = client.post("/organizations/org3/users",
                              json={"first_name": "Omar", "email": "omar@serenity.org"}, headers=admin).json()
    assert client_user["organization_id"] == "org3"
    assert client_user["waiver_signed"] is False

    individual = client.post("/individuals", json={"first_name": "Ivy", "email": "ivy@example.com"},
                             headers=admin).json()
    assert individual["kind"] == "individual"
    assert individual["organization_id"] is None

    team = client.get("/team", params={"search": "lena"}, headers=admin).json()
    assert [user["id"] for user in team] == [member["id"]]

    resp = client.post("/individuals", json={"first_name": "Dup", "email": "IVY@example.com"}, headers=admin)
    assert resp.status_code == 409


def test_permission_toggle_keeps_pairs_consistent(client, admin):
    user = client.post("/users/c2/permissions/toggle", json={"permission": "edit_support"}, headers=admin).json()
    assert "edit_support" in user["permissions"]
    user = client.post("/users/c2/permissions/toggle", json={"permission": "view_support"}, headers=admin).json()
    assert "view_support" not in user["permissions"]
    assert "edit_support" not in user["permissions"]

    resp = client.post("/users/1/permissions/toggle", json={"permission": "view_support"}, headers=admin)
    assert resp.status_code == 400


def test_update_user(client, admin):
    resp = client.put("/users/3", json={"phone": "555-9999", "permissions": ["view_dashboard", "bogus"]},
                      headers=admin)
    assert resp.status_code == 200
    assert resp.json()["phone"] == "555-9999"
    assert resp.json()["permissions"] == ["view_dashboard"]

    resp = client.put("/users/3", json={"email": "aris@sadaya.com"}, headers=admin)
    assert resp.status_code == 409


def test_super_admin_is_protected(client, admin):
    assert client.delete("/users/1", headers=admin).status_code == 400
    assert client.post("/users/1/toggle-status", headers=admin).status_code == 400


def test_get_user_respects_organization(client, james):
    assert client.get("/users/c3", headers=james).status_code == 200
    assert client.get("/users/c2", headers=james).status_code == 403
    assert client.get("/users/c1", headers=james).status_code == 200


def test_audit_log_is_super_admin_only(client, admin, marcus):
    client.post("/organizations/org1/toggle-status", headers=admin)
    entries = client.get("/audit", headers=admin).json()
    assert entries[0]["event_type"] == "org_status_changed"
    assert client.get("/audit", headers=marcus).status_code == 403


def test_delete_user_unassigns_from_organizations(db):
    manager = DirectoryManager(db)
    success, message = manager.delete_user("1", "2")
    assert success, message
    assert "2" not in db.get(Organization, "org1").assigned_employees
    success, message = manager.delete_user("3", "3")
    assert not success
    assert message == "You cannot delete your own account"
