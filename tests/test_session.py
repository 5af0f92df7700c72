from datetime import datetime, timedelta

from sqlalchemy import select

from sanctuary.config import SESSION_HEADER
from sanctuary.models import AuthSession, User

from tests.conftest import ADMIN, ELENA, SARAH


def test_login_returns_token_and_profile(client):
    resp = client.post("/session/login", json={"email": "Admin@Sadaya.com ", "password": "sanctuary"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["id"] == "1"
    assert body["is_impersonating"] is False
    assert body["requires_waiver"] is False
    assert "." in body["token"]


def test_login_rejects_bad_password(client):
    resp = client.post("/session/login", json={"email": ADMIN, "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid email or password"


def test_requests_without_token_are_rejected(client):
    assert client.get("/session/me").status_code == 401
    assert client.get("/dashboard", headers={SESSION_HEADER: "garbage"}).status_code == 401


def test_tampered_token_is_rejected(client, admin):
    token = admin[SESSION_HEADER]
    forged = token[:-1] + ("0" if token[-1] != "0" else "1")
    resp = client.get("/session/me", headers={SESSION_HEADER: forged})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid session signature"


def test_logout_closes_session(client, admin):
    assert client.post("/session/logout", headers=admin).status_code == 200
    assert client.get("/session/me", headers=admin).status_code == 401


def test_login_as_and_revert(client, admin):
    resp = client.post("/session/login-as", json={"user_id": "c1"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == "c1"
    assert resp.json()["message"] == "Now logged in as James Wilson"

    me = client.get("/session/me", headers=admin).json()
    assert me["user"]["id"] == "c1"
    assert me["original_user"]["id"] == "1"
    assert me["is_impersonating"] is True

    # Requests now run with the client's view
    proposals = client.get("/proposals", headers=admin).json()
    assert [p["id"] for p in proposals] == ["1"]

    resp = client.post("/session/revert", headers=admin)
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == "1"
    assert client.get("/session/me", headers=admin).json()["is_impersonating"] is False


def test_chained_login_as_keeps_first_original(client, admin):
    client.post("/session/login-as", json={"user_id": "c1"}, headers=admin)
    resp = client.post("/session/login-as", json={"user_id": "c2"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["original_user"]["id"] == "1"
    assert client.post("/session/revert", headers=admin).json()["user"]["id"] == "1"


def test_login_as_refusals(client, admin, marcus):
    resp = client.post("/session/login-as", json={"user_id": "c1"}, headers=marcus)
    assert resp.status_code == 403

    resp = client.post("/session/login-as", json={"user_id": "1"}, headers=admin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot log in as yourself"

    resp = client.post("/session/login-as", json={"user_id": "nobody"}, headers=admin)
    assert resp.status_code == 404

    client.post("/users/c2/toggle-status", headers=admin)
    resp = client.post("/session/login-as", json={"user_id": "c2"}, headers=admin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot log in as a suspended user"


def test_revert_without_impersonation(client, admin):
    resp = client.post("/session/revert", headers=admin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Not logged in as another user"


def test_deleted_impersonated_user_falls_back_to_original(client, admin, db):
    client.post("/session/login-as", json={"user_id": "ind1"}, headers=admin)
    db.delete(db.get(User, "ind1"))
    db.commit()

    me = client.get("/session/me", headers=admin)
    assert me.status_code == 200
    assert me.json()["user"]["id"] == "1"
    assert me.json()["is_impersonating"] is False


def test_deleted_user_session_is_invalidated(client, admin, aris):
    assert client.delete("/users/2", headers=admin).status_code == 200
    resp = client.get("/session/me", headers=aris)
    assert resp.status_code == 401


def test_suspended_user_cannot_log_in(client, admin):
    client.post("/users/c2/toggle-status", headers=admin)
    resp = client.post("/session/login", json={"email": ELENA, "password": "sanctuary"})
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Account suspended"


def test_suspension_blocks_open_sessions(client, admin, elena):
    client.post("/users/c2/toggle-status", headers=admin)
    resp = client.get("/dashboard", headers=elena)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Account suspended"


def test_unsigned_waiver_gates_the_app(client, login):
    resp = client.post("/session/login", json={"email": SARAH, "password": "sanctuary"})
    assert resp.json()["requires_waiver"] is True
    sarah = login(SARAH)

    resp = client.get("/dashboard", headers=sarah)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Waiver signature required"

    resp = client.post("/waivers/sign", json={"agreed": False, "signature": "Sarah Miller", "initials": "sm"},
                       headers=sarah)
    assert resp.status_code == 400

    resp = client.post("/waivers/sign", json={"agreed": True, "signature": "Sarah Miller", "initials": "sm"},
                       headers=sarah)
    assert resp.status_code == 200
    assert resp.json()["waiver"]["initials"] == "SM"
    assert resp.json()["waiver"]["organization_name"] == "Executive Wellness Group"
    assert resp.json()["user"]["waiver_signed"] is True

    assert client.get("/dashboard", headers=sarah).status_code == 200


def test_staff_cannot_sign_waiver(client, admin):
    resp = client.post("/waivers/sign", json={"agreed": True, "signature": "Admin", "initials": "SA"},
                       headers=admin)
    assert resp.status_code == 403


def test_password_change(client, login, marcus):
    resp = client.post("/session/password", json={"current_password": "wrong", "new_password": "longenough"},
                       headers=marcus)
    assert resp.status_code == 400
    resp = client.post("/session/password", json={"current_password": "sanctuary", "new_password": "short"},
                       headers=marcus)
    assert resp.status_code == 400
    resp = client.post("/session/password", json={"current_password": "sanctuary", "new_password": "longenough"},
                       headers=marcus)
    assert resp.status_code == 200
    login("marcus@sadaya.com", "longenough")


def _session_row(db, headers):
    session_id = headers[SESSION_HEADER].partition(".")[0]
    return db.scalars(select(AuthSession).where(AuthSession.session_id == session_id)).one()


def test_expired_session_is_deactivated(client, admin, db):
    row = _session_row(db, admin)
    row.expires_at = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    resp = client.get("/session/me", headers=admin)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Session expired"

    db.expire_all()
    assert _session_row(db, admin).is_active is False
    assert client.get("/session/me", headers=admin).status_code == 401


def test_session_with_deleted_original_user_is_invalidated(client, admin, db):
    client.post("/session/login-as", json={"user_id": "ind1"}, headers=admin)
    db.delete(db.get(User, "1"))
    db.commit()

    resp = client.get("/session/me", headers=admin)
    assert resp.status_code == 401
    db.expire_all()
    assert _session_row(db, admin).is_active is False
