"""
Portal pages rendered against the real API through a patched HTTP layer.
"""

import pytest
import requests

from portal import service as portal
from sanctuary.config import DEFAULT_PASSWORD

ADMIN = "admin@sadaya.com"
SARAH = "sarah@corpwell.com"


@pytest.fixture
def web(client, monkeypatch):
    def fake_request(method, url, headers=None, timeout=None, **kwargs):
        assert url.startswith(portal.BASE_URL)
        return client.request(method, url[len(portal.BASE_URL):], headers=headers, **kwargs)

    monkeypatch.setattr(portal.requests, "request", fake_request)
    portal.app.config["TESTING"] = True
    return portal.app.test_client()


def _sign_in(web, email, password=DEFAULT_PASSWORD):
    return web.post("/login", data={"email": email, "password": password})


def test_pages_require_login(web):
    resp = web.get("/")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")


def test_login_lands_on_dashboard(web):
    resp = _sign_in(web, ADMIN)
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/")

    page = web.get("/")
    assert page.status_code == 200
    assert "Welcome, Sadaya Admin" in page.get_data(as_text=True)


def test_bad_login_shows_error(web):
    resp = _sign_in(web, ADMIN, "wrong-password")
    assert resp.status_code == 401
    assert "Invalid email or password" in resp.get_data(as_text=True)


def test_unsigned_client_is_sent_to_waiver(web):
    resp = _sign_in(web, SARAH)
    assert resp.headers["Location"].endswith("/waiver")

    # Any other page bounces back to the waiver while it is unsigned
    resp = web.get("/invoices")
    assert resp.headers["Location"].endswith("/waiver")

    resp = web.post("/waiver", data={"agreed": "on", "signature": "Sarah Miller", "initials": "sm"})
    assert resp.headers["Location"].endswith("/")
    assert web.get("/invoices").status_code == 200


def test_organization_page_and_logout(web):
    _sign_in(web, ADMIN)
    page = web.get("/organizations?search=holistic").get_data(as_text=True)
    assert "Holistic Life Path" in page
    assert "Executive Wellness Group" not in page

    resp = web.post("/logout")
    assert resp.headers["Location"].endswith("/login")
    assert web.get("/").status_code == 302


def test_api_unreachable(web, monkeypatch):
    def down(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(portal.requests, "request", down)
    resp = _sign_in(web, ADMIN)
    assert resp.status_code == 502
