"""
Shared fixtures: an in-memory database reseeded for every test, the API
test client and per-user session headers.
"""

import os

# Must be set before sanctuary.config is imported
os.environ["SADAYA_DB_URL"] = "sqlite://"
os.environ["SADAYA_BCRYPT_ROUNDS"] = "4"
os.environ["SADAYA_SEED_DEMO_DATA"] = "1"

import pytest
from fastapi.testclient import TestClient

from sanctuary.config import DEFAULT_PASSWORD, SESSION_HEADER
from sanctuary.database import SessionLocal, reset_db
from sanctuary.service import app

ADMIN = "admin@sadaya.com"
ARIS = "aris@sadaya.com"
MARCUS = "marcus@sadaya.com"
JAMES = "james@corpwell.com"
SARAH = "sarah@corpwell.com"
ELENA = "elena@lifepath.com"
MICHAEL = "michael@gmail.com"


@pytest.fixture(autouse=True)
def fresh_db():
    reset_db(seed=True)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def login(client):
    """Log in by e-mail and return the headers carrying the session token."""
    def _login(email, password=DEFAULT_PASSWORD):
        resp = client.post("/session/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {SESSION_HEADER: resp.json()["token"]}
    return _login


@pytest.fixture
def admin(login):
    return login(ADMIN)


@pytest.fixture
def aris(login):
    return login(ARIS)


@pytest.fixture
def marcus(login):
    return login(MARCUS)


@pytest.fixture
def james(login):
    return login(JAMES)


@pytest.fixture
def elena(login):
    return login(ELENA)


@pytest.fixture
def michael(login):
    return login(MICHAEL)
