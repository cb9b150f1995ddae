import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
from auth import create_user
from realtime import change_feed
from schemas import Role


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["portfolio_test"]
    monkeypatch.setattr(database, "db", mock_db)
    return mock_db


@pytest.fixture
def client(db):
    return TestClient(main.app)


@pytest.fixture
def published(monkeypatch):
    """Record every change the routes publish, in order."""
    events = []
    publish = change_feed.publish

    def record(table, event_type, new=None, old=None):
        events.append({"table": table, "eventType": event_type.value, "new": new or {}, "old": old or {}})
        publish(table, event_type, new=new, old=old)

    monkeypatch.setattr(change_feed, "publish", record)
    return events


def login(client, email, password):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    # keep auth explicit in tests; drop the cookie the login set
    client.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    create_user("admin@example.com", "s3cret-pass", Role.admin)
    return login(client, "admin@example.com", "s3cret-pass")


@pytest.fixture
def user_headers(client):
    create_user("visitor@example.com", "visitor-pass", Role.user)
    return login(client, "visitor@example.com", "visitor-pass")
