from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from expense_tracker.core.config import get_settings
from expense_tracker.dependencies import get_expense_store
from expense_tracker.main import app

from conftest import FakeExpenseStore


def make_token(secret=None, **claims):
    settings = get_settings()
    payload = {"sub": "user-1", "email": "user1@example.com", **claims}
    return jwt.encode(payload, secret or settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def auth_client():
    """Client that exercises the real token check."""
    store = FakeExpenseStore()
    app.dependency_overrides[get_expense_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_missing_token(auth_client):
    response = auth_client.get("/api/expenses")
    assert response.status_code == 401
    assert response.json() == {"error": "Token required"}


def test_non_bearer_header(auth_client):
    response = auth_client.get("/api/expenses", headers={"Authorization": "Basic abc"})
    assert response.status_code == 401


def test_valid_token_resolves_identity(auth_client):
    headers = {"Authorization": f"Bearer {make_token()}"}

    created = auth_client.post(
        "/api/expenses",
        json={"amount": 5, "category": "Coffee", "date": "2024-02-01"},
        headers=headers,
    )

    assert created.status_code == 201
    assert created.json()["expense"]["userId"] == "user-1"


def test_wrong_signature(auth_client):
    token = make_token(secret="not-the-secret")
    response = auth_client.get("/api/expenses", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


def test_expired_token(auth_client):
    token = make_token(exp=datetime.now(timezone.utc) - timedelta(minutes=5))
    response = auth_client.get("/api/expenses", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_without_subject(auth_client):
    settings = get_settings()
    token = jwt.encode({"email": "x@example.com"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    response = auth_client.get("/api/expenses", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
