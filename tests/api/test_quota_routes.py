from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.api.routes import quota, resources
from app.main import app
from app.quota.errors import QuotaExceededError
from app.quota.service import decide
from app.quota.types import QuotaSummary, QuotaUsageItem, ResourceKind
from app.resources.service import CreatedResource


@pytest.fixture
def client(monkeypatch, fake_session_local: SimpleNamespace) -> TestClient:
    monkeypatch.setattr(quota, "SessionLocal", fake_session_local)
    monkeypatch.setattr(resources, "SessionLocal", fake_session_local)
    return TestClient(app)


def test_can_create_reports_denial(monkeypatch, client: TestClient) -> None:
    async def _can_create(session, *, user_id: int, resource_kind: ResourceKind):
        return decide(resource_kind=resource_kind, tier="free", limit=1, current=1)

    monkeypatch.setattr(quota.QuotaService, "can_create", _can_create)

    response = client.get("/quota/products/can-create", headers={"X-User-Id": "1"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["allowed"] is False
    assert payload["message"] == (
        "You have reached your products limit (1) for the free plan. "
        "Please upgrade your subscription to create more products."
    )


def test_can_create_unknown_kind(client: TestClient) -> None:
    response = client.get("/quota/stickers/can-create", headers={"X-User-Id": "1"})
    assert response.status_code == 422


def test_summary(monkeypatch, client: TestClient) -> None:
    async def _summary(session, *, user_id: int) -> QuotaSummary:
        return QuotaSummary(
            tier="basic",
            can_edit_playlists=False,
            items=[
                QuotaUsageItem(
                    resource_kind=ResourceKind.MEDIA,
                    limit=10,
                    current=4,
                    usage_percent=40,
                )
            ],
        )

    monkeypatch.setattr(quota.QuotaService, "summary", _summary)

    response = client.get("/quota/summary", headers={"X-User-Id": "1"})

    assert response.status_code == 200
    assert response.json() == {
        "tier": "basic",
        "can_edit_playlists": False,
        "items": [{"resource_kind": "media", "limit": 10, "current": 4, "usage_percent": 40}],
    }


def test_create_resource_over_quota(monkeypatch, client: TestClient) -> None:
    async def _create(session, **kwargs):
        raise QuotaExceededError(
            decide(resource_kind=ResourceKind.PRODUCTS, tier="free", limit=1, current=1)
        )

    monkeypatch.setattr(resources.ResourceService, "create", _create)

    response = client.post(
        "/resources/products",
        json={"name": "Hoodie"},
        headers={"X-User-Id": "1"},
    )

    assert response.status_code == 403
    detail = response.json()["detail"]
    assert detail["code"] == "E_QUOTA_EXCEEDED"
    assert detail["resource_kind"] == "products"
    assert detail["tier"] == "free"
    assert detail["limit"] == 1
    assert detail["current"] == 1
    assert detail["message"].startswith("You have reached your products limit (1)")


def test_create_resource(monkeypatch, client: TestClient) -> None:
    async def _create(session, *, owner_id, resource_kind, name, requires_activation_code):
        return CreatedResource(
            id=31,
            resource_kind=resource_kind,
            owner_id=owner_id,
            name=name,
            created_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
            limit=10,
            current=5,
        )

    monkeypatch.setattr(resources.ResourceService, "create", _create)

    response = client.post(
        "/resources/playlists",
        json={"name": "Tour 2026", "requires_activation_code": True},
        headers={"X-User-Id": "1"},
    )

    assert response.status_code == 201
    assert response.json()["id"] == 31
    assert response.json()["current"] == 5
