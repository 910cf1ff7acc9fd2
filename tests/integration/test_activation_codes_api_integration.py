from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import app
from tests.integration.entitlement_fixtures import create_gated_playlist, create_user


def _client() -> AsyncClient:
    return AsyncClient(
        transport=ASGITransport(app=app, client=("127.0.0.1", 8080)),
        base_url="http://testserver",
    )


@pytest.mark.asyncio
async def test_issue_redeem_and_check_access_over_http() -> None:
    owner_id = await create_user()
    fan_id = await create_user()
    playlist_id = await create_gated_playlist(owner_id=owner_id)

    async with _client() as client:
        created = await client.post(
            "/activation-codes",
            json={
                "content_type": "playlist",
                "content_id": playlist_id,
                "code": "ABC123",
                "max_uses": 1,
            },
            headers={"X-User-Id": str(owner_id)},
        )
        before = await client.get(
            f"/access/playlist/{playlist_id}",
            params={"user_id": fan_id},
            headers={"X-User-Id": str(fan_id)},
        )
        redeemed = await client.post("/activation-codes/ABC123/redeem", json={"user_id": fan_id})
        after = await client.get(
            f"/access/playlist/{playlist_id}",
            params={"user_id": fan_id},
            headers={"X-User-Id": str(fan_id)},
        )
        exhausted = await client.post(
            "/activation-codes/ABC123/redeem",
            json={"user_id": owner_id},
        )
        grants = await client.get(
            f"/users/{fan_id}/activation-codes",
            headers={"X-User-Id": str(fan_id)},
        )

    assert created.status_code == 201
    assert created.json()["codes"][0]["status"] == "ACTIVE"
    assert before.json()["has_access"] is False
    assert redeemed.status_code == 200
    assert redeemed.json()["uses_count"] == 1
    assert after.json()["has_access"] is True
    assert after.json()["grant_id"] == redeemed.json()["grant"]["id"]
    assert exhausted.status_code == 410
    assert exhausted.json()["detail"]["code"] == "E_CODE_EXHAUSTED"
    assert [grant["code_id"] for grant in grants.json()["grants"]] == [
        created.json()["codes"][0]["id"]
    ]


@pytest.mark.asyncio
async def test_unknown_code_over_http() -> None:
    user_id = await create_user()

    async with _client() as client:
        response = await client.post("/activation-codes/NOPE99/redeem", json={"user_id": user_id})

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "E_CODE_NOT_FOUND"


@pytest.mark.asyncio
async def test_code_reads_are_limited_to_content_owner() -> None:
    owner_id = await create_user()
    stranger_id = await create_user()
    playlist_id = await create_gated_playlist(owner_id=owner_id)

    async with _client() as client:
        created = await client.post(
            "/activation-codes",
            json={"content_type": "playlist", "content_id": playlist_id, "code": "OWNER1"},
            headers={"X-User-Id": str(owner_id)},
        )
        code_id = created.json()["codes"][0]["id"]
        owner_list = await client.get("/activation-codes", headers={"X-User-Id": str(owner_id)})
        stranger_list = await client.get(
            "/activation-codes",
            headers={"X-User-Id": str(stranger_id)},
        )
        stranger_get = await client.get(
            f"/activation-codes/{code_id}",
            headers={"X-User-Id": str(stranger_id)},
        )

    assert [code["code"] for code in owner_list.json()["codes"]] == ["OWNER1"]
    assert stranger_list.json() == {"codes": []}
    assert stranger_get.status_code == 404
