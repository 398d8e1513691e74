# =============================================================================
# API Tests — HTTP Contract via httpx ASGITransport
# =============================================================================
#
# Test groups:
#   1. Health check
#   2. Issue + authenticate
#   3. Account-scoped admin routes
#   4. Service-scoped admin routes
#   5. Error mapping and request logging
# =============================================================================

from __future__ import annotations

import logging

import pytest

ACCOUNT_BODY = {
    "account_id": "123",
    "description": "Invoice integration",
    "created_by": "admin@example.com",
}
SERVICE_BODY = {
    "service_external_id": "svc-abc",
    "service_mode": "live",
    "description": "Service integration",
    "created_by": "admin@example.com",
}


async def _create(client, body=ACCOUNT_BODY) -> str:
    response = await client.post("/v1/frontend/auth", json=body)
    assert response.status_code == 200, response.text
    return response.json()["token"]


async def _auth(client, api_key):
    return await client.get("/v1/api/auth", headers={"Authorization": f"Bearer {api_key}"})


# ---------------------------------------------------------------------------
# 1. Health
# ---------------------------------------------------------------------------


class TestHealth:
    async def test_healthcheck(self, client):
        response = await client.get("/healthcheck")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"

    async def test_healthcheck_database_down(self, client, monkeypatch):
        async def ping_fails(session):
            return False

        monkeypatch.setattr("tokenauth.api.health.ping_db", ping_fails)
        response = await client.get("/healthcheck")
        assert response.status_code == 503
        assert response.json()["database"] == "unreachable"


# ---------------------------------------------------------------------------
# 2. Issue + authenticate
# ---------------------------------------------------------------------------


class TestAuthenticate:
    async def test_issued_key_authenticates(self, client):
        api_key = await _create(client)
        response = await _auth(client, api_key)
        assert response.status_code == 200
        body = response.json()
        assert body["account_id"] == "123"
        assert body["token_type"] == "CARD"
        assert len(body["token_link"]) == 36

    async def test_service_key_authenticates(self, client):
        api_key = await _create(client, SERVICE_BODY)
        body = (await _auth(client, api_key)).json()
        assert body["service_external_id"] == "svc-abc"
        assert body["service_mode"] == "LIVE"
        assert body["account_id"] is None

    async def test_missing_header(self, client):
        response = await client.get("/v1/api/auth")
        assert response.status_code == 401
        assert response.json()["error_identifier"] == "AUTH_TOKEN_INVALID"

    async def test_garbage_key(self, client):
        response = await _auth(client, "not-a-real-key")
        assert response.status_code == 401
        assert response.json() == {
            "message": "Token invalid!",
            "error_identifier": "AUTH_TOKEN_INVALID",
        }

    async def test_revoked_key(self, client):
        api_key = await _create(client)
        link = (await _auth(client, api_key)).json()["token_link"]
        await client.request("DELETE", "/v1/frontend/auth/123", json={"token_link": link})

        response = await _auth(client, api_key)
        assert response.status_code == 401
        body = response.json()
        assert body["error_identifier"] == "AUTH_TOKEN_REVOKED"
        assert body["token_link"] == link

    async def test_create_without_scope(self, client):
        response = await client.post(
            "/v1/frontend/auth", json={"description": "d", "created_by": "me"},
        )
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# 3. Account scope
# ---------------------------------------------------------------------------


class TestAccountRoutes:
    async def test_list_get_update_revoke(self, client):
        api_key = await _create(client)
        tokens = (await client.get("/v1/frontend/auth/123")).json()["tokens"]
        assert len(tokens) == 1
        link = tokens[0]["token_link"]
        assert tokens[0]["type"] == "API"
        assert "token_hash" not in tokens[0]
        assert api_key not in str(tokens)

        response = await client.get(f"/v1/frontend/auth/123/{link}")
        assert response.status_code == 200
        assert response.json()["description"] == "Invoice integration"

        response = await client.put(
            "/v1/frontend/auth", json={"token_link": link, "description": "renamed"},
        )
        assert response.status_code == 200
        assert response.json()["description"] == "renamed"

        response = await client.request(
            "DELETE", "/v1/frontend/auth/123", json={"token_link": link},
        )
        assert response.status_code == 200
        assert response.json()["revoked"]

        assert (await client.get("/v1/frontend/auth/123")).json()["tokens"] == []
        revoked = (await client.get("/v1/frontend/auth/123?state=revoked")).json()["tokens"]
        assert [t["token_link"] for t in revoked] == [link]

    async def test_get_other_account_is_404(self, client):
        await _create(client)
        link = (await client.get("/v1/frontend/auth/123")).json()["tokens"][0]["token_link"]
        response = await client.get(f"/v1/frontend/auth/999/{link}")
        assert response.status_code == 404

    async def test_update_revoked_is_404(self, client):
        await _create(client)
        link = (await client.get("/v1/frontend/auth/123")).json()["tokens"][0]["token_link"]
        await client.request("DELETE", "/v1/frontend/auth/123", json={"token_link": link})

        response = await client.put(
            "/v1/frontend/auth", json={"token_link": link, "description": "renamed"},
        )
        assert response.status_code == 404

    async def test_revoke_by_api_key(self, client):
        api_key = await _create(client)
        response = await client.request(
            "DELETE", "/v1/frontend/auth/123", json={"token": api_key},
        )
        assert response.status_code == 200
        assert (await _auth(client, api_key)).status_code == 401

    async def test_revoke_twice_is_404(self, client):
        api_key = await _create(client)
        first = await client.request("DELETE", "/v1/frontend/auth/123", json={"token": api_key})
        second = await client.request("DELETE", "/v1/frontend/auth/123", json={"token": api_key})
        assert first.status_code == 200
        assert second.status_code == 404

    async def test_revoke_without_identifier_is_400(self, client):
        response = await client.request("DELETE", "/v1/frontend/auth/123", json={})
        assert response.status_code == 400

    async def test_revoke_all(self, client):
        for _ in range(2):
            await _create(client)
        response = await client.delete("/v1/frontend/auth/123/all")
        assert response.status_code == 200
        assert response.json() == {"revoked_count": 2}

    @pytest.mark.parametrize("query", ["?type=bogus", "?type=api", ""])
    async def test_unknown_type_falls_back_to_api(self, client, query):
        await _create(client)
        response = await client.get(f"/v1/frontend/auth/123{query}")
        assert response.status_code == 200
        assert len(response.json()["tokens"]) == 1

    async def test_products_tokens_listed_separately(self, client):
        await _create(client, {**ACCOUNT_BODY, "type": "PRODUCTS"})
        assert (await client.get("/v1/frontend/auth/123")).json()["tokens"] == []
        listed = (await client.get("/v1/frontend/auth/123?type=products")).json()["tokens"]
        assert len(listed) == 1


# ---------------------------------------------------------------------------
# 4. Service scope
# ---------------------------------------------------------------------------


class TestServiceRoutes:
    BASE = "/v1/frontend/auth/service/svc-abc/mode"

    async def test_list_get_revoke(self, client):
        api_key = await _create(client, SERVICE_BODY)

        tokens = (await client.get(f"{self.BASE}/LIVE")).json()["tokens"]
        assert len(tokens) == 1
        link = tokens[0]["token_link"]
        assert (await client.get(f"{self.BASE}/TEST")).json()["tokens"] == []

        response = await client.get(f"{self.BASE}/live/{link}")
        assert response.status_code == 200
        assert (await client.get(f"{self.BASE}/TEST/{link}")).status_code == 404

        response = await client.request("DELETE", f"{self.BASE}/LIVE", json={"token": api_key})
        assert response.status_code == 200
        assert (await _auth(client, api_key)).status_code == 401

    async def test_revoke_all(self, client):
        await _create(client, SERVICE_BODY)
        await _create(client, {**SERVICE_BODY, "service_mode": "TEST"})

        response = await client.delete(f"{self.BASE}/LIVE/all")
        assert response.json() == {"revoked_count": 1}
        assert len((await client.get(f"{self.BASE}/TEST")).json()["tokens"]) == 1

    async def test_unknown_mode_is_422(self, client):
        response = await client.get(f"{self.BASE}/sandbox")
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# 5. Request logging
# ---------------------------------------------------------------------------


class TestRequestLogging:
    async def test_request_id_generated(self, client):
        response = await client.get("/v1/frontend/auth/123")
        assert response.headers["X-Request-Id"]

    async def test_request_id_propagated(self, client):
        response = await client.get(
            "/v1/frontend/auth/123", headers={"X-Request-Id": "req-42"},
        )
        assert response.headers["X-Request-Id"] == "req-42"

    async def test_authorization_header_not_logged(self, client, caplog):
        api_key = await _create(client)
        caplog.clear()
        with caplog.at_level(logging.INFO):
            await _auth(client, api_key)
        assert "/v1/api/auth" in caplog.text
        assert api_key not in caplog.text
