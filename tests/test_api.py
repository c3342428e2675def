"""Tests for the lookup endpoint, pages and operational endpoints.

Coverage target: nomadverify/main.py
"""

import dataclasses
import re
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from conftest import DISCORD_USER_ID, SESSION_UUID, WALLET_ADDRESS
from nomadverify.main import app, get_resolver, get_static_config
from nomadverify.session.resolver import SessionResolver
from nomadverify.ui.channel import get_flow_registry
from nomadverify.ui.flow import MSG_PROOF_FAILED, MSG_VERIFIED
from nomadverify.ui.notify import MSG_COPIED, MSG_COPY_FAILED, MSG_OPENING

CONTRACT_FIELDS = {
    "discordUserId", "username", "walletAddress", "guildId", "verifyUuid",
    "verified", "onChainVerified", "country", "gender", "isAdult", "ensName",
    "status", "createdAt", "updatedAt", "verifiedAt",
}


@pytest.fixture
def client(store, static_config):
    app.dependency_overrides[get_resolver] = lambda: SessionResolver(store)
    app.dependency_overrides[get_static_config] = lambda: static_config
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client(static_config):
    store = MagicMock()
    store.find_by_verify_uuid = AsyncMock(side_effect=OSError("mongo-1.internal:27017 unreachable"))
    app.dependency_overrides[get_resolver] = lambda: SessionResolver(store)
    app.dependency_overrides[get_static_config] = lambda: static_config
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# GET /api/user/{uuid}
# =============================================================================


class TestLookupEndpoint:

    def test_found(self, client):
        response = client.get(f"/api/user/{SESSION_UUID}")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert set(data) == CONTRACT_FIELDS
        assert data["verifyUuid"] == SESSION_UUID
        assert data["discordUserId"] == DISCORD_USER_ID
        assert data["walletAddress"] == WALLET_ADDRESS
        assert data["status"] == "pending"
        assert data["onChainVerified"] is False
        assert data["country"] is None
        assert data["createdAt"] == "2026-03-01T12:00:00"

    def test_verified_session(self, client, verified_record):
        data = client.get(f"/api/user/{verified_record['verifyUuid']}").json()["data"]

        assert data["status"] == "completed"
        assert data["country"] == "PRT"
        assert data["isAdult"] is True
        assert data["ensName"] == "alice.eth"

    def test_unknown_session(self, client):
        response = client.get("/api/user/abc-123")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Invalid verification link",
            "message": "This verification session was not found. "
                       "Please run /verify in Discord to get a new link.",
            "code": "SESSION_NOT_FOUND",
        }

    @pytest.mark.parametrize("path", ["/api/user/", "/api/user"])
    def test_missing_uuid(self, client, path):
        response = client.get(path)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "UUID is required"}

    def test_backend_failure_is_generic(self, failing_client):
        response = failing_client.get(f"/api/user/{SESSION_UUID}")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}
        assert "mongo-1" not in response.text


# =============================================================================
# Pages
# =============================================================================


class TestVerificationPage:

    def test_ready_page(self, client):
        response = client.get(f"/verification/{SESSION_UUID}")

        assert response.status_code == 200
        html = response.text
        assert "@nomad_alice" in html
        assert DISCORD_USER_ID in html
        assert WALLET_ADDRESS in html
        assert "svg" in html
        assert "https://redirect.self.xyz?selfApp=" in html
        assert "Pending" in html

    def test_ready_page_shows_country(self, client, verified_record):
        html = client.get(f"/verification/{verified_record['verifyUuid']}").text
        assert "PRT" in html
        assert "Verified" in html

    def test_not_found_page(self, client):
        response = client.get("/verification/abc-123")

        assert response.status_code == 404
        assert "Verification Error" in response.text
        assert "/verify in Discord" in response.text
        assert 'data-error-kind="lookup"' in response.text

    def test_init_failure_page(self, client, static_config):
        app.dependency_overrides[get_static_config] = lambda: dataclasses.replace(static_config, endpoint="")

        response = client.get(f"/verification/{SESSION_UUID}")

        assert response.status_code == 500
        assert "Failed to initialize verification app" in response.text
        assert 'data-error-kind="init"' in response.text
        assert "not found" not in response.text

    def test_backend_failure_page(self, failing_client):
        response = failing_client.get(f"/verification/{SESSION_UUID}")

        assert response.status_code == 500
        assert "Internal server error" in response.text
        assert "mongo-1" not in response.text

    def test_verified_page(self, client):
        response = client.get("/verified")
        assert response.status_code == 200
        assert "Verification complete" in response.text


# =============================================================================
# Operational endpoints
# =============================================================================


class TestOperationalEndpoints:

    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"ok": True}

    def test_version(self, client):
        with patch.dict("os.environ", {"GIT_SHA": "abc1234"}):
            assert client.get("/version").json() == {"git_sha": "abc1234"}

    def test_admin(self, client):
        data = client.get("/admin").json()

        assert data["protocol"]["chain_id"] == 42220
        assert data["protocol"]["endpoint_type"] == "celo"
        assert data["app"]["endpoint_configured"] is True
        assert data["disclosures"]["minimumAge"] == 18
        assert data["disclosures"]["excludedCountries"] == ["PAK"]
        assert "ui" in data
        assert "environment" in data

    def test_admin_disabled(self, client):
        with patch("nomadverify.core.config.ADMIN_ENDPOINT_ENABLED", False):
            response = client.get("/admin")
        assert response.status_code == 404


# =============================================================================
# Proof callbacks and page wiring
# =============================================================================


def _request_id(html):
    match = re.search(r"/api/proof/([0-9a-f-]{36})", html)
    assert match, "page does not reference its proof status route"
    return match.group(1)


class TestPageConfig:
    """The rendered page runs on the configured timings and messages."""

    def test_page_uses_configured_values(self, client):
        with patch("nomadverify.main.TOAST_DURATION_MS", 1234), \
                patch("nomadverify.main.COPIED_INDICATOR_MS", 567), \
                patch("nomadverify.main.REDIRECT_DELAY_SECONDS", 3.5):
            html = client.get(f"/verification/{SESSION_UUID}").text

        assert '"toastMs": 1234' in html
        assert '"copiedMs": 567' in html
        assert '"redirectDelayMs": 3500' in html
        assert '"verifiedPath": "/verified"' in html
        assert "page.toastMs" in html
        assert "page.copiedMs" in html

    def test_page_carries_exact_messages(self, client):
        html = client.get(f"/verification/{SESSION_UUID}").text

        for message in (MSG_COPIED, MSG_COPY_FAILED, MSG_OPENING, MSG_VERIFIED, MSG_PROOF_FAILED):
            assert message in html

    def test_page_polls_its_own_request(self, client):
        html = client.get(f"/verification/{SESSION_UUID}").text

        request_id = _request_id(html)
        assert get_flow_registry().get(request_id) is not None
        assert "pollProofStatus" in html

    def test_error_page_registers_nothing(self, client):
        client.get("/verification/abc-123")
        assert len(get_flow_registry()) == 0


class TestProofCallbackRoutes:

    def test_initial_status(self, client):
        request_id = _request_id(client.get(f"/verification/{SESSION_UUID}").text)

        assert client.get(f"/api/proof/{request_id}").json() == {
            "requestId": request_id,
            "state": "ready",
            "toast": None,
            "toastSeq": 0,
            "redirect": None,
        }

    def test_success_toasts_then_redirects(self, static_config, store):
        app.dependency_overrides[get_resolver] = lambda: SessionResolver(store)
        app.dependency_overrides[get_static_config] = lambda: static_config
        try:
            # Context-managed client keeps one event loop so the redirect timer fires
            with TestClient(app) as client, \
                    patch("nomadverify.main.REDIRECT_DELAY_SECONDS", 0.05):
                request_id = _request_id(client.get(f"/verification/{SESSION_UUID}").text)

                status = client.post(f"/api/proof/{request_id}", json={"status": "success"}).json()
                assert status["toast"] == MSG_VERIFIED
                assert status["toastSeq"] == 1
                assert status["state"] == "ready"
                assert status["redirect"] is None

                time.sleep(0.3)
                status = client.get(f"/api/proof/{request_id}").json()
                assert status["state"] == "verified"
                assert status["redirect"] == "/verified"
        finally:
            app.dependency_overrides.clear()

    def test_error_stays_ready(self, client):
        request_id = _request_id(client.get(f"/verification/{SESSION_UUID}").text)

        status = client.post(
            f"/api/proof/{request_id}", json={"status": "error", "reason": "user cancelled"}
        ).json()

        assert status["state"] == "ready"
        assert status["toast"] == MSG_PROOF_FAILED
        assert status["redirect"] is None

    def test_error_then_success(self, client):
        request_id = _request_id(client.get(f"/verification/{SESSION_UUID}").text)

        client.post(f"/api/proof/{request_id}", json={"status": "error"})
        status = client.post(f"/api/proof/{request_id}", json={"status": "success"}).json()

        assert status["toast"] == MSG_VERIFIED
        assert status["toastSeq"] == 2

    def test_unknown_request(self, client):
        assert client.get("/api/proof/nope").status_code == 404
        assert client.post("/api/proof/nope", json={"status": "success"}).status_code == 404

    def test_bad_callback_body(self, client):
        request_id = _request_id(client.get(f"/verification/{SESSION_UUID}").text)
        response = client.post(f"/api/proof/{request_id}", json={"status": "maybe"})
        assert response.status_code == 422
