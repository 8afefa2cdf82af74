"""
Tests for the HTTP surface (kendall.main).

These tests verify that:
1. POST /api/createMyKendall maps outcomes to 200 / 400 / 429 / 500
2. GET /api/getMyKendall returns the camelCase record or 404
3. PATCH /api/updateMyKendall requires recordId
4. POST /api/validateVoice distinguishes invalid from unavailable
5. POST /api/call/cancel requires callId
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from conftest import FakeVapi, FakeVoiceValidator
from kendall import main
from kendall.errors import AgentPlatformError, VoiceValidatorUnavailable
from kendall.main import app
from kendall.provisioning import ProvisioningOrchestrator
from kendall.rate_limiter import FixedWindowRateLimiter
from kendall.voice_service import VoiceValidation

LEGACY_BODY = {
    "fullName": "Jane Doe",
    "email": "jane@example.com",
    "mobileNumber": "4165550199",
    "userContext": "I run a small bakery in Toronto.",
    "personalityChoices": ["Friendly & Casual"],
}


@pytest.fixture(autouse=True)
def services(monkeypatch, orchestrator, voice_validator):
    """Wire fakes into the module-level service slots the lifespan normally fills."""
    monkeypatch.setattr(main, "orchestrator", orchestrator)
    monkeypatch.setattr(main, "voice_validator", voice_validator)
    monkeypatch.setattr(main, "vapi_service", MagicMock(cancel_call=AsyncMock()))
    monkeypatch.setattr(main, "create_rate_limiter", FixedWindowRateLimiter(limit=5, window_seconds=900))
    monkeypatch.setattr(main, "update_rate_limiter", FixedWindowRateLimiter(limit=20, window_seconds=900))


@pytest.fixture
async def client():
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCreateMyKendall:

    @pytest.mark.asyncio
    async def test_success(self, client: AsyncClient, record_store):
        response = await client.post("/api/createMyKendall", json=LEGACY_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["agentId"] == "agent_123"
        assert data["phoneNumber"] == "+14165550123"
        assert data["editLink"] == f"/personal-setup?edit={data['recordId']}"
        assert data["chatLink"] == f"/chat?recordId={data['recordId']}"
        assert record_store.status_of(data["recordId"]) == "active"

    @pytest.mark.asyncio
    async def test_missing_fields_400(self, client: AsyncClient):
        response = await client.post("/api/createMyKendall", json={"fullName": "Jane Doe"})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Missing required fields: email, mobileNumber, userContext",
        }

    @pytest.mark.asyncio
    async def test_invalid_json_400(self, client: AsyncClient):
        response = await client.post(
            "/api/createMyKendall", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_voice_400(self, client: AsyncClient, monkeypatch, record_store, vapi, phone_client,
                                     email_service, sleep):
        validator = FakeVoiceValidator(VoiceValidation(
            valid=False, error="Voice not available", details="'bogus' is not a voice offered by the agent platform",
        ))
        monkeypatch.setattr(main, "orchestrator", ProvisioningOrchestrator(
            record_store, validator, vapi, phone_client, email_service, sleep=sleep,
        ))

        response = await client.post("/api/createMyKendall", json={**LEGACY_BODY, "voiceChoice": "bogus"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid voice selected"
        assert data["message"] == "Voice not available"
        assert "bogus" in data["details"]
        assert vapi.created == []

    @pytest.mark.asyncio
    async def test_agent_failure_500(self, client: AsyncClient, monkeypatch, record_store, voice_validator,
                                     phone_client, email_service, sleep):
        monkeypatch.setattr(main, "orchestrator", ProvisioningOrchestrator(
            record_store, voice_validator, FakeVapi(agent_id=None), phone_client, email_service, sleep=sleep,
        ))

        response = await client.post("/api/createMyKendall", json=LEGACY_BODY)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to create My Kendall"}

    @pytest.mark.asyncio
    async def test_rate_limited_429(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(main, "create_rate_limiter", FixedWindowRateLimiter(limit=1, window_seconds=900))

        first = await client.post("/api/createMyKendall", json=LEGACY_BODY, headers={"X-Forwarded-For": "203.0.113.7"})
        second = await client.post("/api/createMyKendall", json=LEGACY_BODY, headers={"X-Forwarded-For": "203.0.113.7"})

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json()["error"] == "Too many requests. Please try again later."
        assert second.headers["X-RateLimit-Limit"] == "1"
        assert second.headers["X-RateLimit-Remaining"] == "0"
        assert int(second.headers["Retry-After"]) > 0
        assert "X-RateLimit-Reset" in second.headers

    @pytest.mark.asyncio
    async def test_not_initialized_503(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(main, "orchestrator", None)

        response = await client.post("/api/createMyKendall", json=LEGACY_BODY)

        assert response.status_code == 503


class TestGetMyKendall:

    @pytest.mark.asyncio
    async def test_returns_record(self, client: AsyncClient):
        created = (await client.post("/api/createMyKendall", json=LEGACY_BODY)).json()

        response = await client.get("/api/getMyKendall", params={"recordId": created["recordId"]})

        assert response.status_code == 200
        fields = response.json()["record"]["fields"]
        assert fields["fullName"] == "Jane Doe"
        assert fields["vapi_agent_id"] == "agent_123"
        assert fields["status"] == "active"

    @pytest.mark.asyncio
    async def test_unknown_record_404(self, client: AsyncClient):
        response = await client.get("/api/getMyKendall", params={"recordId": "recMissing"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_record_id_400(self, client: AsyncClient):
        response = await client.get("/api/getMyKendall")
        assert response.status_code == 400


class TestUpdateMyKendall:

    @pytest.mark.asyncio
    async def test_update(self, client: AsyncClient, vapi):
        created = (await client.post("/api/createMyKendall", json=LEGACY_BODY)).json()

        response = await client.patch(
            "/api/updateMyKendall",
            json={**LEGACY_BODY, "recordId": created["recordId"], "personalityChoices": ["Direct & Brief"]},
        )

        assert response.status_code == 200
        assert response.json()["agentId"] == "agent_123"
        _, profile = vapi.updated[-1]
        assert "Direct and efficient" in profile.system_prompt

    @pytest.mark.asyncio
    async def test_missing_record_id_400(self, client: AsyncClient):
        response = await client.patch("/api/updateMyKendall", json=LEGACY_BODY)

        assert response.status_code == 400
        assert response.json()["error"] == "recordId is required"

    @pytest.mark.asyncio
    async def test_unknown_record_404(self, client: AsyncClient):
        response = await client.patch("/api/updateMyKendall", json={**LEGACY_BODY, "recordId": "recMissing"})
        assert response.status_code == 404


class TestValidateVoice:

    @pytest.mark.asyncio
    async def test_valid(self, client: AsyncClient):
        response = await client.post("/api/validateVoice", json={"voiceId": "vapi-elliot"})

        assert response.status_code == 200
        assert response.json() == {
            "valid": True,
            "voiceConfig": {"provider": "vapi", "voiceId": "elliot"},
            "voiceName": "vapi-elliot",
        }

    @pytest.mark.asyncio
    async def test_invalid(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(main, "voice_validator", FakeVoiceValidator(VoiceValidation(
            valid=False, error="Voice not found in ElevenLabs", details="Voice ID abc does not exist in ElevenLabs",
        )))

        response = await client.post("/api/validateVoice", json={"voiceId": "abcdefghijklmnopqrst"})

        assert response.status_code == 400
        assert response.json()["valid"] is False

    @pytest.mark.asyncio
    async def test_unavailable(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(main, "voice_validator", FakeVoiceValidator(
            error=VoiceValidatorUnavailable("ElevenLabs returned 503", 503),
        ))

        response = await client.post("/api/validateVoice", json={"voiceId": "abcdefghijklmnopqrst"})

        assert response.status_code == 503


class TestCancelCall:

    @pytest.mark.asyncio
    async def test_cancel(self, client: AsyncClient):
        response = await client.post("/api/call/cancel", json={"callId": "call_1"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Call ended"}
        main.vapi_service.cancel_call.assert_awaited_once_with("call_1")

    @pytest.mark.asyncio
    async def test_missing_call_id_400(self, client: AsyncClient):
        response = await client.post("/api/call/cancel", json={})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_platform_error(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(main, "vapi_service", MagicMock(
            cancel_call=AsyncMock(side_effect=AgentPlatformError("Call not found", 404)),
        ))

        response = await client.post("/api/call/cancel", json={"callId": "call_1"})

        assert response.status_code == 502
        assert response.json()["success"] is False
