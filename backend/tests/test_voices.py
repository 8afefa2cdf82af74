"""
Tests for voice resolution and validation.

These tests verify that:
1. Resolution tries curated ids, legacy names, ElevenLabs ids, native names in order
2. Any other non-empty input falls back to a native voice name
3. The validator tells "invalid voice" apart from "validator unavailable"
"""

import httpx
import pytest

from catalog.voices import VoiceProvider
from engine.voices import resolve_voice
from kendall.errors import VoiceValidatorUnavailable
from kendall.voice_service import VoiceValidator


class TestResolveVoice:

    def test_empty_input_resolves_to_none(self):
        assert resolve_voice("") is None
        assert resolve_voice("   ") is None
        assert resolve_voice(None) is None

    def test_curated_native_voice(self):
        voice = resolve_voice("vapi-elliot")
        assert voice.provider == VoiceProvider.VAPI
        assert voice.voice_id == "elliot"

    def test_curated_elevenlabs_voice(self):
        voice = resolve_voice("KM-02")
        assert voice.provider == VoiceProvider.ELEVENLABS
        assert voice.voice_id == "JBFqnCBsd6RMkjVDRZzb"

    def test_legacy_name_case_insensitive(self):
        voice = resolve_voice("sarah")
        assert voice.provider == VoiceProvider.ELEVENLABS
        assert voice.voice_id == "EXAVITQu4vr4xnSDxMaL"

    @pytest.mark.parametrize("voice_id", ["a" * 15, "21m00Tcm4TlvDq8ikWAM", "Z" * 25])
    def test_opaque_token_is_elevenlabs(self, voice_id):
        voice = resolve_voice(voice_id)
        assert voice.provider == VoiceProvider.ELEVENLABS
        assert voice.voice_id == voice_id

    @pytest.mark.parametrize("voice_id", ["kylie", "bogus", "abc_def", "a" * 14])
    def test_short_token_is_native(self, voice_id):
        assert resolve_voice(voice_id).provider == VoiceProvider.VAPI

    @pytest.mark.parametrize("voice_id", ["warm british man", "voice-123", "a" * 26])
    def test_anything_else_falls_back_to_native(self, voice_id):
        voice = resolve_voice(voice_id)
        assert voice.provider == VoiceProvider.VAPI
        assert voice.voice_id == voice_id

    def test_payload_shape(self):
        assert resolve_voice("vapi-leah").to_payload() == {"provider": "vapi", "voiceId": "leah"}


def make_validator(handler, monkeypatch, api_key="xi-test-key"):
    if api_key:
        monkeypatch.setenv("ELEVENLABS_API_KEY", api_key)
    else:
        monkeypatch.delenv("ELEVENLABS_API_KEY", raising=False)
    return VoiceValidator(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestVoiceValidator:

    @pytest.mark.asyncio
    async def test_native_catalog_voice_valid_without_network(self, monkeypatch):
        def handler(request):
            raise AssertionError("no HTTP call expected")

        result = await make_validator(handler, monkeypatch).validate("vapi-rachel")

        assert result.valid is True
        assert result.voice_name == "Rachel"
        assert result.to_response()["voiceConfig"] == {"provider": "vapi", "voiceId": "rachel"}

    @pytest.mark.asyncio
    async def test_unknown_native_name_invalid(self, monkeypatch):
        result = await make_validator(lambda r: httpx.Response(200), monkeypatch).validate("bogus")

        assert result.valid is False
        assert result.error == "Voice not available"

    @pytest.mark.asyncio
    async def test_free_text_voice_rejected_by_catalog(self, monkeypatch):
        def handler(request):
            raise AssertionError("no HTTP call expected")

        result = await make_validator(handler, monkeypatch).validate("warm british man")

        assert result.valid is False
        assert result.to_response() == {
            "valid": False,
            "error": "Voice not available",
            "details": "'warm british man' is not a voice offered by the agent platform",
        }

    @pytest.mark.asyncio
    async def test_elevenlabs_voice_found(self, monkeypatch):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("xi-api-key")
            return httpx.Response(200, json={"voice_id": "21m00Tcm4TlvDq8ikWAM", "name": "Rachel"})

        result = await make_validator(handler, monkeypatch).validate("21m00Tcm4TlvDq8ikWAM")

        assert result.valid is True
        assert result.voice_name == "Rachel"
        assert seen["url"] == "https://api.elevenlabs.io/v1/voices/21m00Tcm4TlvDq8ikWAM"
        assert seen["key"] == "xi-test-key"

    @pytest.mark.asyncio
    async def test_elevenlabs_voice_not_found(self, monkeypatch):
        handler = lambda r: httpx.Response(404, json={"detail": {"status": "voice_not_found"}})  # noqa: E731

        result = await make_validator(handler, monkeypatch).validate("21m00Tcm4TlvDq8ikWAM")

        assert result.valid is False
        assert result.error == "Voice not found in ElevenLabs"

    @pytest.mark.asyncio
    async def test_elevenlabs_server_error_is_unavailable(self, monkeypatch):
        validator = make_validator(lambda r: httpx.Response(503), monkeypatch)

        with pytest.raises(VoiceValidatorUnavailable):
            await validator.validate("21m00Tcm4TlvDq8ikWAM")

    @pytest.mark.asyncio
    async def test_elevenlabs_unreachable_is_unavailable(self, monkeypatch):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(VoiceValidatorUnavailable):
            await make_validator(handler, monkeypatch).validate("21m00Tcm4TlvDq8ikWAM")

    @pytest.mark.asyncio
    async def test_missing_api_key_is_unavailable(self, monkeypatch):
        validator = make_validator(lambda r: httpx.Response(200), monkeypatch, api_key=None)

        with pytest.raises(VoiceValidatorUnavailable):
            await validator.validate("KM-01")
