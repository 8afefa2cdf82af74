"""
Voice validation - confirms a resolved voice actually exists before an agent
is created with it.

Two failure modes are kept apart:
- VoiceValidation(valid=False): the voice is wrong (caller must pick another)
- VoiceValidatorUnavailable: we could not find out (provisioning proceeds)

Python 3.9 compatible - uses typing.Dict, typing.Optional
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from catalog.voices import VoiceProvider, get_curated_voice, is_native_vapi_voice
from engine.voices import VoiceSelection, resolve_voice

from .errors import VoiceValidatorUnavailable

logger = logging.getLogger(__name__)


@dataclass
class VoiceValidation:
    valid: bool
    voice: Optional[VoiceSelection] = None
    voice_name: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        if self.valid:
            return {
                "valid": True,
                "voiceConfig": self.voice.to_payload() if self.voice else None,
                "voiceName": self.voice_name,
            }
        return {"valid": False, "error": self.error, "details": self.details}


class VoiceValidator:
    """Validates voices against ElevenLabs and the native agent-platform catalog."""

    ELEVENLABS_VOICE_URL = "https://api.elevenlabs.io/v1/voices/{voice_id}"

    # ElevenLabs answers these for ids that do not exist
    NOT_FOUND_STATUS_CODES = (400, 404, 422)

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = os.getenv("ELEVENLABS_API_KEY")
        self.http_client = http_client or httpx.AsyncClient(timeout=10.0)
        if not self.api_key:
            logger.warning("VoiceValidator: ELEVENLABS_API_KEY not set - ElevenLabs voices cannot be validated")

    async def close(self) -> None:
        await self.http_client.aclose()

    async def validate(self, voice_input: str) -> VoiceValidation:
        """
        Validate a user voice choice.

        Returns:
            VoiceValidation with the resolved voice when valid

        Raises:
            VoiceValidatorUnavailable: ElevenLabs unreachable, erroring or not configured
        """
        if not voice_input or not voice_input.strip():
            return VoiceValidation(valid=False, error="Voice ID is required")

        choice = voice_input.strip()
        voice = resolve_voice(choice)
        curated = get_curated_voice(choice)
        if voice.provider == VoiceProvider.VAPI:
            return self._validate_native(voice, curated.name if curated else None)
        return await self._validate_elevenlabs(voice, curated.name if curated else None)

    def _validate_native(self, voice: VoiceSelection, display_name: Optional[str]) -> VoiceValidation:
        if not is_native_vapi_voice(voice.voice_id):
            return VoiceValidation(
                valid=False,
                error="Voice not available",
                details=f"'{voice.voice_id}' is not a voice offered by the agent platform",
            )
        return VoiceValidation(valid=True, voice=voice, voice_name=display_name or voice.voice_id)

    async def _validate_elevenlabs(self, voice: VoiceSelection, display_name: Optional[str]) -> VoiceValidation:
        if not self.api_key:
            raise VoiceValidatorUnavailable("ElevenLabs API key not configured")

        url = self.ELEVENLABS_VOICE_URL.format(voice_id=voice.voice_id)
        try:
            response = await self.http_client.get(
                url, headers={"Accept": "application/json", "xi-api-key": self.api_key}
            )
        except httpx.HTTPError as e:
            raise VoiceValidatorUnavailable(f"Failed to reach ElevenLabs: {e}") from e

        if response.status_code in self.NOT_FOUND_STATUS_CODES:
            return VoiceValidation(
                valid=False,
                error="Voice not found in ElevenLabs",
                details=f"Voice ID {voice.voice_id} does not exist in ElevenLabs",
            )
        if response.status_code >= 400:
            raise VoiceValidatorUnavailable(
                f"ElevenLabs returned {response.status_code}", response.status_code
            )

        name = display_name
        if name is None:
            try:
                name = response.json().get("name")
            except ValueError:
                name = None
        return VoiceValidation(valid=True, voice=voice, voice_name=name or "Unknown")


# Singleton instance
_voice_validator: Optional[VoiceValidator] = None


def get_voice_validator() -> VoiceValidator:
    """Get or create the voice validator singleton."""
    global _voice_validator
    if _voice_validator is None:
        _voice_validator = VoiceValidator()
    return _voice_validator
