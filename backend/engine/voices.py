"""
Voice resolution.

Maps the voice string a user picked to the {provider, voiceId} pair the
agent platform understands. Resolution order:
1. Curated library id ("vapi-elliot", "KM-03")
2. Legacy display-name mapping ("Sarah" -> ElevenLabs id)
3. ElevenLabs-style opaque id (15-25 alphanumeric chars) -> "11labs"
4. Anything else is taken as a platform-native voice name -> "vapi"

Resolution never rejects a non-empty choice; whether a native name really
exists is checked by the voice validator against the catalog.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from catalog.voices import VoiceProvider, get_curated_voice, get_legacy_voice_id

ELEVENLABS_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{15,25}$")


@dataclass(frozen=True)
class VoiceSelection:
    """A concrete voice the agent platform can speak with."""
    provider: VoiceProvider
    voice_id: str

    def to_payload(self) -> Dict[str, Any]:
        return {"provider": self.provider.value, "voiceId": self.voice_id}


def resolve_voice(voice_input: Optional[str]) -> Optional[VoiceSelection]:
    """
    Resolve a voice choice.

    Returns:
        VoiceSelection, or None when the input is empty ("use the platform default").
    """
    if not voice_input or not voice_input.strip():
        return None
    choice = voice_input.strip()

    curated = get_curated_voice(choice)
    if curated:
        return VoiceSelection(provider=curated.provider, voice_id=curated.voice_id)

    legacy_id = get_legacy_voice_id(choice)
    if legacy_id:
        return VoiceSelection(provider=VoiceProvider.ELEVENLABS, voice_id=legacy_id)

    if ELEVENLABS_ID_PATTERN.match(choice):
        return VoiceSelection(provider=VoiceProvider.ELEVENLABS, voice_id=choice)

    return VoiceSelection(provider=VoiceProvider.VAPI, voice_id=choice)
