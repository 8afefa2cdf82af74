"""
Voice catalog definitions.

This module defines the declarative voice data the resolver works from:
- The native agent-platform voice catalog (provider "vapi")
- The curated voice library, keyed by stable ids ("vapi-elliot", "KM-01")
- The legacy display-name -> ElevenLabs voice id mapping

NO network calls are made in this module.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class VoiceProvider(str, Enum):
    """Voice providers understood by the agent platform."""
    ELEVENLABS = "11labs"
    VAPI = "vapi"


@dataclass
class CuratedVoice:
    """
    A pre-selected voice offered in the setup wizard.

    Attributes:
        id: Stable library id sent by the client (e.g., "vapi-elliot", "KM-03")
        name: Display name
        provider: Which provider hosts the voice
        voice_id: Provider-specific voice identifier
        accent: Accent label for filtering
        gender: "male", "female" or "neutral"
        age_group: "young", "middle-aged" or "older"
        description: Human-readable description
    """
    id: str
    name: str
    provider: VoiceProvider
    voice_id: str
    accent: str
    gender: str
    age_group: str
    description: str
    tags: List[str] = field(default_factory=list)


# Native agent-platform voices offered in the wizard
VAPI_VOICE_CATALOG: List[CuratedVoice] = [
    CuratedVoice("vapi-elliot", "Elliot", VoiceProvider.VAPI, "elliot", "American", "male", "middle-aged",
                 "Elliot - Clear American male voice, professional tone", ["clear", "professional"]),
    CuratedVoice("vapi-josh", "Josh", VoiceProvider.VAPI, "josh", "American", "male", "young",
                 "Josh - Bright American male voice, energetic tone", ["bright", "energetic"]),
    CuratedVoice("vapi-arnold", "Arnold", VoiceProvider.VAPI, "arnold", "American", "male", "older",
                 "Arnold - Deep American male voice, calm and mature", ["deep", "calm"]),
    CuratedVoice("vapi-adam", "Adam", VoiceProvider.VAPI, "adam", "British", "male", "middle-aged",
                 "Adam - Clear British male voice, professional tone", ["clear", "professional"]),
    CuratedVoice("vapi-antoni", "Antoni", VoiceProvider.VAPI, "antoni", "American", "male", "young",
                 "Antoni - Smooth American male voice, warm tone", ["smooth", "warm"]),
    CuratedVoice("vapi-sam", "Sam", VoiceProvider.VAPI, "sam", "American", "male", "middle-aged",
                 "Sam - Neutral American male voice, clear pronunciation", ["neutral", "clear"]),
    CuratedVoice("vapi-leah", "Leah", VoiceProvider.VAPI, "leah", "American", "female", "young",
                 "Leah - Bright American female voice, clear and energetic", ["bright", "energetic"]),
    CuratedVoice("vapi-lily", "Lily", VoiceProvider.VAPI, "lily", "American", "female", "young",
                 "Lily - Smooth American female voice, warm and friendly", ["smooth", "warm"]),
    CuratedVoice("vapi-domi", "Domi", VoiceProvider.VAPI, "domi", "American", "female", "middle-aged",
                 "Domi - Professional American female voice, clear pronunciation", ["professional", "clear"]),
    CuratedVoice("vapi-bella", "Bella", VoiceProvider.VAPI, "bella", "American", "female", "young",
                 "Bella - Energetic American female voice, bright and lively", ["energetic", "bright"]),
    CuratedVoice("vapi-dorothy", "Dorothy", VoiceProvider.VAPI, "dorothy", "American", "female", "older",
                 "Dorothy - Calm American female voice, warm and mature", ["calm", "warm"]),
    CuratedVoice("vapi-rachel", "Rachel", VoiceProvider.VAPI, "rachel", "British", "female", "middle-aged",
                 "Rachel - Professional British female voice, clear pronunciation", ["professional", "clear"]),
    CuratedVoice("vapi-charlotte", "Charlotte", VoiceProvider.VAPI, "charlotte", "British", "female", "young",
                 "Charlotte - Bright British female voice, energetic tone", ["bright", "energetic"]),
]

# Legacy wizard voice names -> ElevenLabs voice ids
LEGACY_VOICE_MAPPING: Dict[str, str] = {
    "Elliot": "CwhRBWXzGAHq8TQ4Fs17",
    "Roger": "CwhRBWXzGAHq8TQ4Fs17",
    "Eric": "cjVigY5qzO86Huf0OWal",
    "Brian": "nPczCjzI2devNBz1zQrb",
    "Adam": "pNInz6obpgDQGcFmaJgB",
    "Callum": "N2lVS1w4EtoT3dr4eOWO",
    "Harry": "SOYHLrjzK2X1ezoPC6cr",
    "Bill": "pqHfZKP75CvOlQylNhV4",
    "George": "JBFqnCBsd6RMkjVDRZzb",
    "Daniel": "onwK4e9ZLuTAKqWW03F9",
    "Charlie": "IKne3meq5aSn9XLyUdCD",
    "Sarah": "EXAVITQu4vr4xnSDxMaL",
    "Laura": "FGY2WhTYpPnrIDTdsKH5",
    "Matilda": "XrExE9yKIg1WjnnlVkGX",
    "Jessica": "cgSgspJ2msm6clMCkdW9",
    "Alice": "Xb7hH8MSUJpSbSDYk0k2",
    "Lily": "pFZP5JQG7iQjIQuC4Bku",
    "River": "SAz9YHcvj6GT2YYXdXww",
}

# Curated ElevenLabs voices ("KM-" ids) shown next to the native catalog
ELEVENLABS_CURATED_VOICES: List[CuratedVoice] = [
    CuratedVoice("KM-01", "Sarah", VoiceProvider.ELEVENLABS, "EXAVITQu4vr4xnSDxMaL", "American", "female", "young",
                 "Sarah - Soft American female voice, reassuring", ["soft", "warm"]),
    CuratedVoice("KM-02", "George", VoiceProvider.ELEVENLABS, "JBFqnCBsd6RMkjVDRZzb", "British", "male", "middle-aged",
                 "George - Warm British male voice, steady narrator", ["warm", "steady"]),
    CuratedVoice("KM-03", "Brian", VoiceProvider.ELEVENLABS, "nPczCjzI2devNBz1zQrb", "American", "male", "middle-aged",
                 "Brian - Deep American male voice, resonant", ["deep", "resonant"]),
    CuratedVoice("KM-04", "Jessica", VoiceProvider.ELEVENLABS, "cgSgspJ2msm6clMCkdW9", "American", "female", "young",
                 "Jessica - Expressive American female voice, playful", ["expressive", "bright"]),
    CuratedVoice("KM-05", "Daniel", VoiceProvider.ELEVENLABS, "onwK4e9ZLuTAKqWW03F9", "British", "male", "middle-aged",
                 "Daniel - Authoritative British male voice, broadcaster", ["authoritative", "clear"]),
    CuratedVoice("KM-06", "Matilda", VoiceProvider.ELEVENLABS, "XrExE9yKIg1WjnnlVkGX", "American", "female", "middle-aged",
                 "Matilda - Friendly American female voice, upbeat", ["friendly", "upbeat"]),
]

CURATED_VOICE_LIBRARY: Dict[str, CuratedVoice] = {
    voice.id: voice for voice in VAPI_VOICE_CATALOG + ELEVENLABS_CURATED_VOICES
}

# Native voice names accepted by the agent platform (lowercase)
NATIVE_VAPI_VOICE_IDS = frozenset(
    [voice.voice_id for voice in VAPI_VOICE_CATALOG]
    + ["kylie", "rohan", "savannah", "hana", "neha", "cole", "harry", "paige", "spencer"]
)


def get_curated_voice(voice_id: str) -> Optional[CuratedVoice]:
    """Look up a curated voice by its library id."""
    return CURATED_VOICE_LIBRARY.get(voice_id)


def get_legacy_voice_id(name: str) -> Optional[str]:
    """Look up a legacy voice name (case-insensitive) and return its ElevenLabs id."""
    lowered = name.strip().lower()
    for legacy_name, elevenlabs_id in LEGACY_VOICE_MAPPING.items():
        if legacy_name.lower() == lowered:
            return elevenlabs_id
    return None


def is_native_vapi_voice(voice_id: str) -> bool:
    """True when the name is a voice the agent platform ships natively."""
    return voice_id.strip().lower() in NATIVE_VAPI_VOICE_IDS
