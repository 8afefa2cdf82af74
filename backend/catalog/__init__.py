"""
Declarative catalogs: voices, personality blocks and agent functions.
"""
from .voices import (
    VoiceProvider,
    CuratedVoice,
    VAPI_VOICE_CATALOG,
    LEGACY_VOICE_MAPPING,
    CURATED_VOICE_LIBRARY,
    get_curated_voice,
    get_legacy_voice_id,
    is_native_vapi_voice,
)
from .functions import (
    AGENT_FUNCTIONS,
    build_function_definitions,
)

__all__ = [
    "VoiceProvider",
    "CuratedVoice",
    "VAPI_VOICE_CATALOG",
    "LEGACY_VOICE_MAPPING",
    "CURATED_VOICE_LIBRARY",
    "get_curated_voice",
    "get_legacy_voice_id",
    "is_native_vapi_voice",
    "AGENT_FUNCTIONS",
    "build_function_definitions",
]
