"""
Provisioning engine - pure logic shared by the service layer.
"""
from .content import (
    normalize_derived_content,
    has_arrived,
)
from .phone import (
    format_e164,
    format_for_display,
    extract_phone_number,
    make_placeholder,
    is_placeholder,
)
from .profile import (
    PromptStyle,
    AttachedFile,
    AssistantProfileInput,
    AgentProfile,
)
from .prompts import (
    build_system_prompt,
    build_agent_profile,
)
from .retry import (
    RetryPolicy,
    retry,
    poll_until,
)
from .voices import (
    VoiceSelection,
    resolve_voice,
)

__all__ = [
    "normalize_derived_content",
    "has_arrived",
    "format_e164",
    "format_for_display",
    "extract_phone_number",
    "make_placeholder",
    "is_placeholder",
    "PromptStyle",
    "AttachedFile",
    "AssistantProfileInput",
    "AgentProfile",
    "build_system_prompt",
    "build_agent_profile",
    "RetryPolicy",
    "retry",
    "poll_until",
    "VoiceSelection",
    "resolve_voice",
]
