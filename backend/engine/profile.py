"""
Canonical assistant profile.

Both request schemas (setup wizard and legacy form) are normalized into one
AssistantProfileInput at the HTTP boundary, and
engine.prompts.build_agent_profile() turns it into the AgentProfile sent to
the agent platform. That builder is a pure function of its inputs, so the creation call
and the later enrichment update differ only in the knowledge section.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .voices import VoiceSelection

DEFAULT_ASSISTANT_NAME = "Kendall"


class PromptStyle(str, Enum):
    """Which system prompt template the profile was collected for."""
    WIZARD = "WIZARD"
    LEGACY = "LEGACY"


@dataclass
class AttachedFile:
    url: str
    filename: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "filename": self.filename}


@dataclass
class AssistantProfileInput:
    """
    Everything the user told us about their assistant.

    Attributes:
        full_name, email, mobile_number: Owner identity
        assistant_name: Display name of the assistant ("Kendall" by default)
        nickname: How the assistant refers to the owner (wizard only)
        forward_calls: Whether callers may be forwarded to the mobile number
        voice_choice: Raw voice selection ("" = platform default)
        prompt_style: Which template renders the system prompt
        selected_traits, use_case_choice, boundary_choices,
        user_context_and_rules, file_usage_instructions: Wizard answers
        personality_choices, personality_text, customization_options,
        user_context, additional_instructions: Legacy answers
        attached_files: Source documents for the enrichment pipeline
    """
    full_name: str
    email: str
    mobile_number: str
    prompt_style: PromptStyle
    assistant_name: str = DEFAULT_ASSISTANT_NAME
    nickname: Optional[str] = None
    forward_calls: bool = False
    voice_choice: str = ""

    selected_traits: List[str] = field(default_factory=list)
    use_case_choice: str = ""
    boundary_choices: List[str] = field(default_factory=list)
    user_context_and_rules: str = ""
    file_usage_instructions: Optional[str] = None

    personality_choices: List[str] = field(default_factory=list)
    personality_text: str = ""
    customization_options: List[str] = field(default_factory=list)
    user_context: str = ""
    additional_instructions: str = ""

    attached_files: List[AttachedFile] = field(default_factory=list)

    @property
    def display_assistant_name(self) -> str:
        return (self.assistant_name or "").strip() or DEFAULT_ASSISTANT_NAME


@dataclass
class AgentProfile:
    """The structured bundle sent to the agent platform on create/update."""
    name: str
    system_prompt: str
    voice: Optional[VoiceSelection] = None
    forwarding_phone_number: Optional[str] = None

