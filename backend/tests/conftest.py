"""
Shared fakes for provisioning tests.

Every collaborator of the orchestrator has an in-memory stand-in here so
tests can inject failures at any step and count calls.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from engine.profile import AssistantProfileInput, AttachedFile, PromptStyle
from engine.voices import resolve_voice
from kendall.errors import AgentPlatformError, RecordStoreError
from kendall.phone_provisioning import PhoneBinding
from kendall.provisioning import ProvisioningOrchestrator
from kendall.record_store import InMemoryRecordStore, to_storage
from kendall.vapi_service import AgentResult
from kendall.voice_service import VoiceValidation


def make_recording_sleep():
    """Zero-delay async sleep that remembers what it was asked to wait (see `.delays`)."""
    delays: List[float] = []

    async def sleep(seconds: float) -> None:
        delays.append(seconds)

    sleep.delays = delays
    return sleep


class FakeRecordStore(InMemoryRecordStore):
    """In-memory store with switchable failures and scripted derived content."""

    def __init__(self):
        super().__init__()
        self.fail_create = False
        self.fail_updates = False
        self.fail_gets = False
        # Fail only updates that carry this field, e.g. "agent_id"
        self.fail_writes_with: Optional[str] = None
        self.updates: List[Dict[str, Any]] = []
        self.get_calls = 0
        # Successive analyzed_file_content values returned by get(); the last one repeats
        self.content_sequence: List[Any] = []

    async def create(self, fields: Dict[str, Any]) -> str:
        if self.fail_create:
            raise RecordStoreError("Airtable unavailable", 503)
        return await super().create(fields)

    async def get(self, record_id: str):
        self.get_calls += 1
        if self.fail_gets:
            raise RecordStoreError("Airtable timeout")
        if self.content_sequence:
            index = min(self.get_calls - 1, len(self.content_sequence) - 1)
            self.rows[record_id].update(to_storage({"analyzed_file_content": self.content_sequence[index]}))
        return await super().get(record_id)

    async def update(self, record_id: str, fields: Dict[str, Any]) -> str:
        self.updates.append(dict(fields))
        if self.fail_updates or (self.fail_writes_with and self.fail_writes_with in fields):
            raise RecordStoreError("Airtable unavailable", 503)
        return await super().update(record_id, fields)

    def status_of(self, record_id: str) -> Optional[str]:
        return self.rows[record_id].get("status")


class FakeVoiceValidator:
    def __init__(self, result: Optional[VoiceValidation] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: List[str] = []

    async def validate(self, voice_input: str) -> VoiceValidation:
        self.calls.append(voice_input)
        if self.error:
            raise self.error
        if self.result is not None:
            return self.result
        return VoiceValidation(valid=True, voice=resolve_voice(voice_input), voice_name=voice_input)


class FakeVapi:
    def __init__(self, agent_id: Optional[str] = "agent_123"):
        self.agent_id = agent_id
        self.created: List[Any] = []
        self.updated: List[Any] = []
        self.fail_update = False

    async def create_agent(self, profile) -> AgentResult:
        self.created.append(profile)
        if not self.agent_id:
            raise AgentPlatformError("VAPI did not return an assistant id")
        return AgentResult(id=self.agent_id)

    async def update_agent(self, agent_id: str, profile) -> AgentResult:
        self.updated.append((agent_id, profile))
        if self.fail_update:
            raise AgentPlatformError("Assistant update rejected", 500)
        return AgentResult(id=agent_id)


class FakePhoneClient:
    def __init__(self, binding: Optional[PhoneBinding] = None, error: Optional[Exception] = None):
        self.binding = binding or PhoneBinding(
            phone_number="+14165550123", provider_id="pn_1", provider_account_ref="PN123"
        )
        self.error = error
        self.calls: List[str] = []

    async def purchase_and_bind(self, agent_id: str, label: Optional[str] = None) -> PhoneBinding:
        self.calls.append(agent_id)
        if self.error:
            raise self.error
        return self.binding


def make_legacy_profile(**overrides) -> AssistantProfileInput:
    values = dict(
        full_name="Jane Doe",
        email="jane@example.com",
        mobile_number="416-555-0199",
        prompt_style=PromptStyle.LEGACY,
        personality_choices=["Friendly & Casual", "Professional & Polished"],
        user_context="I run a small bakery in Toronto.",
    )
    values.update(overrides)
    return AssistantProfileInput(**values)


def make_wizard_profile(**overrides) -> AssistantProfileInput:
    values = dict(
        full_name="Jane Doe",
        email="jane@example.com",
        mobile_number="+14165550199",
        prompt_style=PromptStyle.WIZARD,
        assistant_name="Ava",
        nickname="Janie",
        selected_traits=["Friendly", "Witty"],
        use_case_choice="Clients & Customers",
        boundary_choices=["Don't share my schedule"],
        user_context_and_rules="I run a bakery.\nNever share my schedule.",
        forward_calls=True,
    )
    values.update(overrides)
    return AssistantProfileInput(**values)


def attachment() -> AttachedFile:
    return AttachedFile(url="https://files.example.com/menu.pdf", filename="menu.pdf")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def sleep():
    return make_recording_sleep()


@pytest.fixture
def record_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def voice_validator() -> FakeVoiceValidator:
    return FakeVoiceValidator()


@pytest.fixture
def vapi() -> FakeVapi:
    return FakeVapi()


@pytest.fixture
def phone_client() -> FakePhoneClient:
    return FakePhoneClient()


@pytest.fixture
def email_service() -> MagicMock:
    return MagicMock()


@pytest.fixture
def orchestrator(record_store, voice_validator, vapi, phone_client, email_service, sleep) -> ProvisioningOrchestrator:
    return ProvisioningOrchestrator(
        record_store=record_store,
        voice_validator=voice_validator,
        vapi_service=vapi,
        phone_client=phone_client,
        email_service=email_service,
        sleep=sleep,
    )
