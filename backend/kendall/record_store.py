"""
Record Store - persistence for Kendall user records.

This module:
1. Maps internal snake_case fields to the Airtable column names
2. Talks to the Airtable REST API (create / get / update by record id)
3. Provides an in-memory store for local development and tests

The provisioning core only ever sees snake_case fields and UserRecord.

Python 3.9 compatible - uses typing.Dict, typing.List, typing.Optional
"""

import logging
import os
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from engine.profile import AssistantProfileInput, AttachedFile, PromptStyle

from .errors import RecordStoreError

logger = logging.getLogger(__name__)


class RecordStatus(str, Enum):
    PROCESSING = "processing"
    ACTIVE = "active"
    ERROR = "error"


# internal name -> Airtable column
FIELD_NAMES: Dict[str, str] = {
    "full_name": "fullName",
    "email": "email",
    "mobile_number": "mobileNumber",
    "forward_calls": "forwardCalls",
    "assistant_name": "kendallName",
    "nickname": "nickname",
    "prompt_style": "promptStyle",
    "selected_traits": "selectedTraits",
    "use_case_choice": "useCaseChoice",
    "boundary_choices": "boundaryChoices",
    "user_context_and_rules": "userContextAndRules",
    "file_usage_instructions": "fileUsageInstructions",
    "personality_choices": "personalityChoices",
    "personality_text": "personality",
    "customization_options": "customizationOptions",
    "user_context": "userContext",
    "additional_instructions": "additionalInstructions",
    "voice_choice": "voiceChoice",
    "attached_files": "attachedFiles",
    "analyzed_file_content": "analyzedFileContent",
    "agent_id": "vapi_agent_id",
    "phone_number": "vapi_number",
    "phone_provider_id": "vapi_phone_id",
    "twilio_sid": "twilio_sid",
    "status": "status",
}
COLUMN_NAMES: Dict[str, str] = {column: name for name, column in FIELD_NAMES.items()}

# Multi-choice answers are stored as ", "-joined text
LIST_FIELDS = ("selected_traits", "boundary_choices", "personality_choices", "customization_options")


def to_storage(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Encode internal fields into Airtable columns."""
    stored: Dict[str, Any] = {}
    for name, value in fields.items():
        column = FIELD_NAMES.get(name)
        if column is None:
            raise ValueError(f"Unknown record field: {name}")
        if name in LIST_FIELDS:
            value = ", ".join(value or [])
        elif name == "forward_calls":
            value = "Y" if value else "N"
        elif name == "attached_files":
            value = [f.to_dict() if isinstance(f, AttachedFile) else dict(f) for f in value or []]
        elif isinstance(value, Enum):
            value = value.value
        stored[column] = value
    return stored


def from_storage(stored: Dict[str, Any]) -> Dict[str, Any]:
    """Decode Airtable columns into internal fields. Unknown columns are dropped."""
    fields: Dict[str, Any] = {}
    for column, value in stored.items():
        name = COLUMN_NAMES.get(column)
        if name is None:
            continue
        if name in LIST_FIELDS:
            value = [part.strip() for part in (value or "").split(", ") if part.strip()] \
                if isinstance(value, str) else list(value or [])
        elif name == "forward_calls":
            value = value in ("Y", True, "true")
        elif name == "attached_files":
            value = [AttachedFile(url=f.get("url", ""), filename=f.get("filename", "")) for f in value or []]
        fields[name] = value
    return fields


@dataclass
class UserRecord:
    """A stored user record (decoded)."""
    id: str
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> Optional[str]:
        return self.fields.get("status")

    @property
    def agent_id(self) -> Optional[str]:
        return self.fields.get("agent_id")

    @property
    def phone_number(self) -> Optional[str]:
        return self.fields.get("phone_number")

    @property
    def analyzed_file_content(self) -> Any:
        """Raw derived content; see engine.content for the shapes it can take."""
        return self.fields.get("analyzed_file_content")

    def to_external(self) -> Dict[str, Any]:
        """camelCase view returned by the API."""
        return {"id": self.id, "fields": to_storage(self.fields)}


def profile_to_fields(profile: AssistantProfileInput) -> Dict[str, Any]:
    """Fields persisted at record creation. Attachments and voice are written later."""
    fields: Dict[str, Any] = {
        "full_name": profile.full_name,
        "email": profile.email,
        "mobile_number": profile.mobile_number,
        "forward_calls": profile.forward_calls,
        "assistant_name": profile.display_assistant_name,
        "prompt_style": profile.prompt_style,
        "status": RecordStatus.PROCESSING,
    }
    if profile.prompt_style == PromptStyle.WIZARD:
        fields.update({
            "selected_traits": profile.selected_traits,
            "use_case_choice": profile.use_case_choice,
            "boundary_choices": profile.boundary_choices,
            "user_context_and_rules": profile.user_context_and_rules,
        })
        if profile.nickname:
            fields["nickname"] = profile.nickname
        if profile.file_usage_instructions and profile.file_usage_instructions.strip():
            fields["file_usage_instructions"] = profile.file_usage_instructions.strip()
    else:
        fields.update({
            "personality_choices": profile.personality_choices,
            "personality_text": profile.personality_text,
            "customization_options": profile.customization_options,
            "user_context": profile.user_context,
            "additional_instructions": profile.additional_instructions,
        })
    return fields


class RecordStore:
    """Interface the provisioning core depends on."""

    async def create(self, fields: Dict[str, Any]) -> str:
        raise NotImplementedError

    async def get(self, record_id: str) -> UserRecord:
        raise NotImplementedError

    async def update(self, record_id: str, fields: Dict[str, Any]) -> str:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class AirtableRecordStore(RecordStore):
    """Record store backed by an Airtable table."""

    API_URL = "https://api.airtable.com/v0"

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = os.getenv("AIRTABLE_API_KEY")
        self.base_id = os.getenv("AIRTABLE_BASE_ID")
        self.table_id = os.getenv("AIRTABLE_TABLE_ID")
        self.http_client = http_client or httpx.AsyncClient(timeout=30.0)

        if self.is_configured:
            logger.info(f"AirtableRecordStore configured for base {self.base_id}")
        else:
            logger.warning("AirtableRecordStore: Airtable credentials not configured - record calls will fail")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_id and self.table_id)

    @property
    def table_url(self) -> str:
        return f"{self.API_URL}/{self.base_id}/{self.table_id}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def close(self) -> None:
        await self.http_client.aclose()

    async def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.is_configured:
            raise RecordStoreError("Airtable not configured")
        try:
            response = await self.http_client.request(method, url, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            raise RecordStoreError(f"Airtable request failed: {e}") from e

        if response.status_code >= 400:
            raise RecordStoreError(_airtable_error_message(response), response.status_code)
        return response.json()

    async def create(self, fields: Dict[str, Any]) -> str:
        data = await self._request("POST", self.table_url, {"fields": to_storage(fields)})
        logger.info(f"Airtable record created: {data.get('id')}")
        return data["id"]

    async def get(self, record_id: str) -> UserRecord:
        data = await self._request("GET", f"{self.table_url}/{record_id}")
        return UserRecord(id=data["id"], fields=from_storage(data.get("fields", {})))

    async def update(self, record_id: str, fields: Dict[str, Any]) -> str:
        data = await self._request("PATCH", f"{self.table_url}/{record_id}", {"fields": to_storage(fields)})
        logger.debug(f"Airtable record updated: {record_id} fields={list(fields)}")
        return data.get("id", record_id)


def _airtable_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"Airtable API error: {response.status_code}"
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str):
        return error
    return body.get("message") or f"Airtable API error: {response.status_code}"


class InMemoryRecordStore(RecordStore):
    """Process-local record store (acceptable for development only)."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}

    async def create(self, fields: Dict[str, Any]) -> str:
        record_id = f"rec{uuid.uuid4().hex[:14]}"
        self.rows[record_id] = to_storage(fields)
        return record_id

    async def get(self, record_id: str) -> UserRecord:
        if record_id not in self.rows:
            raise RecordStoreError(f"Record not found: {record_id}", 404)
        return UserRecord(id=record_id, fields=from_storage(self.rows[record_id]))

    async def update(self, record_id: str, fields: Dict[str, Any]) -> str:
        if record_id not in self.rows:
            raise RecordStoreError(f"Record not found: {record_id}", 404)
        self.rows[record_id].update(to_storage(fields))
        return record_id


def fields_to_profile(record: UserRecord) -> AssistantProfileInput:
    """Rebuild the canonical profile from a stored record (used by the update flow)."""
    fields = record.fields
    style = PromptStyle(fields.get("prompt_style") or PromptStyle.LEGACY.value)
    return AssistantProfileInput(
        full_name=fields.get("full_name", ""),
        email=fields.get("email", ""),
        mobile_number=fields.get("mobile_number", ""),
        prompt_style=style,
        assistant_name=fields.get("assistant_name") or "Kendall",
        nickname=fields.get("nickname"),
        forward_calls=bool(fields.get("forward_calls")),
        voice_choice=fields.get("voice_choice") or "",
        selected_traits=fields.get("selected_traits", []),
        use_case_choice=fields.get("use_case_choice", ""),
        boundary_choices=fields.get("boundary_choices", []),
        user_context_and_rules=fields.get("user_context_and_rules", ""),
        file_usage_instructions=fields.get("file_usage_instructions"),
        personality_choices=fields.get("personality_choices", []),
        personality_text=fields.get("personality_text", ""),
        customization_options=fields.get("customization_options", []),
        user_context=fields.get("user_context", ""),
        additional_instructions=fields.get("additional_instructions", ""),
        attached_files=fields.get("attached_files", []),
    )


# Singleton instance
_record_store: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    """Airtable when configured, otherwise the in-memory store."""
    global _record_store
    if _record_store is None:
        airtable = AirtableRecordStore()
        if airtable.is_configured:
            _record_store = airtable
        else:
            logger.warning("Using in-memory record store - records are lost on restart")
            _record_store = InMemoryRecordStore()
    return _record_store
