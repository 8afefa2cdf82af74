"""
Pydantic models for the Kendall API.

The create/update endpoints accept two request schemas:
- WizardAssistantRequest: the setup wizard (kendallName + userContextAndRules)
- LegacyAssistantRequest: the original flat form

Both normalize into engine.profile.AssistantProfileInput right away.

Python 3.9 compatible - uses typing.List, typing.Dict, typing.Optional
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError, field_validator

from engine.profile import AssistantProfileInput, AttachedFile, PromptStyle

from .errors import ClientInputError, MissingFieldsError

WIZARD_REQUIRED_FIELDS = ("fullName", "email", "mobileNumber", "kendallName", "useCaseChoice", "userContextAndRules")
LEGACY_REQUIRED_FIELDS = ("fullName", "email", "mobileNumber", "userContext")


class AttachedFileModel(BaseModel):
    url: str
    filename: str = ""


def _as_list(value: Any) -> Any:
    """Accept a single comma-separated string where a list is expected."""
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def _missing(model: BaseModel, required: Tuple[str, ...]) -> List[str]:
    missing = []
    for name in required:
        value = getattr(model, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


class WizardAssistantRequest(BaseModel):
    fullName: Optional[str] = None
    email: Optional[str] = None
    mobileNumber: Optional[str] = None
    kendallName: Optional[str] = None
    nickname: Optional[str] = None
    useCaseChoice: Optional[str] = None
    userContextAndRules: Optional[str] = None
    selectedTraits: List[str] = []
    boundaryChoices: List[str] = []
    forwardCalls: bool = False
    voiceChoice: Optional[str] = None
    attachedFileUrls: List[AttachedFileModel] = []
    fileUsageInstructions: Optional[str] = None

    @field_validator("selectedTraits", "boundaryChoices", mode="before")
    @classmethod
    def split_choice_lists(cls, value: Any) -> Any:
        return _as_list(value)

    def missing_fields(self) -> List[str]:
        return _missing(self, WIZARD_REQUIRED_FIELDS)

    def to_profile_input(self) -> AssistantProfileInput:
        return AssistantProfileInput(
            full_name=self.fullName.strip(),
            email=self.email.strip(),
            mobile_number=self.mobileNumber.strip(),
            prompt_style=PromptStyle.WIZARD,
            assistant_name=self.kendallName.strip(),
            nickname=(self.nickname or "").strip() or None,
            forward_calls=self.forwardCalls,
            voice_choice=(self.voiceChoice or "").strip(),
            selected_traits=list(self.selectedTraits),
            use_case_choice=self.useCaseChoice,
            boundary_choices=list(self.boundaryChoices),
            user_context_and_rules=self.userContextAndRules,
            file_usage_instructions=self.fileUsageInstructions,
            attached_files=[AttachedFile(url=f.url, filename=f.filename) for f in self.attachedFileUrls],
        )


class LegacyAssistantRequest(BaseModel):
    fullName: Optional[str] = None
    email: Optional[str] = None
    mobileNumber: Optional[str] = None
    userContext: Optional[str] = None
    kendallName: Optional[str] = None
    personalityChoices: List[str] = []
    personalityText: Optional[str] = None
    customizationOptions: List[str] = []
    additionalInstructions: Optional[str] = None
    forwardCalls: bool = False
    voiceChoice: Optional[str] = None
    attachedFileUrls: List[AttachedFileModel] = []

    @field_validator("personalityChoices", "customizationOptions", mode="before")
    @classmethod
    def split_choice_lists(cls, value: Any) -> Any:
        return _as_list(value)

    def missing_fields(self) -> List[str]:
        return _missing(self, LEGACY_REQUIRED_FIELDS)

    def to_profile_input(self) -> AssistantProfileInput:
        return AssistantProfileInput(
            full_name=self.fullName.strip(),
            email=self.email.strip(),
            mobile_number=self.mobileNumber.strip(),
            prompt_style=PromptStyle.LEGACY,
            assistant_name=(self.kendallName or "").strip() or "Kendall",
            forward_calls=self.forwardCalls,
            voice_choice=(self.voiceChoice or "").strip(),
            personality_choices=list(self.personalityChoices),
            personality_text=self.personalityText or "",
            customization_options=list(self.customizationOptions),
            user_context=self.userContext,
            additional_instructions=self.additionalInstructions or "",
            attached_files=[AttachedFile(url=f.url, filename=f.filename) for f in self.attachedFileUrls],
        )


CreateAssistantRequest = Union[WizardAssistantRequest, LegacyAssistantRequest]


def is_wizard_request(body: Dict[str, Any]) -> bool:
    return bool(body.get("kendallName")) and bool(body.get("userContextAndRules"))


def parse_assistant_request(body: Any) -> AssistantProfileInput:
    """
    Decode a create/update body into the canonical profile.

    Raises:
        ClientInputError: body is not an object or has malformed fields
        MissingFieldsError: required fields for the detected schema are missing
    """
    if not isinstance(body, dict):
        raise ClientInputError("Request body must be a JSON object")

    model_cls = WizardAssistantRequest if is_wizard_request(body) else LegacyAssistantRequest
    try:
        request: CreateAssistantRequest = model_cls.model_validate(body)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ClientInputError(f"Invalid request fields: {', '.join(fields)}") from e

    missing = request.missing_fields()
    if missing:
        raise MissingFieldsError(missing)
    return request.to_profile_input()


class CreateAssistantResponse(BaseModel):
    success: bool = True
    agentId: str
    phoneNumber: Optional[str] = None
    recordId: str
    editLink: str
    chatLink: str
    status: str
    warning: Optional[str] = None


class UpdateAssistantResponse(BaseModel):
    success: bool = True
    agentId: str
    recordId: str
    phoneNumber: Optional[str] = None


class ValidateVoiceRequest(BaseModel):
    voiceId: Optional[str] = None


class CancelCallRequest(BaseModel):
    callId: Optional[str] = None


class CancelCallResponse(BaseModel):
    success: bool
    message: str
