"""
Exception taxonomy for provisioning.

- ClientInputError: caller-correctable (HTTP 400)
- DependencyError: a third-party call failed (HTTP 500 when it is fatal)

Mapping to HTTP responses happens only in main.py.
"""
from typing import List, Optional

NON_RETRYABLE_STATUS_CODES = (401, 403)


class KendallError(Exception):
    """Base class for all provisioning errors."""


class ClientInputError(KendallError):
    """The request itself is wrong and the caller can fix it."""


class MissingFieldsError(ClientInputError):
    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Missing required fields: {', '.join(missing)}")


class InvalidVoiceError(ClientInputError):
    def __init__(self, message: str, details: Optional[str] = None):
        self.details = details
        super().__init__(message)


class DependencyError(KendallError):
    """A remote service failed. `status_code` is the upstream HTTP status when known."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        self.service = service
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.status_code not in NON_RETRYABLE_STATUS_CODES


class RecordStoreError(DependencyError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("record_store", message, status_code)


class AgentPlatformError(DependencyError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("agent_platform", message, status_code)


class TelephonyError(DependencyError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("telephony", message, status_code)


class PhoneBindingError(TelephonyError):
    """A number was bought but could not be bound to the agent. It is NOT released."""

    def __init__(self, message: str, phone_number: str, provider_sid: Optional[str] = None,
                 status_code: Optional[int] = None):
        self.phone_number = phone_number
        self.provider_sid = provider_sid
        super().__init__(
            f"{message} (purchased number {phone_number}, Twilio SID {provider_sid or 'N/A'} "
            "requires manual import or release)",
            status_code,
        )


class NotificationError(DependencyError):
    def __init__(self, message: str):
        super().__init__("notification", message)


class VoiceValidatorUnavailable(DependencyError):
    """The validator could not decide; this is not the same as an invalid voice."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("voice_validator", message, status_code)


def is_retryable_error(error: BaseException) -> bool:
    """Retry classification shared by every remote call."""
    if isinstance(error, DependencyError):
        return error.is_retryable
    return not isinstance(error, ClientInputError)
