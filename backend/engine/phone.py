"""
Phone number formatting and extraction.

- format_e164: owner mobile numbers -> E.164 via phonenumbers (CA/US default region)
- format_for_display: E.164 -> "(416) 555-0123" for emails
- extract_phone_number: ordered strategies over agent-platform responses
- placeholder helpers for numbers that could not be extracted

Python 3.9 compatible - uses typing.Optional, typing.List
"""
import logging
from typing import Any, Callable, List, Optional

import phonenumbers
from phonenumbers import NumberParseException

logger = logging.getLogger(__name__)

DEFAULT_REGION = "CA"

PHONE_FIELD_CANDIDATES = ("phoneNumber", "phone", "number", "phone_number", "value", "e164", "national")

PLACEHOLDER_TEMPLATE = "Number purchased (ID: {provider_id}) - check Vapi dashboard"
PLACEHOLDER_MARKERS = ("Number purchased", "check Vapi dashboard")


def format_e164(phone: Optional[str], default_region: str = DEFAULT_REGION) -> Optional[str]:
    """
    Normalize a user-entered phone number to E.164 using phonenumbers.

    Handles "+14165550123", "416-555-0123", "(416) 555-0123", "1 416 555 0123".
    Numbers without a country code are parsed in `default_region`
    (CA and US share +1).

    Returns:
        E.164 formatted phone or None if invalid/missing
    """
    if not phone or not isinstance(phone, str) or not phone.strip():
        return None

    try:
        parsed = phonenumbers.parse(phone, default_region)
    except NumberParseException as e:
        logger.debug(f"Could not parse phone number '{phone}': {e}")
        return None

    if not phonenumbers.is_valid_number(parsed):
        logger.debug(f"Invalid phone number: {phone}")
        return None

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def forwarding_number(forward_calls: bool, mobile_number: Optional[str]) -> Optional[str]:
    """E.164 forwarding target, or None when forwarding is off or the number is unusable."""
    if not forward_calls or not mobile_number:
        return None
    return format_e164(mobile_number)


def format_for_display(phone: str) -> str:
    """Format a number for people, e.g. "+14165550123" -> "(416) 555-0123"."""
    try:
        parsed = phonenumbers.parse(phone, "US")
    except NumberParseException:
        return phone
    if parsed.country_code == 1 and len(str(parsed.national_number)) == 10:
        national = str(parsed.national_number)
        return f"({national[:3]}) {national[3:6]}-{national[6:]}"
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.INTERNATIONAL)


def make_placeholder(provider_id: str) -> str:
    """Human-readable stand-in for a number that could not be extracted."""
    return PLACEHOLDER_TEMPLATE.format(provider_id=provider_id)


def is_placeholder(phone: Optional[str]) -> bool:
    """True for placeholder strings; they must never be sent to a user as a real number."""
    if not phone:
        return False
    return any(marker in phone for marker in PLACEHOLDER_MARKERS)


# ============================================================
# Extraction strategies
# ============================================================

def _from_string(payload: Any) -> Optional[str]:
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return None


def _from_candidate_fields(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in PHONE_FIELD_CANDIDATES:
        candidate = payload.get(key)
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def _from_nested_fields(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in PHONE_FIELD_CANDIDATES:
        candidate = payload.get(key)
        if isinstance(candidate, dict):
            nested = extract_phone_number(candidate)
            if nested:
                return nested
    return None


def _from_phone_numbers_list(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict) or not isinstance(payload.get("phoneNumbers"), list):
        return None
    for entry in payload["phoneNumbers"]:
        nested = extract_phone_number(entry)
        if nested:
            return nested
    return None


EXTRACTION_STRATEGIES: List[Callable[[Any], Optional[str]]] = [
    _from_string,
    _from_candidate_fields,
    _from_nested_fields,
    _from_phone_numbers_list,
]


def extract_phone_number(payload: Any) -> Optional[str]:
    """Pull a phone number out of a provider response, trying each strategy in order."""
    if payload is None:
        return None
    for strategy in EXTRACTION_STRATEGIES:
        found = strategy(payload)
        if found:
            return found
    return None
