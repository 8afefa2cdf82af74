"""
Twilio Service - buys phone numbers for new assistants.

This service:
1. Searches the local-number inventory for a country (CA by default)
2. Purchases a number with the SMS webhook already configured
3. Checks that a purchased number is visible in the account inventory

Twilio SDK errors are converted to TelephonyError with the HTTP status, so
401/403 are classified as fatal by the retry policy.

Python 3.9 compatible - uses typing.Optional
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from .errors import TelephonyError

logger = logging.getLogger(__name__)


@dataclass
class PurchasedNumber:
    phone_number: str  # E.164, as returned by Twilio
    sid: str


class TwilioService:
    """Service for Twilio number inventory."""

    def __init__(self, client: Optional[TwilioClient] = None):
        """Initialize Twilio client.

        Does NOT crash if Twilio not configured - allows graceful degradation.
        Phone provisioning fails with TelephonyError instead.
        """
        self.account_sid = os.getenv("TWILIO_ACCOUNT_SID")
        self.auth_token = os.getenv("TWILIO_AUTH_TOKEN")
        self.country = os.getenv("TWILIO_NUMBER_COUNTRY", "CA")
        self.sms_webhook_url = os.getenv("SMS_WEBHOOK_URL") or _default_sms_webhook()

        self.client: Optional[TwilioClient] = client
        if self.client is None and self.account_sid and self.auth_token:
            self.client = TwilioClient(self.account_sid, self.auth_token)

        if self.is_configured:
            logger.info(f"TwilioService configured (country={self.country})")
        else:
            logger.warning("TwilioService: Twilio credentials not configured - number purchase will fail")

    @property
    def is_configured(self) -> bool:
        """Check if Twilio is properly configured."""
        return self.client is not None

    def _require_client(self) -> TwilioClient:
        if self.client is None:
            raise TelephonyError(
                "TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN are required to purchase new numbers",
                status_code=401,
            )
        return self.client

    def search_available_number(self) -> str:
        """Return one purchasable local number."""
        client = self._require_client()
        try:
            available = client.available_phone_numbers(self.country).local.list(limit=1)
        except TwilioRestException as e:
            raise TelephonyError(f"Twilio search failed: {e.msg}", e.status) from e

        if not available:
            raise TelephonyError(f"No available {self.country} phone numbers found in Twilio inventory")
        return available[0].phone_number

    def purchase_number(self, phone_number: str) -> PurchasedNumber:
        """Buy a number. SMS webhook is attached at purchase time."""
        client = self._require_client()
        kwargs = {"phone_number": phone_number}
        if self.sms_webhook_url:
            kwargs["sms_url"] = self.sms_webhook_url
            kwargs["sms_method"] = "POST"
        try:
            incoming = client.incoming_phone_numbers.create(**kwargs)
        except TwilioRestException as e:
            raise TelephonyError(f"Twilio purchase failed: {e.msg}", e.status) from e

        logger.info(f"Purchased Twilio number {incoming.phone_number} (sid={incoming.sid})")
        return PurchasedNumber(phone_number=incoming.phone_number, sid=incoming.sid)

    def search_and_purchase(self) -> PurchasedNumber:
        return self.purchase_number(self.search_available_number())

    def is_number_provisioned(self, phone_number: str) -> bool:
        """True once the number appears in the account's inventory."""
        client = self._require_client()
        try:
            matches = client.incoming_phone_numbers.list(phone_number=phone_number, limit=1)
        except TwilioRestException as e:
            raise TelephonyError(f"Twilio verification failed: {e.msg}", e.status) from e
        return len(matches) > 0


def _default_sms_webhook() -> Optional[str]:
    base_url = os.getenv("PUBLIC_BASE_URL")
    if base_url:
        return f"{base_url.rstrip('/')}/api/twilio-sms-webhook"
    return None


# Singleton instance
_twilio_service: Optional[TwilioService] = None


def get_twilio_service() -> TwilioService:
    """Get or create the Twilio service singleton."""
    global _twilio_service
    if _twilio_service is None:
        _twilio_service = TwilioService()
    return _twilio_service
