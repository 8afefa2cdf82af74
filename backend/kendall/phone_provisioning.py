"""
Phone Provisioning - buy a number and bind it to an assistant.

State machine:
    searching_number -> purchasing -> verifying_provisioned
        -> importing_to_agent_platform -> binding_complete

Retry policy:
- search + purchase: 3 attempts, 2^attempt s backoff, 401/403 fatal
- verification: 5 polls at 1 s; failure is logged and import is attempted anyway
- import/bind: 3 attempts, 2^attempt s backoff, 401/403 fatal

A purchased number is NEVER released automatically. If binding fails the
PhoneBindingError carries the Twilio SID for manual reconciliation.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from engine.phone import extract_phone_number, format_e164, is_placeholder, make_placeholder
from engine.retry import IMPORT_POLICY, PURCHASE_POLICY, RetryPolicy, SleepFn, poll_until, retry

from .errors import AgentPlatformError, DependencyError, PhoneBindingError, is_retryable_error
from .twilio_service import PurchasedNumber, TwilioService
from .vapi_service import VapiService

logger = logging.getLogger(__name__)

VERIFY_ATTEMPTS = 5
VERIFY_INTERVAL_SECONDS = 1.0


@dataclass
class PhoneBinding:
    """Result of provisioning: the number and the ids needed to find it again."""
    phone_number: str  # E.164, or a placeholder when it could not be extracted
    provider_id: str  # agent-platform phone number id
    provider_account_ref: Optional[str] = None  # Twilio number SID

    @property
    def is_final(self) -> bool:
        return not is_placeholder(self.phone_number)


class PhoneProvisioningClient:
    """Purchases a Twilio number and imports it into VAPI bound to an assistant."""

    def __init__(
        self,
        twilio_service: TwilioService,
        vapi_service: VapiService,
        sleep: SleepFn = asyncio.sleep,
        purchase_policy: RetryPolicy = PURCHASE_POLICY,
        import_policy: RetryPolicy = IMPORT_POLICY,
    ):
        self.twilio = twilio_service
        self.vapi = vapi_service
        self.sleep = sleep
        self.purchase_policy = purchase_policy
        self.import_policy = import_policy

    async def purchase_and_bind(self, agent_id: str, label: Optional[str] = None) -> PhoneBinding:
        """
        Provision a phone number for an assistant.

        Args:
            agent_id: Assistant the number is bound to at import time
            label: Dashboard label (usually the owner's name)

        Returns:
            PhoneBinding (phone_number may be a placeholder, see is_final)

        Raises:
            TelephonyError: purchase failed (nothing was bought)
            PhoneBindingError: purchased but not bound (number kept)
        """
        logger.info(f"Phone provisioning: searching_number for agent {agent_id}")
        purchased = await retry(
            self._search_and_purchase,
            is_retryable=is_retryable_error,
            policy=self.purchase_policy,
            sleep=self.sleep,
            operation_name="twilio_purchase",
        )

        logger.info(f"Phone provisioning: verifying_provisioned {purchased.phone_number}")
        verified = await poll_until(
            lambda: self._is_provisioned(purchased.phone_number),
            accept=bool,
            max_attempts=VERIFY_ATTEMPTS,
            interval=VERIFY_INTERVAL_SECONDS,
            sleep=self.sleep,
            operation_name="twilio_verify",
        )
        if not verified:
            logger.warning(
                f"Number {purchased.phone_number} not visible in Twilio after {VERIFY_ATTEMPTS} checks "
                "- attempting import anyway"
            )

        e164 = format_e164(purchased.phone_number) or purchased.phone_number

        logger.info(f"Phone provisioning: importing_to_agent_platform {e164}")
        try:
            imported = await retry(
                lambda: self.vapi.import_number(
                    number=e164,
                    agent_id=agent_id,
                    twilio_account_sid=self.twilio.account_sid or "",
                    twilio_auth_token=self.twilio.auth_token,
                ),
                is_retryable=is_retryable_error,
                policy=self.import_policy,
                sleep=self.sleep,
                operation_name="vapi_import",
            )
        except DependencyError as e:
            logger.error(
                f"METRIC phone_binding_failed agent={agent_id} number={e164} twilio_sid={purchased.sid}"
            )
            raise PhoneBindingError(
                f"Failed to import number to VAPI: {e}",
                phone_number=e164,
                provider_sid=purchased.sid,
                status_code=e.status_code,
            ) from e

        phone_id = imported["id"]
        if label:
            await self.vapi.label_number(phone_id, label)

        phone_number = await self._extract_number(phone_id, imported)
        logger.info(f"Phone provisioning: binding_complete {phone_number} (id={phone_id})")
        return PhoneBinding(phone_number=phone_number, provider_id=phone_id, provider_account_ref=purchased.sid)

    # The Twilio SDK is synchronous; keep it off the event loop
    async def _search_and_purchase(self) -> PurchasedNumber:
        return await asyncio.to_thread(self.twilio.search_and_purchase)

    async def _is_provisioned(self, phone_number: str) -> bool:
        return await asyncio.to_thread(self.twilio.is_number_provisioned, phone_number)

    async def _extract_number(self, phone_id: str, imported: Dict[str, Any]) -> str:
        number = extract_phone_number(imported)
        if number:
            return number

        try:
            number = extract_phone_number(await self.vapi.get_number(phone_id))
        except AgentPlatformError as e:
            logger.warning(f"Phone number details lookup failed for {phone_id}: {e}")
        if number:
            return number

        logger.warning(f"Could not extract phone number for {phone_id} - returning placeholder")
        return make_placeholder(phone_id)
