"""
Provisioning Orchestrator - creates a user's assistant end to end.

Steps:
    received -> record_created -> voice_validated -> agent_created
        -> phone_bound -> enrichment_awaited -> agent_enriched -> notified -> done

Failure policy:
- Hard failures (record creation, invalid voice, agent creation) stop the run.
  Every stop after the record exists first writes status=error.
- Soft failures (voice persistence, phone provisioning, enrichment, email)
  are logged and the run carries on.
- Compensating status writes never raise.

All collaborators are injected so tests can drive every branch with fakes.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from engine.content import has_arrived, normalize_derived_content
from engine.profile import AssistantProfileInput
from engine.prompts import build_agent_profile
from engine.retry import SleepFn, poll_until
from engine.voices import VoiceSelection, resolve_voice

from .email_service import EmailService
from .errors import ClientInputError, InvalidVoiceError, VoiceValidatorUnavailable
from .phone_provisioning import PhoneBinding, PhoneProvisioningClient
from .record_store import RecordStatus, RecordStore, fields_to_profile, profile_to_fields
from .vapi_service import VapiService
from .voice_service import VoiceValidator

logger = logging.getLogger(__name__)

ENRICHMENT_ATTEMPTS = 30
ENRICHMENT_INTERVAL_SECONDS = 2.0

EDIT_LINK_TEMPLATE = "/personal-setup?edit={record_id}"
CHAT_LINK_TEMPLATE = "/chat?recordId={record_id}"

PHONE_FAILED_WARNING = "Your assistant was created but a phone number could not be assigned"
PHONE_PENDING_WARNING = "Your phone number is still being assigned"
RECORD_NOT_SAVED_WARNING = "Your assistant was created but its settings could not be saved"


@dataclass
class ProvisioningResult:
    agent_id: str
    record_id: str
    status: RecordStatus
    phone_number: Optional[str] = None
    warning: Optional[str] = None

    @property
    def edit_link(self) -> str:
        return EDIT_LINK_TEMPLATE.format(record_id=self.record_id)

    @property
    def chat_link(self) -> str:
        return CHAT_LINK_TEMPLATE.format(record_id=self.record_id)

    def to_response(self) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "success": True,
            "agentId": self.agent_id,
            "phoneNumber": self.phone_number,
            "recordId": self.record_id,
            "editLink": self.edit_link,
            "chatLink": self.chat_link,
            "status": self.status.value,
        }
        if self.warning:
            response["warning"] = self.warning
        return response


@dataclass
class UpdateResult:
    agent_id: str
    record_id: str
    phone_number: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "agentId": self.agent_id,
            "recordId": self.record_id,
            "phoneNumber": self.phone_number,
        }


class ProvisioningOrchestrator:
    """Runs the provisioning state machine against injected collaborators."""

    def __init__(
        self,
        record_store: RecordStore,
        voice_validator: VoiceValidator,
        vapi_service: VapiService,
        phone_client: PhoneProvisioningClient,
        email_service: EmailService,
        sleep: SleepFn = asyncio.sleep,
        enrichment_attempts: int = ENRICHMENT_ATTEMPTS,
        enrichment_interval: float = ENRICHMENT_INTERVAL_SECONDS,
    ):
        self.records = record_store
        self.voice_validator = voice_validator
        self.vapi = vapi_service
        self.phone_client = phone_client
        self.email = email_service
        self.sleep = sleep
        self.enrichment_attempts = enrichment_attempts
        self.enrichment_interval = enrichment_interval

    # ============================================================
    # Create
    # ============================================================

    async def provision(self, profile: AssistantProfileInput) -> ProvisioningResult:
        """
        Create the record, agent and phone number for a new user.

        Raises:
            RecordStoreError: record could not be created (nothing else was touched)
            InvalidVoiceError: the chosen voice does not exist (record marked error)
            AgentPlatformError: the agent could not be created (record marked error)
        """
        logger.info(
            f"METRIC provisioning_started style={profile.prompt_style.value} "
            f"attachments={len(profile.attached_files)} voice={profile.voice_choice or 'default'}"
        )

        # received -> record_created
        record_id = await self.records.create(profile_to_fields(profile))
        logger.info(f"Provisioning {record_id}: record_created")

        try:
            # record_created -> voice_validated
            voice = await self._resolve_voice(record_id, profile.voice_choice)

            # voice_validated -> agent_created
            agent = await self.vapi.create_agent(build_agent_profile(profile, voice))
            logger.info(f"Provisioning {record_id}: agent_created {agent.id}")
        except Exception as e:
            logger.error(f"Provisioning {record_id} failed: {e}")
            logger.info(f"METRIC provisioning_failed record={record_id} error={type(e).__name__}")
            await self._mark_error(record_id)
            raise

        # agent_created -> phone_bound
        binding = await self._bind_phone(record_id, agent.id, profile.full_name)
        persisted = await self._persist_outputs(record_id, agent.id, binding, profile)

        # phone_bound -> enrichment_awaited -> agent_enriched
        if profile.attached_files and persisted:
            try:
                await self._enrich_agent(record_id, agent.id, profile, voice)
            except Exception as e:
                logger.error(f"Provisioning {record_id}: enrichment failed: {e}", exc_info=True)
                logger.info(f"METRIC enrichment_failed record={record_id} error={type(e).__name__}")

        # Response status mirrors what the record holds
        status = RecordStatus.ACTIVE if binding and persisted else RecordStatus.ERROR
        result = ProvisioningResult(agent_id=agent.id, record_id=record_id, status=status)
        if binding is None:
            result.warning = PHONE_FAILED_WARNING
        elif not persisted:
            result.phone_number = binding.phone_number if binding.is_final else None
            result.warning = RECORD_NOT_SAVED_WARNING
        elif not binding.is_final:
            result.warning = PHONE_PENDING_WARNING
        else:
            result.phone_number = binding.phone_number
            # agent_enriched -> notified
            await self._notify(profile, result)

        logger.info(
            f"METRIC provisioning_completed record={record_id} agent={agent.id} "
            f"status={status.value} phone_final={bool(binding and binding.is_final)}"
        )
        return result

    async def _resolve_voice(self, record_id: str, voice_choice: str) -> Optional[VoiceSelection]:
        """Validate the voice choice. Empty means the platform default."""
        if not voice_choice:
            return None

        try:
            await self.records.update(record_id, {"voice_choice": voice_choice})
        except Exception as e:
            logger.warning(f"Provisioning {record_id}: could not store voice choice: {e}")

        try:
            validation = await self.voice_validator.validate(voice_choice)
        except VoiceValidatorUnavailable as e:
            logger.warning(f"Voice validator unavailable ({e}) - proceeding with '{voice_choice}' unvalidated")
            return resolve_voice(voice_choice)

        if not validation.valid:
            logger.warning(f"Provisioning {record_id}: invalid voice '{voice_choice}': {validation.details}")
            raise InvalidVoiceError(validation.error or "Invalid voice selected", validation.details)

        logger.info(f"Provisioning {record_id}: voice_validated {validation.voice_name}")
        return validation.voice

    async def _bind_phone(self, record_id: str, agent_id: str, label: str) -> Optional[PhoneBinding]:
        try:
            binding = await self.phone_client.purchase_and_bind(agent_id, label=label)
        except Exception as e:
            logger.error(f"Provisioning {record_id}: phone provisioning failed: {e}")
            logger.info(f"METRIC phone_provisioning_failed record={record_id} agent={agent_id}")
            return None
        logger.info(f"Provisioning {record_id}: phone_bound {binding.phone_number}")
        return binding

    async def _persist_outputs(self, record_id: str, agent_id: str, binding: Optional[PhoneBinding],
                               profile: AssistantProfileInput) -> bool:
        """Write agent + phone ids. Attachments go in the same write so enrichment starts after both exist."""
        fields: Dict[str, Any] = {"agent_id": agent_id}
        if binding is None:
            fields["status"] = RecordStatus.ERROR
        else:
            fields.update({
                "phone_number": binding.phone_number,
                "phone_provider_id": binding.provider_id,
                "twilio_sid": binding.provider_account_ref,
                "status": RecordStatus.ACTIVE,
            })
        if profile.attached_files:
            fields["attached_files"] = profile.attached_files

        try:
            await self.records.update(record_id, fields)
        except Exception as e:
            logger.error(f"Provisioning {record_id}: could not store agent {agent_id}: {e}")
            if binding is not None:
                await self._mark_error(record_id)
            return False
        return True

    async def _enrich_agent(self, record_id: str, agent_id: str, profile: AssistantProfileInput,
                            voice: Optional[VoiceSelection]) -> None:
        knowledge = await poll_until(
            lambda: self._fetch_knowledge(record_id),
            accept=has_arrived,
            max_attempts=self.enrichment_attempts,
            interval=self.enrichment_interval,
            sleep=self.sleep,
            sleep_first=True,
            operation_name="enrichment_poll",
        )
        if knowledge is None:
            logger.warning(f"Provisioning {record_id}: derived content never arrived - agent left without knowledge")
            logger.info(f"METRIC enrichment_timeout record={record_id} attempts={self.enrichment_attempts}")
            return

        try:
            await self.vapi.update_agent(agent_id, build_agent_profile(profile, voice, knowledge))
        except Exception as e:
            logger.error(f"Provisioning {record_id}: enrichment update failed: {e}")
            return
        logger.info(f"Provisioning {record_id}: agent_enriched ({len(knowledge)} chars)")

    async def _fetch_knowledge(self, record_id: str) -> str:
        record = await self.records.get(record_id)
        return normalize_derived_content(record.analyzed_file_content)

    async def _notify(self, profile: AssistantProfileInput, result: ProvisioningResult) -> None:
        try:
            await asyncio.to_thread(
                self.email.send_welcome_email,
                profile.email,
                profile.full_name,
                result.phone_number,
                result.edit_link,
                result.chat_link,
            )
        except Exception as e:
            logger.error(f"Provisioning {result.record_id}: welcome email failed: {e}")
            return
        logger.info(f"Provisioning {result.record_id}: notified {profile.email}")

    async def _mark_error(self, record_id: str) -> None:
        try:
            await self.records.update(record_id, {"status": RecordStatus.ERROR})
        except Exception as e:
            logger.error(f"Could not mark record {record_id} as error: {e}")

    # ============================================================
    # Update
    # ============================================================

    async def update(self, record_id: str, profile: AssistantProfileInput) -> UpdateResult:
        """
        Re-apply a user's edited settings to their existing assistant.

        The prompt is rebuilt with the same builder used at creation, reusing
        the derived content already stored on the record.

        Raises:
            ClientInputError: record has no assistant yet
            InvalidVoiceError: the chosen voice does not exist
            DependencyError: record store or agent platform failed
        """
        record = await self.records.get(record_id)
        if not record.agent_id:
            raise ClientInputError(f"Record {record_id} has no assistant to update")

        if not profile.voice_choice:
            profile.voice_choice = fields_to_profile(record).voice_choice
        voice = await self._validate_update_voice(profile.voice_choice)

        knowledge = normalize_derived_content(record.analyzed_file_content)
        if not has_arrived(knowledge):
            knowledge = ""

        await self.vapi.update_agent(record.agent_id, build_agent_profile(profile, voice, knowledge))

        fields = profile_to_fields(profile)
        fields.pop("status")
        if profile.voice_choice:
            fields["voice_choice"] = profile.voice_choice
        if profile.attached_files:
            fields["attached_files"] = profile.attached_files
        await self.records.update(record_id, fields)

        logger.info(f"METRIC assistant_updated record={record_id} agent={record.agent_id}")
        return UpdateResult(agent_id=record.agent_id, record_id=record_id, phone_number=record.phone_number)

    async def _validate_update_voice(self, voice_choice: str) -> Optional[VoiceSelection]:
        if not voice_choice:
            return None
        try:
            validation = await self.voice_validator.validate(voice_choice)
        except VoiceValidatorUnavailable as e:
            logger.warning(f"Voice validator unavailable ({e}) - keeping '{voice_choice}' unvalidated")
            return resolve_voice(voice_choice)
        if not validation.valid:
            raise InvalidVoiceError(validation.error or "Invalid voice selected", validation.details)
        return validation.voice
