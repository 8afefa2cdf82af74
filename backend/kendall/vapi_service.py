"""
VAPI Service - the managed voice-agent platform.

This service:
1. Creates and updates assistants from an AgentProfile
2. Imports Twilio numbers and binds them to an assistant
3. Labels / looks up imported phone numbers
4. Ends active calls

All calls are Bearer-authenticated JSON over httpx. Non-2xx responses raise
AgentPlatformError carrying the body's `message`/`error` verbatim.

Python 3.9 compatible - uses typing.Dict, typing.List, typing.Optional
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from catalog.functions import build_function_definitions
from engine.profile import AgentProfile

from .errors import AgentPlatformError

logger = logging.getLogger(__name__)


@dataclass
class AgentResult:
    id: str
    voice: Optional[Dict[str, Any]] = None


class VapiService:
    """Client for the VAPI REST API."""

    API_URL = "https://api.vapi.ai"

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = os.getenv("VAPI_PRIVATE_KEY")
        self.model = os.getenv("VAPI_DEFAULT_MODEL", "gpt-4o")
        self.webhook_url = os.getenv("VAPI_WEBHOOK_URL") or None
        self.http_client = http_client or httpx.AsyncClient(timeout=30.0)

        if not self.api_key:
            logger.warning("VapiService: VAPI_PRIVATE_KEY not configured - agent calls will fail")
        if not self.webhook_url:
            logger.warning("VapiService: VAPI_WEBHOOK_URL not set - agent functions cannot run in real time")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def close(self) -> None:
        await self.http_client.aclose()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.is_configured:
            raise AgentPlatformError("VAPI_PRIVATE_KEY environment variable is not configured")
        try:
            response = await self.http_client.request(
                method, f"{self.API_URL}{path}", headers=self._headers(), json=payload
            )
        except httpx.HTTPError as e:
            raise AgentPlatformError(f"VAPI request failed: {e}") from e

        if response.status_code >= 400:
            message = _vapi_error_message(response)
            logger.error(f"VAPI {method} {path} failed: {response.status_code} {message}")
            raise AgentPlatformError(message, response.status_code)

        if not response.content:
            return {}
        return response.json()

    # ============================================================
    # Assistants
    # ============================================================

    def build_assistant_payload(self, profile: AgentProfile) -> Dict[str, Any]:
        """Request body shared by create and update."""
        payload: Dict[str, Any] = {
            "name": profile.name,
            "model": {
                "provider": "openai",
                "model": self.model,
                "messages": [{"role": "system", "content": profile.system_prompt}],
                "functions": build_function_definitions(self.webhook_url),
            },
            "backgroundSound": "off",
        }
        if self.webhook_url:
            payload["serverUrl"] = self.webhook_url
        if profile.voice is not None:
            payload["voice"] = profile.voice.to_payload()
        if profile.forwarding_phone_number:
            payload["forwardingPhoneNumber"] = profile.forwarding_phone_number
        return payload

    async def create_agent(self, profile: AgentProfile) -> AgentResult:
        """
        Create an assistant.

        Raises:
            AgentPlatformError: request failed or no id came back
        """
        logger.info(
            f"Creating VAPI assistant '{profile.name}' "
            f"(voice={profile.voice.to_payload() if profile.voice else None}, "
            f"prompt_length={len(profile.system_prompt)})"
        )
        data = await self._request("POST", "/assistant", self.build_assistant_payload(profile))
        agent_id = data.get("id") or data.get("agentId")
        if not agent_id:
            raise AgentPlatformError("VAPI did not return an assistant id")
        return AgentResult(id=agent_id, voice=data.get("voice"))

    async def update_agent(self, agent_id: str, profile: AgentProfile) -> AgentResult:
        logger.info(f"Updating VAPI assistant {agent_id} (prompt_length={len(profile.system_prompt)})")
        data = await self._request("PATCH", f"/assistant/{agent_id}", self.build_assistant_payload(profile))
        return AgentResult(id=data.get("id", agent_id), voice=data.get("voice"))

    # ============================================================
    # Phone numbers
    # ============================================================

    async def import_number(
        self,
        number: str,
        agent_id: str,
        twilio_account_sid: str,
        twilio_auth_token: Optional[str],
    ) -> Dict[str, Any]:
        """Import a Twilio number and bind it to the assistant in one call."""
        payload: Dict[str, Any] = {
            "provider": "twilio",
            "twilioAccountSid": twilio_account_sid,
            "number": number,
            "assistantId": agent_id,
        }
        if twilio_auth_token:
            payload["twilioAuthToken"] = twilio_auth_token
        data = await self._request("POST", "/phone-number", payload)
        if not data.get("id"):
            raise AgentPlatformError(f"VAPI did not return a phone number id for {number}")
        return data

    async def label_number(self, phone_id: str, label: str) -> None:
        """Set the dashboard label and enable SMS. Best effort."""
        try:
            await self._request("PATCH", f"/phone-number/{phone_id}", {"label": label, "smsEnabled": True})
        except AgentPlatformError as e:
            logger.warning(f"Could not label phone number {phone_id}: {e}")

    async def get_number(self, phone_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/phone-number/{phone_id}")

    # ============================================================
    # Calls
    # ============================================================

    async def cancel_call(self, call_id: str) -> None:
        logger.info(f"Ending VAPI call {call_id}")
        await self._request("POST", f"/call/{call_id}/actions/end")


def _vapi_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"VAPI API error: {response.status_code}"
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, list):
            return "; ".join(str(m) for m in message)
        if message:
            return str(message)
    return f"VAPI API error: {response.status_code}"


# Singleton instance
_vapi_service: Optional[VapiService] = None


def get_vapi_service() -> VapiService:
    """Get or create the VAPI service singleton."""
    global _vapi_service
    if _vapi_service is None:
        _vapi_service = VapiService()
    return _vapi_service
