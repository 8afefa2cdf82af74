"""
My Kendall Backend - FastAPI Application

Provisions a personal voice assistant for a user:
record -> voice check -> agent -> phone number -> knowledge -> welcome email.

The HTTP layer only decodes requests, applies rate limits and maps
exceptions to status codes. All provisioning logic lives in
kendall.provisioning.

Python 3.9 compatible.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .email_service import get_email_service
from .errors import ClientInputError, DependencyError, InvalidVoiceError, RecordStoreError, VoiceValidatorUnavailable
from .models import (
    CancelCallRequest,
    CancelCallResponse,
    CreateAssistantResponse,
    UpdateAssistantResponse,
    ValidateVoiceRequest,
    parse_assistant_request,
)
from .phone_provisioning import PhoneProvisioningClient
from .provisioning import ProvisioningOrchestrator
from .rate_limiter import FixedWindowRateLimiter, client_key
from .record_store import get_record_store
from .twilio_service import get_twilio_service
from .vapi_service import VapiService, get_vapi_service
from .voice_service import VoiceValidator, get_voice_validator

# Load environment variables from backend/.env
# Try multiple paths to ensure we find .env
env_paths = [
    Path(__file__).parent.parent / ".env",  # backend/.env
    Path.cwd() / ".env",  # current working directory
]
for env_path in env_paths:
    if env_path.exists():
        load_dotenv(env_path)
        break
else:
    load_dotenv()  # fallback to default behavior

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if os.getenv("DEBUG", "false").lower() == "true" else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
UPDATE_RATE_LIMIT = 20
RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
CREATE_FAILED_MESSAGE = "Failed to create My Kendall"
UPDATE_FAILED_MESSAGE = "Failed to update My Kendall"

# Service instances (Python 3.9 compatible type hints)
orchestrator: Optional[ProvisioningOrchestrator] = None
vapi_service: Optional[VapiService] = None
voice_validator: Optional[VoiceValidator] = None
create_rate_limiter: Optional[FixedWindowRateLimiter] = None
update_rate_limiter: Optional[FixedWindowRateLimiter] = None


def _mask_key(key: Optional[str]) -> str:
    """Mask API key showing only last 4 chars."""
    if not key:
        return "(not set)"
    if len(key) <= 4:
        return "****"
    return f"****{key[-4:]}"


def build_rate_limiters() -> None:
    """Create the per-endpoint limiters from PROVISION_RATE_* settings."""
    global create_rate_limiter, update_rate_limiter
    window = float(os.getenv("PROVISION_RATE_WINDOW_SECONDS", "900"))
    create_rate_limiter = FixedWindowRateLimiter(int(os.getenv("PROVISION_RATE_LIMIT", "5")), window)
    update_rate_limiter = FixedWindowRateLimiter(UPDATE_RATE_LIMIT, window)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - initialize services."""
    global orchestrator, vapi_service, voice_validator

    logger.info("=" * 60)
    logger.info("Initializing My Kendall Backend")
    logger.info("=" * 60)

    for name in ("AIRTABLE_API_KEY", "VAPI_PRIVATE_KEY", "TWILIO_AUTH_TOKEN", "ELEVENLABS_API_KEY", "SMTP_PASSWORD"):
        value = os.getenv(name)
        logger.info(f"{name} present: {bool(value)} ({_mask_key(value)})")
    logger.info(f"VAPI_WEBHOOK_URL: {os.getenv('VAPI_WEBHOOK_URL') or '(not set)'}")

    # Services do NOT crash if not configured - steps fail gracefully instead
    record_store = get_record_store()
    vapi_service = get_vapi_service()
    voice_validator = get_voice_validator()
    twilio_service = get_twilio_service()

    orchestrator = ProvisioningOrchestrator(
        record_store=record_store,
        voice_validator=voice_validator,
        vapi_service=vapi_service,
        phone_client=PhoneProvisioningClient(twilio_service, vapi_service),
        email_service=get_email_service(),
    )
    build_rate_limiters()
    logger.info("Provisioning orchestrator initialized successfully")
    logger.info("=" * 60)

    yield

    # Shutdown
    await record_store.close()
    await vapi_service.close()
    await voice_validator.close()
    logger.info("Shutting down My Kendall Backend")


app = FastAPI(
    title="My Kendall Backend",
    description="Provisioning API for personal voice assistants",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS middleware for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, headers: Optional[Dict[str, str]] = None, **extra: Any) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": error}
    body.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def _client_error(e: ClientInputError) -> JSONResponse:
    if isinstance(e, InvalidVoiceError):
        return _error(400, "Invalid voice selected", message=str(e), details=e.details)
    return _error(400, str(e))


def _rate_limited(limiter: Optional[FixedWindowRateLimiter], request: Request) -> Optional[JSONResponse]:
    if limiter is None:
        return None
    key = client_key(request)
    result = limiter.check(key)
    if result.allowed:
        return None
    logger.warning(f"METRIC rate_limited path={request.url.path} client={key}")
    return _error(429, RATE_LIMITED_MESSAGE, headers=result.headers())


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as e:
        raise ClientInputError("Request body must be valid JSON") from e


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": APP_VERSION}


@app.post("/api/createMyKendall", response_model=CreateAssistantResponse)
async def create_my_kendall(request: Request):
    """
    Provision a new assistant.

    Returns:
        200 {success, agentId, phoneNumber, recordId, editLink, chatLink, status, warning?}

    Errors:
        400: Missing/invalid fields or invalid voice
        429: Rate limited
        500: Provisioning failed
    """
    limited = _rate_limited(create_rate_limiter, request)
    if limited is not None:
        return limited

    if orchestrator is None:
        return _error(503, "Service not initialized")

    try:
        profile = parse_assistant_request(await _json_body(request))
        result = await orchestrator.provision(profile)
        return result.to_response()

    except ClientInputError as e:
        logger.warning(f"createMyKendall rejected: {e}")
        return _client_error(e)
    except Exception as e:
        logger.error(f"createMyKendall failed: {e}", exc_info=True)
        return _error(500, CREATE_FAILED_MESSAGE)


@app.get("/api/getMyKendall")
async def get_my_kendall(record_id: Optional[str] = Query(None, alias="recordId")):
    """Return the stored record in its camelCase view."""
    if not record_id:
        return _error(400, "recordId is required")
    if orchestrator is None:
        return _error(503, "Service not initialized")

    try:
        record = await orchestrator.records.get(record_id)
    except RecordStoreError as e:
        if e.status_code == 404:
            return _error(404, f"Record not found: {record_id}")
        logger.error(f"getMyKendall failed: {e}", exc_info=True)
        return _error(500, "Failed to load My Kendall")

    return {"success": True, "record": record.to_external()}


@app.patch("/api/updateMyKendall", response_model=UpdateAssistantResponse)
async def update_my_kendall(request: Request):
    """
    Apply edited settings to an existing assistant.

    Body: either create-request variant plus `recordId`.
    """
    limited = _rate_limited(update_rate_limiter, request)
    if limited is not None:
        return limited

    if orchestrator is None:
        return _error(503, "Service not initialized")

    try:
        body = await _json_body(request)
        record_id = body.get("recordId") if isinstance(body, dict) else None
        if not record_id:
            raise ClientInputError("recordId is required")

        profile = parse_assistant_request(body)
        result = await orchestrator.update(record_id, profile)
        return result.to_response()

    except ClientInputError as e:
        logger.warning(f"updateMyKendall rejected: {e}")
        return _client_error(e)
    except RecordStoreError as e:
        if e.status_code == 404:
            return _error(404, str(e))
        logger.error(f"updateMyKendall failed: {e}", exc_info=True)
        return _error(500, UPDATE_FAILED_MESSAGE)
    except Exception as e:
        logger.error(f"updateMyKendall failed: {e}", exc_info=True)
        return _error(500, UPDATE_FAILED_MESSAGE)


@app.post("/api/validateVoice")
async def validate_voice(request: ValidateVoiceRequest):
    """
    Check a voice choice.

    Returns:
        200 {valid: true, voiceConfig, voiceName}
        400 {valid: false, error, details}
        503 when the validator cannot decide
    """
    if voice_validator is None:
        return _error(503, "Service not initialized")

    try:
        validation = await voice_validator.validate(request.voiceId or "")
    except VoiceValidatorUnavailable as e:
        logger.warning(f"validateVoice unavailable: {e}")
        return JSONResponse(
            status_code=503,
            content={"valid": False, "error": "Voice validation unavailable", "details": str(e)},
        )

    return JSONResponse(status_code=200 if validation.valid else 400, content=validation.to_response())


@app.post("/api/call/cancel", response_model=CancelCallResponse)
async def cancel_call(request: CancelCallRequest):
    """End an active call on the agent platform."""
    if not request.callId:
        return _error(400, "callId is required")
    if vapi_service is None:
        return _error(503, "Service not initialized")

    try:
        await vapi_service.cancel_call(request.callId)
    except DependencyError as e:
        logger.error(f"Cancel call {request.callId} failed: {e}")
        body = CancelCallResponse(success=False, message=f"Failed to end call: {e}")
        return JSONResponse(status_code=502, content=body.model_dump())

    return CancelCallResponse(success=True, message="Call ended")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
