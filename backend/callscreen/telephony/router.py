"""
CallScreen - Telephony HTTP Endpoints

HTTP webhook through which a call platform submits an inbound call and
receives the block/allow decision.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from callscreen.config import Settings, get_settings
from callscreen.core.exceptions import InvalidCallEventError, TelephonyDisabledError
from callscreen.core.logging import mask_number
from callscreen.core.pipeline import ScreeningPipeline
from .host import WebhookCallHost
from .models import IncomingCallRequest, ScreeningResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/telephony", tags=["telephony"])


# =============================================================================
# Dependencies
# =============================================================================

async def require_telephony_enabled(
    settings: Settings = Depends(get_settings),
) -> Settings:
    """Dependency that ensures telephony is enabled."""
    if not settings.enable_telephony_integration:
        raise TelephonyDisabledError(
            "Telephony integration is disabled. "
            "Set ENABLE_TELEPHONY_INTEGRATION=true to enable."
        )
    return settings


def get_pipeline(request: Request) -> ScreeningPipeline:
    """Dependency to get the screening pipeline from app state."""
    return request.app.state.pipeline


# =============================================================================
# Webhook Endpoints
# =============================================================================

@router.post(
    "/incoming",
    response_model=ScreeningResponse,
    summary="Screen incoming call",
    description="Webhook endpoint for the call platform to screen an inbound call.",
)
async def handle_incoming_call(
    request: Request,
    settings: Settings = Depends(require_telephony_enabled),
    pipeline: ScreeningPipeline = Depends(get_pipeline),
) -> ScreeningResponse:
    """
    Screen an incoming call.

    Supports:
    - JSON body
    - Form-encoded body (Twilio default)

    The response tells the platform whether to terminate the call
    ("terminate") or continue its own routing ("continue").
    """
    content_type = request.headers.get("content-type", "")

    try:
        if "application/json" in content_type:
            body = await request.json()
        else:
            form = await request.form()
            body = dict(form)

        if not isinstance(body, dict):
            raise ValueError("request body must be an object")

        incoming = IncomingCallRequest(**body)

    except (ValueError, PydanticValidationError) as e:
        logger.warning("Invalid incoming call request: %s", str(e))
        raise InvalidCallEventError("Invalid request body", details={"reason": str(e)[:200]})

    call = incoming.to_call_context()
    host = WebhookCallHost()

    logger.info(
        "Incoming call received: from=%s, inbound=%s",
        mask_number(call.caller_id) if settings.anonymize_logs else call.caller_id or "-",
        call.is_inbound,
    )

    decision = await pipeline.screen_call(call, host)

    return ScreeningResponse(
        call_id=incoming.call_id,
        request_id=decision.request_id,
        state=decision.outcome.state.value,
        action="terminate" if host.terminated else "continue",
        handled=decision.call_handled,
        votes=decision.outcome.votes,
        rating=decision.outcome.rating,
        log=list(host.lines),
    )
