"""
CallScreen - Telephony Integration Module

Connects call platforms to the screening pipeline.

Components:
- router: HTTP webhook for inbound call events
- host: Call platform capability interface (log, terminate)
- models: Webhook request/response models
"""

from .host import CallHost, WebhookCallHost
from .models import IncomingCallRequest, ScreeningResponse

__all__ = [
    "CallHost",
    "WebhookCallHost",
    "IncomingCallRequest",
    "ScreeningResponse",
]
