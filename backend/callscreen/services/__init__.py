"""
CallScreen - Services Package

Contains service interfaces and implementations for:
- Reputation lookup (phoneblock.net)
- Outcome notifications (Discord and generic webhooks)

Design Pattern:
    Each service defines a Protocol (interface) and one or more implementations.
    The pipeline is configured with concrete implementations at startup,
    enabling dependency injection and easy testing/swapping of components.
"""

from .reputation import (
    ReputationClient,
    PhoneBlockClient,
    parse_lookup_body,
)
from .notifications import (
    NotificationChannel,
    NotificationDispatcher,
    DiscordWebhookChannel,
    GenericWebhookChannel,
    create_dispatcher,
    json_escape,
)

__all__ = [
    # Reputation
    "ReputationClient",
    "PhoneBlockClient",
    "parse_lookup_body",
    # Notifications
    "NotificationChannel",
    "NotificationDispatcher",
    "DiscordWebhookChannel",
    "GenericWebhookChannel",
    "create_dispatcher",
    "json_escape",
]
