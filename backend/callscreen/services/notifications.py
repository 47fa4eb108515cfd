"""
CallScreen - Notification Service

Sends screening outcomes to optional webhook channels.

Channels:
    - DiscordWebhookChannel: rich embed message, falls back to plain
      content when Discord rejects the embed with 400 Bad Request
    - GenericWebhookChannel: flat JSON object, no retry

Delivery is best-effort. The dispatcher awaits each channel in turn and
logs, but never propagates, a channel failure; the block/allow decision is
final before any notification is sent.

Payloads are composed as strings, so every embedded value goes through
json_escape() first.
"""

from __future__ import annotations

import asyncio
import logging
from abc import abstractmethod
from datetime import datetime, timezone
from typing import List, Optional, Protocol, Sequence, Tuple, runtime_checkable

import aiohttp

from callscreen.core.types import Outcome, OutcomeState

logger = logging.getLogger(__name__)


COLOR_BLOCKED = 16711680  # red
COLOR_DEFAULT = 3066993   # green

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


# =============================================================================
# Payload Helpers
# =============================================================================

def json_escape(value: Optional[str]) -> str:
    """
    Escape a string for insertion between double quotes in a JSON document.

    Backslashes, quotes and all control characters below 0x20 are escaped.
    None becomes "".
    """
    if value is None:
        return ""

    parts = []
    for ch in value:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ord(ch) < 0x20:
            parts.append("\\u%04X" % ord(ch))
        else:
            parts.append(ch)
    return "".join(parts)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO 8601 UTC timestamp with microseconds, e.g. 2025-01-31T08:15:00.123456Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def format_summary(outcome: Outcome, timestamp: str) -> str:
    """Multi-line plain-text summary of an outcome (Discord markdown)."""
    return (
        f"**PhoneBlock** `{outcome.state.value}`\n"
        f"• Number: `{outcome.number}`\n"
        f"• Votes: `{outcome.votes}`\n"
        f"• Rating: `{outcome.rating}`\n"
        f"• DID: `{outcome.did}`\n"
        f"• TS: `{timestamp}`"
    )


def _field(name: str, value: str, inline: bool) -> str:
    return (
        f'{{"name":"{name}","value":"{json_escape(value)}",'
        f'"inline":{"true" if inline else "false"}}}'
    )


def build_rich_payload(outcome: Outcome, timestamp: str, username: str) -> str:
    """Discord webhook body with one embed describing the outcome."""
    color = COLOR_BLOCKED if outcome.state is OutcomeState.BLOCKED else COLOR_DEFAULT
    fields = ",".join([
        _field("Number", outcome.number, True),
        _field("Votes", str(outcome.votes), True),
        _field("Rating", outcome.rating, True),
        _field("DID", outcome.did, True),
        _field("TS", timestamp, False),
    ])
    embed = (
        f'{{"title":"{json_escape(outcome.state.value.upper())}",'
        f'"color":{color},'
        f'"fields":[{fields}]}}'
    )
    return (
        f'{{"username":"{json_escape(username)}",'
        f'"content":"{json_escape(format_summary(outcome, timestamp))}",'
        f'"embeds":[{embed}]}}'
    )


def build_fallback_payload(outcome: Outcome, timestamp: str) -> str:
    """Plain-content Discord body used when the embed is rejected."""
    return f'{{"content":"{json_escape(format_summary(outcome, timestamp))}"}}'


def build_compact_payload(outcome: Outcome, timestamp: str) -> str:
    """Flat JSON body for generic webhooks."""
    return (
        f'{{"state":"{json_escape(outcome.state.value)}",'
        f'"number":"{json_escape(outcome.number)}",'
        f'"votes":{int(outcome.votes)},'
        f'"rating":"{json_escape(outcome.rating)}",'
        f'"did":"{json_escape(outcome.did)}",'
        f'"ts":"{json_escape(timestamp)}"}}'
    )


# =============================================================================
# Protocol (Interface)
# =============================================================================

@runtime_checkable
class NotificationChannel(Protocol):
    """Protocol for a single notification target."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel name used in logs."""
        ...

    @abstractmethod
    async def send(self, outcome: Outcome, timestamp: str) -> None:
        """
        Deliver one outcome.

        May raise on transport errors; the dispatcher isolates failures.
        """
        ...


class _WebhookChannel:
    """Shared HTTP plumbing for webhook channels."""

    def __init__(self, url: str, timeout_seconds: float = 6.0):
        self._url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def _post(self, payload: str) -> Tuple[int, str]:
        """POST a JSON body; returns (status, response text)."""
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.post(
                self._url,
                data=payload.encode("utf-8"),
                headers={"Content-Type": "application/json; charset=utf-8"},
            ) as response:
                return response.status, await response.text()


# =============================================================================
# Implementations
# =============================================================================

class DiscordWebhookChannel(_WebhookChannel):
    """Rich channel: Discord-style embed with a plain-text fallback."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 6.0,
        username: str = "3CX PhoneBlock",
    ):
        super().__init__(url, timeout_seconds)
        self._username = username

    @property
    def name(self) -> str:
        return "discord"

    async def send(self, outcome: Outcome, timestamp: str) -> None:
        status, body = await self._post(build_rich_payload(outcome, timestamp, self._username))

        if status in (200, 204):
            logger.info("PhoneBlock Discord webhook OK (%d).", status)
            return

        logger.info("PhoneBlock Discord webhook FAIL %d: %s", status, body)

        if status != 400:
            return

        # Embed rejected: resend the same information as plain content
        try:
            status, body = await self._post(build_fallback_payload(outcome, timestamp))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.info("PhoneBlock Discord webhook FALLBACK EXC: %s", str(e) or type(e).__name__)
            return

        if status in (200, 204):
            logger.info("PhoneBlock Discord webhook FALLBACK OK (%d).", status)
        else:
            logger.info("PhoneBlock Discord webhook FALLBACK FAIL %d: %s", status, body)


class GenericWebhookChannel(_WebhookChannel):
    """Compact channel: flat JSON object, no fallback."""

    @property
    def name(self) -> str:
        return "generic"

    async def send(self, outcome: Outcome, timestamp: str) -> None:
        status, body = await self._post(build_compact_payload(outcome, timestamp))

        if not 200 <= status < 300:
            logger.info("PhoneBlock generic webhook FAIL %d: %s", status, body)


# =============================================================================
# Dispatcher
# =============================================================================

class NotificationDispatcher:
    """
    Sends an outcome to every configured channel, one after another.

    notify() never raises: each channel failure is logged and ignored.
    """

    def __init__(self, channels: Sequence[NotificationChannel] = ()):
        self._channels: List[NotificationChannel] = list(channels)

    @property
    def channels(self) -> List[NotificationChannel]:
        return list(self._channels)

    async def notify(self, outcome: Outcome) -> None:
        if not self._channels:
            return

        timestamp = utc_timestamp()
        for channel in self._channels:
            try:
                await channel.send(outcome, timestamp)
            except Exception as e:
                logger.info(
                    "PhoneBlock %s webhook EXC: %s",
                    channel.name,
                    str(e) or type(e).__name__,
                )


def create_dispatcher(
    rich_endpoint: Optional[str] = None,
    compact_endpoint: Optional[str] = None,
    timeout_seconds: float = 6.0,
    username: str = "3CX PhoneBlock",
) -> NotificationDispatcher:
    """Build a dispatcher with a channel for each configured endpoint."""
    channels: List[NotificationChannel] = []
    if rich_endpoint:
        channels.append(DiscordWebhookChannel(rich_endpoint, timeout_seconds, username))
    if compact_endpoint:
        channels.append(GenericWebhookChannel(compact_endpoint, timeout_seconds))
    return NotificationDispatcher(channels)
