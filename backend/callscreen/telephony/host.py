"""
CallScreen - Call Platform Capabilities

The screening pipeline never talks to a PBX directly. Whatever hosts it
(a webhook route, a PBX script bridge, a test) hands in a CallHost with
three callbacks: two log sinks and "terminate the call now".
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import List, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class CallHost(Protocol):
    """Capabilities the call platform exposes to the pipeline."""

    @abstractmethod
    def log_info(self, message: str) -> None:
        """Write an informational line to the platform's call log."""
        ...

    @abstractmethod
    def log_error(self, message: str) -> None:
        """Write an error line to the platform's call log."""
        ...

    @abstractmethod
    def terminate(self) -> None:
        """Hang up the current call immediately."""
        ...


class WebhookCallHost:
    """
    CallHost for calls submitted over the HTTP webhook.

    The platform is told about a termination in the webhook response, so
    terminate() only records the request. Log lines go to the module logger
    and are returned in the response's `log` field.
    """

    def __init__(self):
        self.terminated = False
        self.lines: List[str] = []

    def log_info(self, message: str) -> None:
        self.lines.append(message)
        logger.info(message)

    def log_error(self, message: str) -> None:
        self.lines.append(message)
        logger.error(message)

    def terminate(self) -> None:
        self.terminated = True
