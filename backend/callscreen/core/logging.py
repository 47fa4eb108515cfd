"""
CallScreen - Structured Logging

Log setup for the service: JSON or human-readable lines on stdout, with the
request id and call id of the current screening run attached to every line.

Phone numbers are personal data. Structured `data` payloads always have
number-like and credential-like keys masked; with ANONYMIZE_LOGS enabled the
NumberMaskingFilter additionally masks numbers inside free-text messages
(including the PhoneBlock host log lines).
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional


# =============================================================================
# Context Variables
# =============================================================================

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
call_id_var: ContextVar[Optional[str]] = ContextVar("call_id", default=None)


# =============================================================================
# Masking
# =============================================================================

# Matched as substrings of lower-cased keys
SENSITIVE_KEYS = frozenset({
    "number", "phone", "caller", "cli", "did", "e164",
    "token", "secret", "authorization", "webhook",
})

# '+' or digit followed by at least 5 more digits/separators, ending in a digit
_NUMBER_PATTERN = re.compile(r"\+?\d[\d\s\-/()]{4,}\d")


def mask_number(number: Optional[str], show_last_digits: int = 2) -> str:
    """
    Reduce a phone number to its last digits.

    Examples:
        +49891234567 -> ***67
        None         -> unknown
    """
    if not number:
        return "unknown"

    digits = re.sub(r"\D", "", number)
    if len(digits) < show_last_digits:
        return "***"
    return f"***{digits[-show_last_digits:]}"


def mask_call_id(cid: Optional[str]) -> Optional[str]:
    """Mask call ID to last 4 characters."""
    if not cid:
        return None
    return f"***{cid[-4:]}" if len(cid) > 4 else "***"


def mask_text(text: str) -> str:
    """Mask every phone-number-like run of digits in free text."""
    return _NUMBER_PATTERN.sub(lambda m: mask_number(m.group(0)), text)


def mask_sensitive_data(data: dict) -> dict:
    """Recursively mask sensitive keys in a structured log payload."""
    masked = {}
    for key, value in data.items():
        if any(s in key.lower() for s in SENSITIVE_KEYS):
            if isinstance(value, str):
                masked[key] = f"***{value[-2:]}" if len(value) > 2 else "***"
            else:
                masked[key] = "[REDACTED]"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive_data(value)
        else:
            masked[key] = value
    return masked


def current_context() -> Dict[str, str]:
    """Context of the running screening, call id already masked."""
    context = {}
    correlation_id = correlation_id_var.get()
    if correlation_id:
        context["correlation_id"] = correlation_id
    call_id = call_id_var.get()
    if call_id:
        context["call_id"] = mask_call_id(call_id)
    return context


# =============================================================================
# Filters
# =============================================================================

class NumberMaskingFilter(logging.Filter):
    """Rewrites each record's message with phone numbers masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_text(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


# =============================================================================
# Formatters
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    {"timestamp": "...Z", "level": "INFO", "logger": "callscreen.core.pipeline",
     "correlation_id": "req_abc123", "call_id": "***1234",
     "message": "...", "event_type": "...", "data": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(current_context())

        event_type = getattr(record, "event_type", None)
        if event_type:
            entry["event_type"] = event_type

        data = getattr(record, "data", None)
        if data:
            entry["data"] = mask_sensitive_data(data)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)


class HumanReadableFormatter(logging.Formatter):
    """Development format: time | level | logger [req=..., call=...] | message"""

    _LABELS = {"correlation_id": "req", "call_id": "call"}

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        context = ", ".join(f"{self._LABELS[k]}={v}" for k, v in current_context().items())
        context = f" [{context}]" if context else ""

        line = f"{timestamp} | {record.levelname:<8} | {record.name}{context} | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# Logger Setup
# =============================================================================

def setup_structured_logging(
    level: str = "INFO",
    json_format: bool = False,
    anonymize: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON lines (production) instead of the readable format
        anonymize: Mask phone numbers in every message
    """
    numeric_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(StructuredFormatter() if json_format else HumanReadableFormatter())
    if anonymize:
        handler.addFilter(NumberMaskingFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


# =============================================================================
# Context Managers
# =============================================================================

class LogContext:
    """
    Sets the log context for the duration of a block.

    Usage:
        with LogContext(correlation_id="req_abc123", call_id="CA789"):
            logger.info("Screening call")
    """

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        call_id: Optional[str] = None,
    ):
        self._values = [(correlation_id_var, correlation_id), (call_id_var, call_id)]
        self._tokens = []

    def __enter__(self):
        self._tokens = [var.set(value) for var, value in self._values if value]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for token in reversed(self._tokens):
            token.var.reset(token)
        self._tokens = []
        return False
