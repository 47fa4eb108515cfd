"""
CallScreen - Exception Hierarchy

Structured exceptions for consistent error handling across the system.
All exceptions include error codes for API responses.

Note that the screening pipeline itself fails open: lookup and notification
failures are recovered locally and never surface as exceptions. These types
are raised at the configuration and HTTP boundaries only.
"""

from typing import Optional


class CallScreenError(Exception):
    """Base exception for all CallScreen errors."""

    code: str = "UNKNOWN_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Telephony Errors
# =============================================================================

class TelephonyError(CallScreenError):
    """Error in telephony subsystem."""
    code = "TELEPHONY_ERROR"
    status_code = 502


class TelephonyDisabledError(TelephonyError):
    """Telephony integration is disabled."""
    code = "TELEPHONY_DISABLED"
    status_code = 503


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(CallScreenError):
    """Input validation error."""
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidCallEventError(ValidationError):
    """Inbound call event could not be parsed."""
    code = "INVALID_CALL_EVENT"


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(CallScreenError):
    """Configuration error."""
    code = "CONFIGURATION_ERROR"
    status_code = 500
