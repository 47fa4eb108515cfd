"""
CallScreen - Core Domain Types

Internal type definitions for the screening pipeline. These are domain objects
used within the core and service layers, independent of API serialization.

Design Notes:
- Every value here is created fresh per call and discarded afterwards.
- Dataclasses are frozen; a screening run never mutates its inputs.
- The telephony layer converts its Pydantic request models into CallContext.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, NewType


# =============================================================================
# Type Aliases
# =============================================================================

NormalizedNumber = NewType("NormalizedNumber", str)
"""Either empty (normalization failed) or '+' followed only by digits."""


# =============================================================================
# Enums
# =============================================================================

class OutcomeState(str, Enum):
    """Labeled result of screening one call."""
    NO_CALLERID_OR_NOT_INBOUND = "no_callerid_or_not_inbound"
    LOOKUP_FAILED = "lookup_failed"
    BLOCKED = "blocked"
    ALLOWED_LISTED = "allowed_listed"
    ALLOWED_NOT_LISTED = "allowed_not_listed"
    ERROR = "error"


# =============================================================================
# Call Input
# =============================================================================

@dataclass(frozen=True)
class CallContext:
    """
    Inbound call as supplied by the call platform.

    Attributes:
        caller_id: Raw caller ID (CLI), may be empty or contain separators
        called_number: Dialed number (DID) the call arrived on
        is_inbound: False for outbound/internal calls, which are never screened
        call_id: Optional platform identifier, used for log correlation only
    """
    caller_id: str = ""
    called_number: str = ""
    is_inbound: bool = True
    call_id: str = ""


# =============================================================================
# Lookup Result
# =============================================================================

@dataclass(frozen=True)
class LookupResult:
    """
    Result of querying the reputation service for one call.

    A failed lookup always carries votes=0 and an empty rating.
    """
    succeeded: bool
    votes: int = 0
    rating: str = ""
    raw_body: str = ""

    def __post_init__(self):
        if self.votes < 0:
            object.__setattr__(self, "votes", 0)
        if not self.succeeded and (self.votes or self.rating):
            object.__setattr__(self, "votes", 0)
            object.__setattr__(self, "rating", "")

    @classmethod
    def failed(cls) -> "LookupResult":
        """No candidate produced a successful response."""
        return cls(succeeded=False)


# =============================================================================
# Outcome
# =============================================================================

@dataclass(frozen=True)
class Outcome:
    """
    Decision record for one call; also the source of notification payloads.

    Attributes:
        state: Labeled screening result
        number: Normalized caller number (may be empty)
        votes: Number of reports at the reputation service
        rating: Rating code reported by the service (may be empty)
        did: Called number the call arrived on
    """
    state: OutcomeState
    number: str = ""
    votes: int = 0
    rating: str = ""
    did: str = ""

    @property
    def terminates_call(self) -> bool:
        """Only a blocked call is terminated; every other state continues."""
        return self.state is OutcomeState.BLOCKED

    @classmethod
    def error(cls) -> "Outcome":
        """Outcome reported when the pipeline fails unexpectedly."""
        return cls(state=OutcomeState.ERROR)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "state": self.state.value,
            "number": self.number,
            "votes": self.votes,
            "rating": self.rating,
            "did": self.did,
        }


# =============================================================================
# Screening Decision
# =============================================================================

@dataclass(frozen=True)
class ScreeningDecision:
    """
    What the pipeline returns to the call platform.

    call_handled is True only when the call was terminated (blocked), telling
    the platform to stop its own routing flow.
    """
    outcome: Outcome
    call_handled: bool
    request_id: str = ""
