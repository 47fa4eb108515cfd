"""
CallScreen - Core Package

Contains the decision logic and domain types:
- types: Internal domain types
- numbers: Caller ID normalization and lookup candidates
- decision: Block/allow policy
- pipeline: Screening orchestrator (import from callscreen.core.pipeline)
"""

from .types import (
    NormalizedNumber,
    OutcomeState,
    CallContext,
    LookupResult,
    Outcome,
    ScreeningDecision,
)
from .numbers import normalize_number, build_lookup_candidates
from .decision import DecisionEngine

__all__ = [
    # Types
    "NormalizedNumber",
    "OutcomeState",
    "CallContext",
    "LookupResult",
    "Outcome",
    "ScreeningDecision",
    # Numbers
    "normalize_number",
    "build_lookup_candidates",
    # Decision
    "DecisionEngine",
]
