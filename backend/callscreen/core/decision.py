"""
CallScreen - Block/Allow Decision Policy

Maps a call, its normalized number and the reputation lookup to exactly one
Outcome. Pure: no I/O, no logging, no state between calls.

Policy:
    not inbound / no usable caller ID      -> no_callerid_or_not_inbound
    lookup failed                          -> lookup_failed
    votes >= min_votes and negative rating -> blocked
    votes > 0                              -> allowed_listed
    otherwise                              -> allowed_not_listed

Anything short of a confident negative verdict lets the call through.
"""

from __future__ import annotations

from typing import Iterable

from .types import CallContext, LookupResult, Outcome, OutcomeState


DEFAULT_MIN_VOTES = 4

# phoneblock.net rating categories treated as negative:
# B_MISSED=missed spam attempt, C_PING=ping call, D_POLL=poll,
# E_ADVERTISING=advertising, F_GAMBLE=gambling, G_FRAUD=fraud
DEFAULT_NEGATIVE_RATINGS = frozenset({
    "B_MISSED", "C_PING", "D_POLL", "E_ADVERTISING", "F_GAMBLE", "G_FRAUD",
})


class DecisionEngine:
    """
    Threshold-based decision policy.

    Attributes:
        min_votes: Minimum number of reports required to block
        negative_ratings: Rating codes that count as negative (case-insensitive)
    """

    def __init__(
        self,
        min_votes: int = DEFAULT_MIN_VOTES,
        negative_ratings: Iterable[str] = DEFAULT_NEGATIVE_RATINGS,
    ):
        self.min_votes = min_votes
        self.negative_ratings = frozenset(r.upper() for r in negative_ratings)

    def is_negative(self, rating: str) -> bool:
        """Membership test against the configured negative codes."""
        return bool(rating) and rating.upper() in self.negative_ratings

    def decide(
        self,
        call: CallContext,
        normalized: str,
        lookup: LookupResult,
    ) -> Outcome:
        """Produce the Outcome for one call."""
        if not call.is_inbound or not normalized:
            return Outcome(
                state=OutcomeState.NO_CALLERID_OR_NOT_INBOUND,
                number=normalized,
                did=call.called_number,
            )

        if not lookup.succeeded:
            return Outcome(
                state=OutcomeState.LOOKUP_FAILED,
                number=normalized,
                did=call.called_number,
            )

        votes = max(lookup.votes, 0)
        if votes >= self.min_votes and self.is_negative(lookup.rating):
            state = OutcomeState.BLOCKED
        elif votes > 0:
            state = OutcomeState.ALLOWED_LISTED
        else:
            state = OutcomeState.ALLOWED_NOT_LISTED

        return Outcome(
            state=state,
            number=normalized,
            votes=votes,
            rating=lookup.rating,
            did=call.called_number,
        )
