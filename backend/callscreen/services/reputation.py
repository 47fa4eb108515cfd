"""
CallScreen - Reputation Lookup Service

Queries the phoneblock.net API for the number of reports (votes) and the
rating code of a caller.

Architecture:
    - Protocol defines the interface for reputation clients
    - PhoneBlockClient: aiohttp implementation against phoneblock.net

Failure Handling:
    Each lookup candidate is tried once, in order. Transport errors,
    timeouts and non-2xx statuses all move on to the next candidate; the
    first 2xx response wins. Exhausting the candidates yields a failed
    LookupResult, never an exception.

Response Parsing:
    Bodies look like {"votes": 5, "rating": "G_FRAUD", ...}. Only the two
    fields are read; unknown fields are ignored and missing ones default to
    0 / "". See parse_lookup_body().
"""

from __future__ import annotations

import asyncio
import logging
import re
from abc import abstractmethod
from typing import Iterable, Optional, Protocol, Tuple, runtime_checkable
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from callscreen.core.numbers import DEFAULT_COUNTRY_CODE, build_lookup_candidates
from callscreen.core.types import LookupResult

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol (Interface)
# =============================================================================

@runtime_checkable
class ReputationClient(Protocol):
    """Protocol for number reputation lookups."""

    @abstractmethod
    async def lookup(self, normalized: str) -> LookupResult:
        """
        Look up a normalized number.

        Args:
            normalized: '+' followed by digits, or "" (nothing to look up)

        Returns:
            LookupResult; succeeded=False if no candidate could be queried
        """
        ...

    @property
    @abstractmethod
    def client_id(self) -> str:
        """Return client identifier."""
        ...


# =============================================================================
# Response Parsing
# =============================================================================

class PhoneBlockRating(BaseModel):
    """The two fields of a phoneblock.net number response we rely on."""

    model_config = ConfigDict(extra="ignore")

    votes: int = Field(default=0, ge=0)
    rating: str = ""


_VOTES_FIELD = re.compile(r'"votes"\s*:\s*(\d+)')
_RATING_FIELD = re.compile(r'"rating"\s*:\s*"([^"]+)"')


def parse_lookup_body(body: str) -> Tuple[int, str]:
    """
    Extract (votes, rating) from a lookup response body.

    The body is first read as a partial typed model. If it is not valid
    JSON or does not fit the model (e.g. votes is null), the fields are
    scanned for by name instead. Never raises; absent fields become 0 / "".
    """
    try:
        parsed = PhoneBlockRating.model_validate_json(body or "{}")
        return parsed.votes, parsed.rating
    except PydanticValidationError:
        pass

    votes = 0
    match = _VOTES_FIELD.search(body or "")
    if match:
        votes = int(match.group(1))

    rating = ""
    match = _RATING_FIELD.search(body or "")
    if match:
        rating = match.group(1)

    return votes, rating


# =============================================================================
# phoneblock.net Implementation
# =============================================================================

class PhoneBlockClient:
    """
    Reputation client for the phoneblock.net REST API.

    Every request opens its own short-lived aiohttp session, so no
    connection state is shared between calls.
    """

    def __init__(
        self,
        api_base: str,
        bearer_token: str,
        timeout_seconds: float = 6.0,
        country_code: str = DEFAULT_COUNTRY_CODE,
    ):
        """
        Initialize the client.

        Args:
            api_base: API root, e.g. https://phoneblock.net/phoneblock/api
            bearer_token: phoneblock.net API token
            timeout_seconds: Total timeout per request
            country_code: Default country code used for national candidates
        """
        self._api_base = api_base.rstrip("/")
        self._bearer_token = bearer_token
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._country_code = country_code

    @property
    def client_id(self) -> str:
        return "phoneblock-v1"

    def default_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._bearer_token}",
            "Accept": "application/json",
        }

    def build_url(self, candidate: str) -> str:
        """Lookup URL for one candidate number."""
        return f"{self._api_base}/num/{quote(candidate, safe='')}?format=json"

    def candidates(self, normalized: str) -> Iterable[str]:
        return build_lookup_candidates(normalized, country_code=self._country_code)

    async def lookup(self, normalized: str) -> LookupResult:
        for candidate in self.candidates(normalized):
            result = await self._query(candidate)
            if result is not None:
                return result

        return LookupResult.failed()

    async def _query(self, candidate: str) -> Optional[LookupResult]:
        """
        Query one candidate.

        Returns:
            LookupResult on a 2xx response, None if the next candidate
            should be tried
        """
        url = self.build_url(candidate)

        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(url, headers=self.default_headers()) as response:
                    body = await response.text()
                    status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.info(
                "PhoneBlock LOOKUP EXC try='%s': %s",
                candidate,
                str(e) or type(e).__name__,
            )
            return None

        logger.info("PhoneBlock LOOKUP try='%s' status=%d", candidate, status)

        if not 200 <= status < 300:
            return None

        votes, rating = parse_lookup_body(body)
        return LookupResult(succeeded=True, votes=votes, rating=rating, raw_body=body)
