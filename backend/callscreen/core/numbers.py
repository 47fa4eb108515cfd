"""
CallScreen - Phone Number Normalization

Canonicalizes caller IDs to an E.164-like form and expands them into the
textual variants the reputation service accepts.

Rules (first match wins, after stripping everything but digits and '+'):
    +4989...   -> unchanged
    004989...  -> +4989...
    089...     -> +4989...   (national number, default country code)
    4989...    -> +4989...
"""

from __future__ import annotations

import re
from typing import Iterator, Optional

from .types import NormalizedNumber


DEFAULT_COUNTRY_CODE = "49"

_NON_DIALABLE = re.compile(r"[^\d+]")


def normalize_number(
    raw: Optional[str],
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> NormalizedNumber:
    """
    Normalize a raw caller ID to '+' followed by digits.

    Examples:
        "0891234567"     -> "+49891234567"
        "0049891234567"  -> "+49891234567"
        "+1 234-567"     -> "+1234567"
        "abc"            -> ""

    Args:
        raw: Caller ID as delivered by the call platform (may be None)
        country_code: Digits substituted for a single leading national '0'

    Returns:
        Normalized number, or "" if nothing dialable remains
    """
    cleaned = _NON_DIALABLE.sub("", raw or "")
    if not cleaned:
        return NormalizedNumber("")

    # Only a leading '+' is meaningful
    leading_plus = cleaned.startswith("+")
    digits = cleaned.replace("+", "")

    if leading_plus:
        normalized = "+" + digits
    elif digits.startswith("00"):
        normalized = "+" + digits[2:]
    elif digits.startswith("0"):
        # A lone "0" is not a national number
        normalized = "+" + country_code + digits[1:] if digits[1:] else "+"
    else:
        normalized = "+" + digits

    if len(normalized) < 2:
        return NormalizedNumber("")
    return NormalizedNumber(normalized)


def build_lookup_candidates(
    normalized: str,
    country_code: str = DEFAULT_COUNTRY_CODE,
) -> Iterator[str]:
    """
    Yield the number formats to try against the reputation service, in order.

    "+49891234567" yields "49891234567" then the national form "0891234567";
    numbers outside the default country yield only the international digits.
    An empty number yields nothing.
    """
    if not normalized:
        return

    plain = normalized[1:] if normalized.startswith("+") else normalized
    yield plain

    if plain.startswith(country_code) and len(plain) > len(country_code):
        yield "0" + plain[len(country_code):]
