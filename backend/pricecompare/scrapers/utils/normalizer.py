"""Text and price normalization utilities.

Everything here is locale-aware for Kuwaiti pages: Arabic-Indic digits are
folded to ASCII before any comparison or number parsing, and the local
currency spellings (KWD, KD, د.ك, ك.د) are recognized as units.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Set
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


# Arabic-Indic (U+0660..) and Eastern Arabic-Indic (U+06F0..) digits
_DIGIT_TABLE = {
    **{0x0660 + i: str(i) for i in range(10)},
    **{0x06F0 + i: str(i) for i in range(10)},
    0x066B: ".",  # Arabic decimal separator
    0x066C: ",",  # Arabic thousands separator
}

CURRENCY_UNIT_PATTERN = r"KWD|KD|د\.?ك|ك\.?د"

_CURRENCY_UNIT_RE = re.compile(CURRENCY_UNIT_PATTERN, re.IGNORECASE)
_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?)")
_NON_WORD_RE = re.compile(r"[^a-z0-9\u0600-\u06FF\s]", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")

TRACKING_PARAMS = {
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_content",
    "utm_term",
    "ref",
    "fbclid",
    "gclid",
    "mc_cid",
    "mc_eid",
}


def to_ascii_digits(value: Any) -> str:
    """Fold Arabic-Indic digits to ASCII; every other character passes through."""
    if value is None:
        return ""
    return str(value).translate(_DIGIT_TABLE)


def normalize_text(value: Any) -> str:
    """Comparison form of a string: folded, lowercased, punctuation-free."""
    text = to_ascii_digits(value).lower()
    text = _NON_WORD_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(value: Any) -> Set[str]:
    """Split the normalized form of ``value`` into a set of tokens."""
    normalized = normalize_text(value)
    if not normalized:
        return set()
    return set(normalized.split(" "))


def parse_currency_amount(value: Any) -> Optional[Decimal]:
    """Parse a price such as ``"1,234.500 KWD"`` or ``"١٬٢٣٤٫٥٠٠ د.ك"``.

    Thousands separators and currency units are stripped and the first
    decimal-or-integer number is returned.

    Args:
        value: Raw price (string, int or float)

    Returns:
        Decimal amount, or None when no number is present. None means
        "price unknown" and must never be read as zero.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return None
        return amount if amount.is_finite() else None

    if not isinstance(value, str):
        return None

    text = to_ascii_digits(value).replace(",", "")
    text = _WHITESPACE_RE.sub(" ", text)
    text = _CURRENCY_UNIT_RE.sub("", text)

    match = _NUMBER_RE.search(text)
    if not match:
        return None

    try:
        return Decimal(match.group(1))
    except InvalidOperation:
        return None


def token_score(query: str, candidate: str) -> float:
    """Relevance of ``candidate`` to ``query``.

    Jaccard similarity of the token sets, plus 0.15 when either normalized
    string contains the other.
    """
    query_tokens = tokenize(query)
    candidate_tokens = tokenize(candidate)
    union = len(query_tokens | candidate_tokens) or 1
    score = len(query_tokens & candidate_tokens) / union

    norm_query = normalize_text(query)
    norm_candidate = normalize_text(candidate)
    if norm_query and norm_candidate and (
        norm_query in norm_candidate or norm_candidate in norm_query
    ):
        score += 0.15

    return score


def format_price(value: Optional[Decimal], unit: str = "KWD") -> Optional[str]:
    """Format a price for display, e.g. ``Decimal("1.250")`` -> ``"1.25 KWD"``."""
    if value is None:
        return None
    return f"{value.normalize():f} {unit}"


def sanitize_query(raw: Any, max_length: int = 120) -> str:
    """Clean a user-supplied query string.

    Control characters are dropped, whitespace is collapsed and the result
    is truncated to ``max_length`` characters.
    """
    if raw is None:
        return ""
    text = _CONTROL_RE.sub(" ", str(raw))
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return text[:max_length].strip()


def normalize_url(url: str) -> str:
    """Normalize a URL by removing tracking parameters and fragments.

    Args:
        url: URL to normalize

    Returns:
        Normalized URL
    """
    if not url:
        return url

    parsed = urlparse(url)
    query_params = [
        (k, v)
        for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if k not in TRACKING_PARAMS and not k.startswith("utm_")
    ]

    return urlunparse(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path,
            parsed.params,
            urlencode(query_params, doseq=True),
            "",
        )
    )
