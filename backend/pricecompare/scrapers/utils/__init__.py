"""Scraper utilities for text normalization and page fetching."""

from .normalizer import (
    format_price,
    normalize_text,
    normalize_url,
    parse_currency_amount,
    sanitize_query,
    to_ascii_digits,
    token_score,
    tokenize,
)
from .http_client import PageFetcher, create_http_client, default_headers


__all__ = [
    # Normalization
    "to_ascii_digits",
    "normalize_text",
    "tokenize",
    "parse_currency_amount",
    "token_score",
    "format_price",
    "sanitize_query",
    "normalize_url",
    # HTTP
    "PageFetcher",
    "create_http_client",
    "default_headers",
]
