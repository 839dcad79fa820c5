"""FastAPI dependency injection providers."""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request

from pricecompare.config import settings
from pricecompare.core.exceptions import InvalidQueryError
from pricecompare.scrapers.base import Query
from pricecompare.scrapers.utils.normalizer import sanitize_query
from pricecompare.services.compare_service import PriceComparisonService


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class ComparisonParams:
    """Raw request parameters merged from the query string and JSON body."""

    q: str
    city: Optional[str]
    debug: bool


async def _json_body(request: Request) -> Dict[str, Any]:
    if request.method != "POST":
        return {}
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


async def get_comparison_params(request: Request) -> ComparisonParams:
    """Read ``q``, ``city`` and ``debug`` from the query string, then the body."""
    body = await _json_body(request)

    def pick(name: str) -> Any:
        value = request.query_params.get(name)
        if value in (None, ""):
            value = body.get(name)
        return value

    debug = pick("debug")
    return ComparisonParams(
        q=sanitize_query(pick("q"), max_length=settings.MAX_QUERY_LENGTH),
        city=sanitize_query(pick("city")) or None,
        debug=str(debug).strip().lower() in _TRUTHY if debug is not None else False,
    )


def build_query(params: ComparisonParams, city: Optional[str] = None) -> Query:
    """Turn request parameters into a Query.

    Raises:
        InvalidQueryError: When the query is empty after sanitizing
    """
    if not params.q:
        raise InvalidQueryError()
    return Query(text=params.q, city=city, debug=params.debug)


def get_compare_service(request: Request) -> PriceComparisonService:
    """Return the application-wide comparison service, creating it on first use."""
    service = getattr(request.app.state, "compare_service", None)
    if service is None:
        service = PriceComparisonService(settings)
        request.app.state.compare_service = service
    return service
