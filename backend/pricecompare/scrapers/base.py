"""Base source adapter interface and shared data structures.

Every source adapter receives a Query and returns a SourceReport built from
ResultItems. The records below are the only values that cross module
boundaries inside the scraping pipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import structlog


@dataclass(frozen=True)
class Query:
    """One aggregation run's input."""

    text: str
    city: Optional[str] = None
    debug: bool = False

    def __post_init__(self):
        if not self.text or not self.text.strip():
            raise ValueError("query text is required")


@dataclass(frozen=True)
class SiteOverrides:
    """Per-site knobs for the generic adapter.

    search_urls: native search page templates with ``{base}`` and ``{query}``
    link_pattern: regex for content links on the site's own pages
    suggest_url: JSON suggest/autocomplete endpoint tried before discovery
    """

    search_urls: Tuple[str, ...] = ()
    link_pattern: Optional[str] = None
    suggest_url: Optional[str] = None


@dataclass(frozen=True)
class TargetSite:
    """A retailer or delivery platform that can be queried for prices."""

    name: str
    domain: str
    base_url: str
    overrides: SiteOverrides = field(default_factory=SiteOverrides)


@dataclass
class FetchResult:
    """Outcome of a single HTTP fetch."""

    final_url: str
    status_code: int
    body: str
    elapsed_ms: int


@dataclass
class ExtractedItem:
    """A (name, price) candidate recovered from one page."""

    name: str
    price: Optional[Decimal]
    currency: Optional[str] = None
    url: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.name.strip()) and self.price is not None


@dataclass(frozen=True)
class ResultItem:
    """Client-facing priced item attributed to one source."""

    name: str
    price_num: Optional[Decimal]
    price: Optional[str]
    url: str
    source: str
    group_label: Optional[str] = None
    score: Optional[float] = None

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.name:
            raise ValueError("name is required")
        if self.price_num is not None and (
            not self.price_num.is_finite() or self.price_num < 0
        ):
            raise ValueError("price_num must be a non-negative finite Decimal")


@dataclass
class SourceReport:
    """Per-source outcome of one run."""

    source: str
    domain: Optional[str] = None
    ok: bool = True
    took_ms: Optional[int] = None
    meta: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    items: List[ResultItem] = field(default_factory=list)
    debug_urls: Optional[List[str]] = None


@dataclass
class AggregationResult:
    """Terminal output of one aggregation run."""

    query: str
    kind: str
    took_ms: int
    sources: List[SourceReport]
    results: List[ResultItem]
    city: Optional[str] = None
    currency: str = "KWD"


class BaseSourceAdapter(ABC):
    """Abstract base class for all source adapters.

    Adapters must implement search(). Per-URL failures are handled inside
    the adapter; anything that escapes search() marks the whole source as
    failed in the aggregated response.
    """

    def __init__(self, target: TargetSite):
        self.target = target
        self.logger = structlog.get_logger(__name__).bind(source=target.name)

    @property
    def name(self) -> str:
        return self.target.name

    @abstractmethod
    async def search(self, query: Query, limit: int) -> SourceReport:
        """Collect priced items for a query from this source.

        Args:
            query: Sanitized query for this run
            limit: Maximum number of items to return

        Returns:
            SourceReport with ok=True and the collected items

        Raises:
            Exception: When the source as a whole cannot be searched
        """
        pass
