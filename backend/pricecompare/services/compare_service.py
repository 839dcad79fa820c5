"""Price comparison service.

Fans a query out to every target site of a catalog, waits for all of them to
settle, and merges the surviving items into one price-ordered list.
"""

import asyncio
import dataclasses
import time
from typing import Dict, List, Optional, Sequence

import httpx
import structlog

from pricecompare.config import Settings
from pricecompare.core.exceptions import PriceCompareException, SourceError
from pricecompare.scrapers.base import (
    AggregationResult,
    BaseSourceAdapter,
    Query,
    ResultItem,
    SourceReport,
)
from pricecompare.scrapers.factory import AdapterFactory
from pricecompare.scrapers.sites import Catalog, build_catalogs
from pricecompare.scrapers.utils.http_client import PageFetcher, create_http_client
from pricecompare.scrapers.utils.normalizer import token_score


logger = structlog.get_logger(__name__)


class PriceComparisonService:
    """Orchestrates one comparison run per request.

    Each run gets its own HTTP client; adapters share it for connection
    pooling only.
    """

    def __init__(
        self,
        settings: Settings,
        catalogs: Optional[Dict[str, Catalog]] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the service.

        Args:
            settings: Application settings
            catalogs: Target catalogs keyed by kind (built from settings if omitted)
            adapter_factory: Adapter factory (default: AdapterFactory(settings))
            transport: Optional httpx transport override for the run's client
        """
        self.settings = settings
        self.catalogs = catalogs if catalogs is not None else build_catalogs(settings)
        self.adapter_factory = adapter_factory or AdapterFactory(settings)
        self.transport = transport
        self.logger = logger.bind(service="compare_service")

    async def compare(self, query: Query, kind: str) -> AggregationResult:
        """Run every target of the ``kind`` catalog for one query.

        Raises:
            KeyError: Unknown catalog kind
        """
        catalog = self.catalogs[kind]

        async with create_http_client(self.settings, transport=self.transport) as client:
            fetcher = PageFetcher(client)
            adapters = self.adapter_factory.create_adapters(catalog, fetcher)
            return await self.aggregate(
                query,
                adapters,
                limit=catalog.items_per_source,
                kind=kind,
            )

    async def aggregate(
        self,
        query: Query,
        adapters: Sequence[BaseSourceAdapter],
        limit: int,
        kind: str,
    ) -> AggregationResult:
        """Run adapters concurrently and merge their items.

        No adapter's failure cancels or short-circuits another; the result is
        built only after all of them have succeeded, failed or timed out.
        """
        started = time.perf_counter()
        self.logger.info(
            "comparison_started",
            query=query.text,
            kind=kind,
            sources=[a.name for a in adapters],
        )

        outcomes = await asyncio.gather(
            *(self._run_adapter(adapter, query, limit) for adapter in adapters),
            return_exceptions=True,
        )

        sources: List[SourceReport] = []
        for adapter, outcome in zip(adapters, outcomes):
            if isinstance(outcome, BaseException):
                sources.append(self._failed_report(adapter, outcome))
            else:
                sources.append(outcome)

        results = self.rank(query, sources)
        took_ms = int((time.perf_counter() - started) * 1000)

        self.logger.info(
            "comparison_complete",
            query=query.text,
            kind=kind,
            ok_sources=sum(1 for s in sources if s.ok),
            failed_sources=sum(1 for s in sources if not s.ok),
            results=len(results),
            took_ms=took_ms,
        )

        return AggregationResult(
            query=query.text,
            kind=kind,
            took_ms=took_ms,
            sources=sources,
            results=results,
            city=query.city,
        )

    def rank(self, query: Query, sources: Sequence[SourceReport]) -> List[ResultItem]:
        """Score, filter, sort and cap items from successful sources.

        Items are scored with token_score() against the query, dropped below
        RELEVANCE_THRESHOLD, ordered by ascending price (unpriced last) and
        truncated to MAX_RESULTS.
        """
        threshold = self.settings.RELEVANCE_THRESHOLD
        scored: List[ResultItem] = []

        for report in sources:
            if not report.ok:
                continue
            for item in report.items:
                score = round(token_score(query.text, item.name), 4)
                if score < threshold:
                    continue
                scored.append(dataclasses.replace(item, score=score))

        scored.sort(key=lambda r: (r.price_num is None, r.price_num or 0))
        return scored[: self.settings.MAX_RESULTS]

    async def _run_adapter(
        self,
        adapter: BaseSourceAdapter,
        query: Query,
        limit: int,
    ) -> SourceReport:
        timeout = self.settings.SOURCE_TIMEOUT_SECONDS
        try:
            return await asyncio.wait_for(adapter.search(query, limit), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SourceError(adapter.name, f"timed out after {timeout:g}s") from e

    def _failed_report(self, adapter: BaseSourceAdapter, error: BaseException) -> SourceReport:
        if isinstance(error, PriceCompareException):
            message = error.message
        else:
            message = str(error) or error.__class__.__name__

        self.logger.warning(
            "source_failed",
            source=adapter.name,
            error=message,
            error_type=error.__class__.__name__,
        )
        return SourceReport(
            source=adapter.name,
            domain=adapter.target.domain,
            ok=False,
            error=message,
            items=[],
        )
