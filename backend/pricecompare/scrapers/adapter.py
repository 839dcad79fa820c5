"""Configuration-driven source adapter.

A single SiteAdapter serves every target; per-site behaviour lives in the
TargetSite's SiteOverrides (native search URLs, link pattern, suggest API).
"""

import json
import time
from typing import List, Optional
from urllib.parse import quote_plus

from pricecompare.core.exceptions import FetchError
from pricecompare.scrapers.base import (
    BaseSourceAdapter,
    ExtractedItem,
    Query,
    ResultItem,
    SourceReport,
    TargetSite,
)
from pricecompare.scrapers.discovery import SourceDiscoverer, build_search_url
from pricecompare.scrapers.extraction import PriceExtractor, scan_priced_nodes
from pricecompare.scrapers.utils.http_client import PageFetcher
from pricecompare.scrapers.utils.normalizer import format_price, normalize_text


class SiteAdapter(BaseSourceAdapter):
    """Discover, fetch and extract priced items for one target site."""

    def __init__(
        self,
        target: TargetSite,
        fetcher: PageFetcher,
        discoverer: SourceDiscoverer,
        extractor: Optional[PriceExtractor] = None,
        price_unit: str = "KWD",
    ):
        super().__init__(target)
        self.fetcher = fetcher
        self.discoverer = discoverer
        self.extractor = extractor or PriceExtractor()
        self.price_unit = price_unit

    async def search(self, query: Query, limit: int) -> SourceReport:
        """Collect up to ``limit`` items for ``query`` from this site.

        The suggest endpoint (if any) is tried first; when it yields items
        discovery is skipped. Each candidate URL that fails to fetch or parse
        is logged and skipped.
        """
        started = time.perf_counter()

        items = await self._search_fast_path(query)
        if items:
            took_ms = _elapsed_ms(started)
            items = self._dedupe(items)[:limit]
            self.logger.info("fast_path_hit", count=len(items), took_ms=took_ms)
            return SourceReport(
                source=self.name,
                domain=self.target.domain,
                ok=True,
                took_ms=took_ms,
                meta={
                    "discovered": 0,
                    "used": 0,
                    "tookMs": took_ms,
                    "strategy": "suggest",
                },
                items=items,
                debug_urls=[self._suggest_url(query)] if query.debug else None,
            )

        discovery = await self.discoverer.discover(query, self.target)
        urls = discovery.urls

        items = []
        for url in urls:
            try:
                items.extend(await self._items_from_page(url))
            except FetchError as e:
                self.logger.info("candidate_url_failed", url=url, error=e.message)
                continue
            except Exception as e:
                self.logger.warning("candidate_url_parse_failed", url=url, error=str(e))
                continue

            if len(items) >= limit:
                break

        items = self._dedupe(items)[:limit]
        took_ms = _elapsed_ms(started)

        self.logger.info(
            "source_search_complete",
            discovered=len(urls),
            strategy=discovery.strategy,
            count=len(items),
            took_ms=took_ms,
        )

        return SourceReport(
            source=self.name,
            domain=self.target.domain,
            ok=True,
            took_ms=took_ms,
            meta={
                "discovered": len(urls),
                "used": min(len(urls), limit),
                "tookMs": took_ms,
                "strategy": discovery.strategy,
            },
            items=items,
            debug_urls=urls[:8] if query.debug else None,
        )

    async def _items_from_page(self, url: str) -> List[ResultItem]:
        page = await self.fetcher.fetch(url)
        found = self.extractor.extract(page.body, page.final_url)
        if not found:
            self.logger.debug("no_items_on_page", url=page.final_url)
            return []

        group_label = self.extractor.page_title(page.body)
        return [
            self._to_result(item, page.final_url, group_label)
            for item in found
            if item.is_complete
        ]

    async def _search_fast_path(self, query: Query) -> List[ResultItem]:
        """Query the site's JSON suggest endpoint, if it has one."""
        suggest_url = self._suggest_url(query)
        if not suggest_url:
            return []

        try:
            page = await self.fetcher.fetch(
                suggest_url,
                headers={"Accept": "application/json, text/plain, */*"},
            )
            data = json.loads(page.body)
        except FetchError as e:
            self.logger.info("fast_path_failed", url=suggest_url, error=e.message)
            return []
        except (json.JSONDecodeError, ValueError) as e:
            self.logger.info("fast_path_unparseable", url=suggest_url, error=str(e))
            return []

        # Items without their own link point at the site search page, not the JSON endpoint
        landing_url = self._landing_url(query)
        return [
            self._to_result(item, landing_url, None)
            for item in scan_priced_nodes(data, base_url=self.target.base_url)
        ]

    def _landing_url(self, query: Query) -> str:
        """The site's own search page for ``query``, else its home page."""
        templates = self.target.overrides.search_urls
        if templates:
            return build_search_url(templates[0], self.target, query.text)
        return self.target.base_url

    def _suggest_url(self, query: Query) -> Optional[str]:
        template = self.target.overrides.suggest_url
        if not template:
            return None
        return template.format(
            base=self.target.base_url.rstrip("/"),
            query=quote_plus(query.text),
        )

    def _to_result(
        self,
        item: ExtractedItem,
        page_url: str,
        group_label: Optional[str],
    ) -> ResultItem:
        return ResultItem(
            name=item.name,
            price_num=item.price,
            price=format_price(item.price, self.price_unit),
            url=item.url or page_url,
            source=self.name,
            group_label=group_label,
        )

    def _dedupe(self, items: List[ResultItem]) -> List[ResultItem]:
        """Collapse items sharing (source, group label, name) after normalization."""
        seen = set()
        unique: List[ResultItem] = []
        for item in items:
            key = (
                item.source,
                normalize_text(item.group_label or ""),
                normalize_text(item.name),
            )
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
