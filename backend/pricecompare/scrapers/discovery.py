"""Candidate URL discovery for a target site.

Strategies run in a fixed order for every target and the first one that
returns at least one URL wins:

1. PlatformSearchStrategy -- the site's own search page (when configured)
2. GoogleSearchStrategy -- Google Custom Search, scoped with ``site:``
3. DuckDuckGoStrategy -- keyless DuckDuckGo HTML results
4. SiteSearchStrategy -- a generic ``/search?q=`` page on the site
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Pattern, Sequence
from urllib.parse import parse_qs, quote_plus, urljoin, urlparse

import structlog
from bs4 import BeautifulSoup

from pricecompare.config import Settings
from pricecompare.core.exceptions import DiscoveryError, FetchError
from pricecompare.scrapers.base import Query, TargetSite
from pricecompare.scrapers.utils.http_client import PageFetcher
from pricecompare.scrapers.utils.normalizer import normalize_url


logger = structlog.get_logger(__name__)

# URLs that are worth fetching at all
CONTENT_URL_RE = re.compile(
    r"(menu|item|product|order|restaurant|restaurants|items|products|search)",
    re.IGNORECASE,
)
# Links on a generic on-site search page
CONTENT_LINK_RE = re.compile(
    r"/(menu|product|item|restaurant|restaurants|items|products)", re.IGNORECASE
)

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"
DUCKDUCKGO_HTML_URL = "https://html.duckduckgo.com/html/"


@dataclass
class DiscoveryResult:
    """URLs chosen for one target plus which strategy produced them."""

    urls: List[str] = field(default_factory=list)
    strategy: Optional[str] = None
    tried: List[str] = field(default_factory=list)


def build_search_url(template: str, target: TargetSite, query: str) -> str:
    return template.format(base=target.base_url.rstrip("/"), query=quote_plus(query))


def is_same_site(url: str, domain: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def collect_links(
    html: str,
    page_url: str,
    pattern: Pattern[str],
    domain: Optional[str] = None,
) -> List[str]:
    """Absolute links on a page whose href matches ``pattern``.

    Args:
        html: Page body
        page_url: URL the body came from, for resolving relative hrefs
        pattern: Regex tested against the raw href
        domain: When set, only links on this site are kept

    Returns:
        Matching links in document order, without duplicates
    """
    soup = BeautifulSoup(html or "", "html.parser")
    links: List[str] = []
    seen = set()
    for anchor in soup.find_all("a", href=True):
        href = str(anchor.get("href") or "").strip()
        if not href or href.startswith(("#", "javascript:", "mailto:", "tel:")):
            continue
        if not pattern.search(href):
            continue
        absolute = urljoin(page_url, href)
        if domain and not is_same_site(absolute, domain):
            continue
        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)
    return links


class DiscoveryStrategy(ABC):
    """One way of finding candidate URLs for a target."""

    name: str = ""

    def __init__(self, fetcher: PageFetcher, settings: Settings):
        self.fetcher = fetcher
        self.settings = settings

    @abstractmethod
    async def discover(self, query: Query, target: TargetSite, limit: int) -> List[str]:
        """Return candidate URLs (possibly empty).

        Raises:
            FetchError: Transport failure of the strategy's own request
            DiscoveryError: Response could not be interpreted
        """
        pass


class PlatformSearchStrategy(DiscoveryStrategy):
    """Fetch the site's native search pages and harvest content links.

    The search page itself is kept as a candidate: several platforms ship
    their results inside the page's application state.
    """

    name = "platform_search"

    async def discover(self, query: Query, target: TargetSite, limit: int) -> List[str]:
        templates = target.overrides.search_urls
        if not templates:
            return []

        link_re = re.compile(target.overrides.link_pattern or CONTENT_LINK_RE.pattern, re.IGNORECASE)
        candidates = [build_search_url(t, target, query.text) for t in templates]
        urls: List[str] = []

        for search_url in candidates:
            try:
                page = await self.fetcher.fetch(search_url)
            except FetchError as e:
                logger.info(
                    "platform_search_page_failed",
                    source=target.name,
                    url=search_url,
                    error=e.message,
                )
                continue

            urls.append(page.final_url)
            urls.extend(collect_links(page.body, page.final_url, link_re, target.domain))
            if len(urls) >= limit:
                break

        if not urls:
            # Nothing answered; still worth trying the first search page later
            return candidates[:1]
        return urls[:limit]


class GoogleSearchStrategy(DiscoveryStrategy):
    """Google Custom Search JSON API restricted to the target's domain."""

    name = "google_cse"

    async def discover(self, query: Query, target: TargetSite, limit: int) -> List[str]:
        if not self.settings.google_search_enabled:
            return []

        q = f"site:{target.domain} {query.text}"
        if query.city:
            q += f' "{query.city}"'

        page = await self.fetcher.fetch(
            GOOGLE_CSE_URL,
            params={
                "q": q,
                "cx": self.settings.GOOGLE_CSE_ID,
                "key": self.settings.GOOGLE_API_KEY,
                "num": min(max(limit, 1), 10),
                "safe": "off",
            },
            timeout=self.settings.SEARCH_API_TIMEOUT_SECONDS,
        )

        try:
            data = json.loads(page.body)
        except (json.JSONDecodeError, ValueError) as e:
            raise DiscoveryError(self.name, f"invalid JSON: {e}") from e

        items = data.get("items") if isinstance(data, dict) else None
        return [
            item["link"]
            for item in items or []
            if isinstance(item, dict) and isinstance(item.get("link"), str)
        ]


class DuckDuckGoStrategy(DiscoveryStrategy):
    """DuckDuckGo HTML endpoint; no API key required."""

    name = "duckduckgo"

    async def discover(self, query: Query, target: TargetSite, limit: int) -> List[str]:
        q = f"site:{target.domain} {query.text} {query.city or ''}".strip()
        page = await self.fetcher.fetch(DUCKDUCKGO_HTML_URL, params={"q": q})

        soup = BeautifulSoup(page.body, "html.parser")
        anchors = soup.select("a.result__a") + soup.select(
            'a[href^="https://duckduckgo.com/l/"], a[href^="//duckduckgo.com/l/"]'
        )

        urls: List[str] = []
        for anchor in anchors:
            href = self._unwrap(str(anchor.get("href") or ""))
            if href and target.domain in href and href not in urls:
                urls.append(href)
        return urls[:limit]

    @staticmethod
    def _unwrap(href: str) -> str:
        """Resolve DuckDuckGo ``/l/?uddg=`` redirect links to their target."""
        if "duckduckgo.com/l/" not in href:
            return href
        parsed = urlparse(urljoin("https://duckduckgo.com", href))
        target = parse_qs(parsed.query).get("uddg")
        return target[0] if target else href


class SiteSearchStrategy(DiscoveryStrategy):
    """Generic ``<base>/search?q=`` page scanned for content links."""

    name = "site_search"

    async def discover(self, query: Query, target: TargetSite, limit: int) -> List[str]:
        search_url = f"{target.base_url.rstrip('/')}/search"
        page = await self.fetcher.fetch(
            search_url,
            params={"q": query.text},
            timeout=self.settings.SITE_SEARCH_TIMEOUT_SECONDS,
        )
        return collect_links(page.body, page.final_url, CONTENT_LINK_RE)[:limit]


STRATEGY_CLASSES = (
    PlatformSearchStrategy,
    GoogleSearchStrategy,
    DuckDuckGoStrategy,
    SiteSearchStrategy,
)


class SourceDiscoverer:
    """Run discovery strategies in order and post-filter their output."""

    def __init__(
        self,
        fetcher: PageFetcher,
        settings: Settings,
        strategies: Optional[Sequence[DiscoveryStrategy]] = None,
    ):
        self.settings = settings
        self.strategies: Sequence[DiscoveryStrategy] = strategies or [
            cls(fetcher, settings) for cls in STRATEGY_CLASSES
        ]

    async def discover(self, query: Query, target: TargetSite) -> DiscoveryResult:
        """Find candidate URLs for one target.

        Transport and response errors inside a strategy count as "no URLs"
        and move on to the next strategy; anything else propagates.

        Returns:
            DiscoveryResult with at most DISCOVERY_URL_CAP relevant URLs
        """
        cap = self.settings.DISCOVERY_URL_CAP
        result = DiscoveryResult()

        for strategy in self.strategies:
            result.tried.append(strategy.name)
            try:
                raw = await strategy.discover(query, target, cap)
            except (FetchError, DiscoveryError) as e:
                logger.info(
                    "discovery_strategy_failed",
                    source=target.name,
                    strategy=strategy.name,
                    error=e.message,
                )
                continue

            urls = self.filter_urls(raw, target)
            if urls:
                result.urls = urls
                result.strategy = strategy.name
                logger.info(
                    "discovery_complete",
                    source=target.name,
                    strategy=strategy.name,
                    count=len(urls),
                )
                return result

        logger.info("discovery_empty", source=target.name, tried=result.tried)
        return result

    def filter_urls(self, urls: Iterable[str], target: TargetSite) -> List[str]:
        """Keep relevant http(s) URLs, de-duplicated and capped."""
        site_re = (
            re.compile(target.overrides.link_pattern, re.IGNORECASE)
            if target.overrides.link_pattern
            else None
        )
        kept: List[str] = []
        seen = set()
        for url in urls:
            if not url or urlparse(url).scheme not in ("http", "https"):
                continue
            if not (CONTENT_URL_RE.search(url) or (site_re and site_re.search(url))):
                continue
            key = normalize_url(url)
            if key in seen:
                continue
            seen.add(key)
            kept.append(url)
            if len(kept) >= self.settings.DISCOVERY_URL_CAP:
                break
        return kept
