"""Factory for creating and wiring source adapter instances."""

from typing import List, Optional

import structlog

from pricecompare.config import Settings
from pricecompare.scrapers.adapter import SiteAdapter
from pricecompare.scrapers.base import BaseSourceAdapter, TargetSite
from pricecompare.scrapers.discovery import SourceDiscoverer
from pricecompare.scrapers.extraction import PriceExtractor
from pricecompare.scrapers.sites import Catalog
from pricecompare.scrapers.utils.http_client import PageFetcher


logger = structlog.get_logger(__name__)


class AdapterFactory:
    """Create adapters for a catalog, injecting the run's shared fetcher.

    The extractor is stateless and shared by every adapter the factory
    creates; fetcher and discoverer are per run.
    """

    def __init__(self, settings: Settings, extractor: Optional[PriceExtractor] = None):
        self.settings = settings
        self.extractor = extractor or PriceExtractor()

    def create_adapter(
        self,
        target: TargetSite,
        fetcher: PageFetcher,
        price_unit: str = "KWD",
    ) -> BaseSourceAdapter:
        """Create a configured adapter for one target.

        Args:
            target: Target site descriptor
            fetcher: Page fetcher bound to the run's HTTP client
            price_unit: Unit label used in formatted prices

        Returns:
            Adapter instance ready to search
        """
        discoverer = SourceDiscoverer(fetcher, self.settings)
        adapter = SiteAdapter(
            target=target,
            fetcher=fetcher,
            discoverer=discoverer,
            extractor=self.extractor,
            price_unit=price_unit,
        )
        logger.debug("adapter_created", source=target.name, domain=target.domain)
        return adapter

    def create_adapters(self, catalog: Catalog, fetcher: PageFetcher) -> List[BaseSourceAdapter]:
        """Create one adapter per target in a catalog."""
        return [
            self.create_adapter(target, fetcher, price_unit=catalog.price_unit)
            for target in catalog.targets
        ]
