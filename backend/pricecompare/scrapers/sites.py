"""Target site catalogs.

Two catalogs are served: ``retail`` (electronics retailers) and ``food``
(delivery platforms). Food storefronts hosted on Zyda or Ordable are added
from the ZYDA_DOMAINS / ORDABLE_DOMAINS environment lists.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

import structlog

from pricecompare.config import Settings
from pricecompare.scrapers.base import SiteOverrides, TargetSite


logger = structlog.get_logger(__name__)

RETAIL = "retail"
FOOD = "food"


@dataclass(frozen=True)
class Catalog:
    """A family of target sites answered by one endpoint."""

    kind: str
    targets: Tuple[TargetSite, ...]
    items_per_source: int
    price_unit: str


RETAIL_SITES: Tuple[TargetSite, ...] = (
    TargetSite(
        name="xcite",
        domain="xcite.com",
        base_url="https://www.xcite.com",
        overrides=SiteOverrides(
            search_urls=("{base}/search?q={query}",),
            link_pattern=r"/(p|product|products)(/|\?|$)|-p-\d+",
            suggest_url="{base}/api/search/suggest?q={query}",
        ),
    ),
    TargetSite(
        name="blink",
        domain="blink.com.kw",
        base_url="https://www.blink.com.kw",
        overrides=SiteOverrides(
            search_urls=("{base}/search?q={query}",),
            link_pattern=r"/(product|products|p)/",
        ),
    ),
    TargetSite(
        name="eureka",
        domain="eureka.com.kw",
        base_url="https://www.eureka.com.kw",
        overrides=SiteOverrides(
            search_urls=("{base}/products/search?q={query}",),
            link_pattern=r"/(product|products)/",
        ),
    ),
)

FOOD_PLATFORMS: Tuple[TargetSite, ...] = (
    TargetSite(
        name="talabat",
        domain="talabat.com",
        base_url="https://www.talabat.com",
        overrides=SiteOverrides(
            search_urls=("{base}/kuwait/search?q={query}",),
            link_pattern=r"/kuwait/restaurant/|/menu|/brands/",
        ),
    ),
    TargetSite(
        name="deliveroo",
        domain="deliveroo.com.kw",
        base_url="https://deliveroo.com.kw",
        overrides=SiteOverrides(
            search_urls=(
                "{base}/en/search?keywords={query}",
                "{base}/en/kwt/search?keywords={query}",
                "{base}/en/kuwait/search?keywords={query}",
            ),
            link_pattern=r"/menu|/restaurants?",
        ),
    ),
    # Kuwait storefront paths vary, so jahez relies on generic discovery
    TargetSite(name="jahez", domain="jahez.net", base_url="https://jahez.net"),
)


def storefront_targets(settings: Settings) -> List[TargetSite]:
    """Zyda and Ordable storefronts configured through the environment."""
    targets = [
        TargetSite(name="zyda", domain=domain, base_url=f"https://{domain}")
        for domain in settings.get_zyda_domains()
    ]
    targets += [
        TargetSite(name="ordable", domain=domain, base_url=f"https://{domain}")
        for domain in settings.get_ordable_domains()
    ]
    return targets


def build_catalogs(settings: Settings) -> Dict[str, Catalog]:
    """Build both catalogs once, at process start."""
    food_targets = FOOD_PLATFORMS + tuple(storefront_targets(settings))
    catalogs = {
        RETAIL: Catalog(kind=RETAIL, targets=RETAIL_SITES, items_per_source=5, price_unit="KD"),
        FOOD: Catalog(kind=FOOD, targets=food_targets, items_per_source=8, price_unit="KWD"),
    }
    logger.info(
        "catalogs_built",
        retail=[t.name for t in catalogs[RETAIL].targets],
        food=[t.domain for t in catalogs[FOOD].targets],
    )
    return catalogs
