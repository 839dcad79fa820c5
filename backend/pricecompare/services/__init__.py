"""Services module for business logic.

The comparison service fans queries out to the scraping pipeline and merges
the per-source results.
"""

from pricecompare.services.compare_service import PriceComparisonService

__all__ = [
    "PriceComparisonService",
]
