"""Scraping pipeline for price comparison.

This package provides:
- Shared data structures and the base adapter interface
- Price extraction and URL discovery strategy chains
- A configuration-driven adapter plus the target site catalogs
- Factory for wiring adapters to a run's HTTP client
"""

from .base import (
    AggregationResult,
    BaseSourceAdapter,
    ExtractedItem,
    FetchResult,
    Query,
    ResultItem,
    SiteOverrides,
    SourceReport,
    TargetSite,
)
from .adapter import SiteAdapter
from .factory import AdapterFactory

__all__ = [
    # Base classes
    "BaseSourceAdapter",
    "SiteAdapter",
    # Data structures
    "Query",
    "TargetSite",
    "SiteOverrides",
    "FetchResult",
    "ExtractedItem",
    "ResultItem",
    "SourceReport",
    "AggregationResult",
    # Factory
    "AdapterFactory",
]
