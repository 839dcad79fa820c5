"""Pydantic schemas for the price-compare API.

All request/response models are defined here for easy import.
"""

from pricecompare.schemas.common import CamelModel, ErrorResponse
from pricecompare.schemas.compare import (
    ComparisonResponse,
    ResultItemResponse,
    SourceReportResponse,
)
from pricecompare.schemas.health import CurrencyRateResponse, PingResponse, TrendingResponse

__all__ = [
    # Common
    "CamelModel",
    "ErrorResponse",
    # Comparison
    "ComparisonResponse",
    "ResultItemResponse",
    "SourceReportResponse",
    # Static endpoints
    "PingResponse",
    "CurrencyRateResponse",
    "TrendingResponse",
]
