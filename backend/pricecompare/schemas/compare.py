"""Comparison response schemas."""

from typing import Any, Dict, List, Optional

from pydantic import Field

from pricecompare.schemas.common import CamelModel
from pricecompare.scrapers.base import AggregationResult, ResultItem, SourceReport


class ResultItemResponse(CamelModel):
    """One priced item."""

    name: str
    price_num: Optional[float] = None
    price: Optional[str] = None
    url: str
    source_identifier: str
    group_label: Optional[str] = None
    score: Optional[float] = None

    @classmethod
    def from_item(cls, item: ResultItem) -> "ResultItemResponse":
        return cls(
            name=item.name,
            price_num=float(item.price_num) if item.price_num is not None else None,
            price=item.price,
            url=item.url,
            source_identifier=item.source,
            group_label=item.group_label,
            score=item.score,
        )


class SourceReportResponse(CamelModel):
    """Per-source diagnostics."""

    identifier: str
    domain: Optional[str] = None
    ok: bool
    took_ms: Optional[int] = None
    meta: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    items: List[ResultItemResponse] = []
    debug_urls: Optional[List[str]] = None

    @classmethod
    def from_report(cls, report: SourceReport) -> "SourceReportResponse":
        return cls(
            identifier=report.source,
            domain=report.domain,
            ok=report.ok,
            took_ms=report.took_ms,
            meta=report.meta or None,
            error=report.error,
            items=[ResultItemResponse.from_item(i) for i in report.items],
            debug_urls=report.debug_urls,
        )


class ComparisonResponse(CamelModel):
    """Aggregated comparison payload."""

    kind: str = Field(alias="type")
    query: str
    city: Optional[str] = None
    currency: str = "KWD"
    took_ms: int
    sources: List[SourceReportResponse]
    results: List[ResultItemResponse]

    @classmethod
    def from_result(cls, result: AggregationResult) -> "ComparisonResponse":
        return cls(
            kind=result.kind,
            query=result.query,
            city=result.city,
            currency=result.currency,
            took_ms=result.took_ms,
            sources=[SourceReportResponse.from_report(s) for s in result.sources],
            results=[ResultItemResponse.from_item(r) for r in result.results],
        )
