"""Retail price comparison endpoint."""

from fastapi import APIRouter, Depends, Response

from pricecompare.dependencies import (
    ComparisonParams,
    build_query,
    get_compare_service,
    get_comparison_params,
)
from pricecompare.schemas import ComparisonResponse, ErrorResponse
from pricecompare.scrapers.sites import RETAIL
from pricecompare.services.compare_service import PriceComparisonService

router = APIRouter()


@router.api_route(
    "",
    methods=["GET", "POST"],
    response_model=ComparisonResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def search(
    response: Response,
    params: ComparisonParams = Depends(get_comparison_params),
    service: PriceComparisonService = Depends(get_compare_service),
):
    """Compare electronics prices across Kuwaiti retailers.

    Always 200 once the query is valid, even when every retailer failed;
    per-retailer outcomes are in ``sources``.
    """
    query = build_query(params)
    result = await service.compare(query, kind=RETAIL)

    response.headers["Cache-Control"] = "no-store"
    return ComparisonResponse.from_result(result)
