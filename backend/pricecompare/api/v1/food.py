"""Food delivery price comparison endpoint."""

from fastapi import APIRouter, Depends, Response

from pricecompare.config import settings
from pricecompare.dependencies import (
    ComparisonParams,
    build_query,
    get_compare_service,
    get_comparison_params,
)
from pricecompare.schemas import ComparisonResponse, ErrorResponse
from pricecompare.scrapers.sites import FOOD
from pricecompare.services.compare_service import PriceComparisonService

router = APIRouter()


@router.api_route(
    "",
    methods=["GET", "POST"],
    response_model=ComparisonResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def food(
    response: Response,
    params: ComparisonParams = Depends(get_comparison_params),
    service: PriceComparisonService = Depends(get_compare_service),
):
    """Compare dish prices across delivery platforms.

    Query parameters:
    - q: dish or restaurant (required)
    - city: locality hint for external search (default: Kuwait)
    - debug: "1" adds each platform's discovered URLs to the response
    """
    query = build_query(params, city=params.city or settings.DEFAULT_CITY)
    result = await service.compare(query, kind=FOOD)

    response.headers["Cache-Control"] = "no-store"
    return ComparisonResponse.from_result(result)
