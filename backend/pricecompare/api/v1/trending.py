"""Trending API endpoint."""

from fastapi import APIRouter

from pricecompare.schemas import TrendingResponse

router = APIRouter()

TRENDING_QUERIES = [
    "iPhone 15 Pro",
    "Samsung Galaxy S24",
    "MacBook Air M3",
    "PlayStation 5",
    "AirPods Pro",
    "iPad Air",
    "Nintendo Switch OLED",
    "LG OLED TV",
    "Dyson V15",
]


@router.get("", response_model=TrendingResponse)
async def get_trending():
    """Suggested queries for the search page."""
    return TrendingResponse(trending=TRENDING_QUERIES)
