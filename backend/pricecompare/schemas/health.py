"""Health check and static endpoint schemas."""

from typing import List

from pydantic import BaseModel


class PingResponse(BaseModel):
    """Liveness response schema."""

    ok: bool
    now: str
    accept: str = ""


class CurrencyRateResponse(BaseModel):
    """Static exchange rate schema."""

    rate: float
    timestamp: str
    base: str
    target: str


class TrendingResponse(BaseModel):
    """Trending queries schema."""

    trending: List[str]
