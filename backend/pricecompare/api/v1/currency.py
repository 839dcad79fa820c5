"""Currency rate endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from pricecompare.schemas import CurrencyRateResponse

router = APIRouter()

# Static USD -> KWD rate shown next to converted prices
USD_TO_KWD = 0.31


@router.get("", response_model=CurrencyRateResponse)
async def get_currency_rate():
    """Return the USD to KWD rate."""
    return CurrencyRateResponse(
        rate=USD_TO_KWD,
        timestamp=datetime.now(timezone.utc).isoformat(),
        base="USD",
        target="KWD",
    )
