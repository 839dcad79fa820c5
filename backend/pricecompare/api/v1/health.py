"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response

from pricecompare.schemas import PingResponse

router = APIRouter()


@router.get("/ping", response_model=PingResponse)
async def ping(request: Request, response: Response):
    """Confirm the API is reachable."""
    response.headers["Cache-Control"] = "no-store"
    return PingResponse(
        ok=True,
        now=datetime.now(timezone.utc).isoformat(),
        accept=request.headers.get("accept", ""),
    )
