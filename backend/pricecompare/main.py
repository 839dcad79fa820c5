"""Kuwait Price Compare -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricecompare.api.v1.router import api_v1_router
from pricecompare.config import settings
from pricecompare.core.exceptions import InvalidQueryError
from pricecompare.services.compare_service import PriceComparisonService

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting Kuwait Price Compare API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    if not settings.google_search_enabled:
        logger.info("GOOGLE_API_KEY/GOOGLE_CSE_ID not set; Google discovery disabled")

    # Target catalogs are built once and shared read-only by every request
    app.state.compare_service = PriceComparisonService(settings)

    yield

    logger.info("Shutting down Kuwait Price Compare API server...")


app = FastAPI(
    title="Kuwait Price Compare API",
    description="Product and food delivery price comparison across Kuwaiti sites",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidQueryError)
async def invalid_query_handler(request: Request, exc: InvalidQueryError):
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or "server_error"})


# Register API router
app.include_router(api_v1_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Kuwait Price Compare API",
        "version": "0.1.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/ping",
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run("pricecompare.main:app", host="0.0.0.0", port=8000)
