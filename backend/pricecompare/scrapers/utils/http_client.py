"""Shared HTTP client construction and page fetching."""

import time
from typing import Any, Dict, Optional

import httpx
import structlog

from pricecompare.config import Settings
from pricecompare.core.exceptions import FetchError
from pricecompare.scrapers.base import FetchResult


logger = structlog.get_logger(__name__)


def default_headers(settings: Settings) -> Dict[str, str]:
    """Headers sent with every outbound request."""
    return {
        "User-Agent": settings.USER_AGENT,
        "Accept-Language": settings.ACCEPT_LANGUAGE,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Cache-Control": "no-cache",
    }


def create_http_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Build the AsyncClient shared by all adapters of one run.

    Args:
        settings: Application settings
        transport: Optional transport override (tests use httpx.MockTransport)

    Returns:
        Configured httpx.AsyncClient; callers own its lifecycle
    """
    return httpx.AsyncClient(
        headers=default_headers(settings),
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        follow_redirects=True,
        max_redirects=settings.MAX_REDIRECTS,
        transport=transport,
    )


class PageFetcher:
    """Fetch pages through a shared client and wrap them in FetchResult.

    No retries: a failed URL is failed for the rest of the run.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout

    async def fetch(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> FetchResult:
        """GET a URL.

        Args:
            url: Absolute URL
            params: Optional query parameters
            timeout: Per-request timeout in seconds (defaults to the client's)
            headers: Extra headers merged over the defaults

        Returns:
            FetchResult with the post-redirect URL

        Raises:
            FetchError: On transport failure or a 4xx/5xx status
        """
        request_timeout = timeout if timeout is not None else self.timeout
        started = time.perf_counter()

        kwargs: Dict[str, Any] = {"params": params, "headers": headers}
        if request_timeout is not None:
            kwargs["timeout"] = request_timeout

        try:
            response = await self.client.get(url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("fetch_timeout", url=url, error=str(e))
            raise FetchError(url, "timed out") from e
        except httpx.HTTPError as e:
            logger.warning("fetch_transport_error", url=url, error=str(e))
            raise FetchError(url, str(e) or e.__class__.__name__) from e

        elapsed_ms = int((time.perf_counter() - started) * 1000)

        if response.status_code >= 400:
            logger.warning(
                "fetch_http_error",
                url=url,
                status_code=response.status_code,
            )
            raise FetchError(
                url,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(
            "fetch_complete",
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
        )

        return FetchResult(
            final_url=str(response.url),
            status_code=response.status_code,
            body=response.text,
            elapsed_ms=elapsed_ms,
        )
