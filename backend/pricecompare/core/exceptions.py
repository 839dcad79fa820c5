"""Custom exception classes for the application."""


class PriceCompareException(Exception):
    """Base exception for all price-compare errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class InvalidQueryError(PriceCompareException):
    """Raised when the request carries no usable search query."""

    def __init__(self, message: str = "Missing query ?q="):
        super().__init__(message)


class FetchError(PriceCompareException):
    """Raised when a single page fetch fails (transport error or bad status)."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Fetch failed for {url}: {message}")


class DiscoveryError(PriceCompareException):
    """Raised when a discovery strategy receives an unusable response."""

    def __init__(self, strategy: str, message: str):
        self.strategy = strategy
        super().__init__(f"Discovery error in {strategy}: {message}")


class SourceError(PriceCompareException):
    """Raised when a whole source cannot produce a report."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Source error for {source}: {message}")
