"""Application configuration via Pydantic Settings."""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Google Custom Search (keyed discovery, skipped when unset)
    GOOGLE_API_KEY: str = ""
    GOOGLE_CSE_ID: str = ""

    # Extra storefront domains, comma-separated (e.g. "shop.zyda.com,x.ordable.com")
    ZYDA_DOMAINS: str = ""
    ORDABLE_DOMAINS: str = ""

    # Outbound HTTP
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124 Safari/537.36 (+kuwait-price-compare/1.2)"
    )
    ACCEPT_LANGUAGE: str = "en-KW,en;q=0.8,ar;q=0.6"
    HTTP_TIMEOUT_SECONDS: float = 15.0
    SEARCH_API_TIMEOUT_SECONDS: float = 10.0
    SITE_SEARCH_TIMEOUT_SECONDS: float = 12.0
    MAX_REDIRECTS: int = 5

    # Aggregation
    SOURCE_TIMEOUT_SECONDS: float = 60.0
    RELEVANCE_THRESHOLD: float = 0.25
    MAX_RESULTS: int = 30
    DISCOVERY_URL_CAP: int = 8
    MAX_QUERY_LENGTH: int = 120
    DEFAULT_CITY: str = "Kuwait"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    def get_zyda_domains(self) -> List[str]:
        """Parse ZYDA_DOMAINS into a list of hostnames."""
        return _split_csv(self.ZYDA_DOMAINS)

    def get_ordable_domains(self) -> List[str]:
        """Parse ORDABLE_DOMAINS into a list of hostnames."""
        return _split_csv(self.ORDABLE_DOMAINS)

    @property
    def google_search_enabled(self) -> bool:
        return bool(self.GOOGLE_API_KEY and self.GOOGLE_CSE_ID)


def _split_csv(value: str) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


settings = Settings()
