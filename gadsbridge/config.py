"""GADS Bridge — Central Configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Google Ads app credentials (never accepted per request) ──
    google_ads_client_id: str = ""
    google_ads_client_secret: str = ""
    google_developer_token: str = ""

    # ── User-level fallbacks ──
    google_ads_refresh_token: Optional[str] = None
    google_login_customer_id: Optional[str] = None

    # ── Google Ads API ──
    google_ads_api_version: str = "v17"
    google_ads_base_url: str = "https://googleads.googleapis.com"
    google_oauth_token_url: str = "https://oauth2.googleapis.com/token"
    request_timeout: float = 30.0

    # ── Reporting ──
    default_currency: str = "USD"  # Fallback when the account reports none
    default_timezone: str = "Asia/Kolkata"
    default_page_size: int = 500
    max_page_size: int = 10000

    # ── Retry ──
    retry_max_retries: int = 3
    retry_initial_delay: float = 1.0  # seconds
    retry_max_delay: float = 30.0
    retry_jitter_factor: float = 0.3

    # ── App ──
    log_level: str = "INFO"

    @property
    def has_app_credentials(self) -> bool:
        """True when client id, client secret and developer token are all set."""
        return bool(
            self.google_ads_client_id
            and self.google_ads_client_secret
            and self.google_developer_token
        )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
