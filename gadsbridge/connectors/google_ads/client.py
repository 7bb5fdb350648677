"""GADS Bridge — Google Ads REST API Client.

Handles OAuth token refresh, retry logic, error normalization and
page-token passthrough for GAQL searches.
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel

from gadsbridge.config import settings
from gadsbridge.core.errors import ErrorType, GoogleAdsAPIError
from gadsbridge.core.logging import get_logger
from gadsbridge.core.retry import RetryOptions, parse_retry_after, with_retry
from gadsbridge.models.request_models import UserCredentials

logger = get_logger("google_ads.client")

CLIENT_VERSION = "1.0.0"
TOKEN_EXPIRY_MARGIN = 60  # seconds
RATE_LIMIT_RETRY_SECONDS = 60

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake_case(name: str) -> str:
    """``descriptiveName`` -> ``descriptive_name``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_case_keys(value: Any) -> Any:
    """Recursively convert REST (camelCase) keys to GAQL (snake_case) names."""
    if isinstance(value, dict):
        return {to_snake_case(k): snake_case_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_case_keys(v) for v in value]
    return value


class RateLimitInfo(BaseModel):
    """Google Ads does not consistently expose quota headers; fields stay null."""

    quota_remaining: Optional[int] = None
    quota_limit: Optional[int] = None
    last_updated: Optional[str] = None


def normalize_error(
    message: str,
    status_code: int = 500,
    upstream_code: Optional[str] = None,
    details: Any = None,
    retry_after: Optional[float] = None,
) -> GoogleAdsAPIError:
    """Classify an upstream failure into the standard error taxonomy."""
    lowered = message.lower()

    if (
        status_code in (401, 403)
        or "authentication" in lowered
        or "unauthorized" in lowered
        or "unauthenticated" in lowered
    ):
        return GoogleAdsAPIError(
            f"Authentication failed: {message}", 401, ErrorType.AUTH, upstream_code
        )

    if (
        status_code == 429
        or "RATE_EXCEEDED" in message
        or "RESOURCE_EXHAUSTED" in message
    ):
        return GoogleAdsAPIError(
            f"Rate limit exceeded: {message}",
            429,
            ErrorType.RATE_LIMIT,
            upstream_code,
            retry_after or RATE_LIMIT_RETRY_SECONDS,
        )

    if status_code == 404 or "NOT_FOUND" in message or "does not exist" in lowered:
        return GoogleAdsAPIError(
            f"Resource not found: {message}", 404, ErrorType.NOT_FOUND, upstream_code
        )

    if status_code == 400 or "INVALID" in message or "validation" in lowered:
        return GoogleAdsAPIError(message, 400, ErrorType.VALIDATION, upstream_code)

    full_message = f"{message} | Details: {details}" if details else message
    return GoogleAdsAPIError(
        full_message, status_code or 500, ErrorType.UPSTREAM, upstream_code
    )


def _json_body(resp: httpx.Response) -> Dict[str, Any]:
    """Decode a successful response; malformed bodies are UPSTREAM errors."""
    try:
        body = resp.json()
    except ValueError as e:
        raise normalize_error(f"Malformed response from Google Ads API: {e}", 502) from e
    if not isinstance(body, dict):
        raise normalize_error("Unexpected response shape from Google Ads API", 502)
    return body


def _error_from_response(resp: httpx.Response) -> GoogleAdsAPIError:
    try:
        body = resp.json()
    except ValueError:
        body = {}
    error = body.get("error", {}) if isinstance(body, dict) else {}
    if not isinstance(error, dict):
        # OAuth endpoint: {"error": "invalid_grant", "error_description": "..."}
        error = {
            "message": f"{error}: {body.get('error_description', '')}".rstrip(": "),
            "status": str(error),
        }
    message = error.get("message") or resp.reason_phrase or "Unknown error from Google Ads API"
    return normalize_error(
        message,
        resp.status_code,
        upstream_code=error.get("status") or str(resp.status_code),
        details=error.get("details"),
        retry_after=parse_retry_after(resp.headers.get("retry-after")),
    )


class GoogleAdsClient:
    """Async HTTP client for the Google Ads REST API."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        developer_token: str,
        refresh_token: str,
        login_customer_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_options: Optional[RetryOptions] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.developer_token = developer_token
        self.refresh_token = refresh_token
        self.login_customer_id = login_customer_id
        self.retry_options = retry_options or RetryOptions.from_settings()
        self.base_url = (
            f"{settings.google_ads_base_url}/{settings.google_ads_api_version}"
        )
        self._client = http_client
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0
        self._rate_limit = RateLimitInfo()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=settings.request_timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Auth ──

    async def _get_access_token(self) -> str:
        """Exchange the refresh token, reusing the access token until expiry."""
        if self._access_token and time.time() < self._token_expires_at:
            return self._access_token

        client = await self._get_client()
        resp = await client.post(
            settings.google_oauth_token_url,
            data={
                "grant_type": "refresh_token",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
            },
        )
        if resp.status_code >= 400:
            err = _error_from_response(resp)
            # Token endpoint rejects bad grants with 400
            if resp.status_code < 500 and err.error_type != ErrorType.RATE_LIMIT:
                raise GoogleAdsAPIError(
                    f"Authentication failed: {err.message}",
                    401,
                    ErrorType.AUTH,
                    err.upstream_code,
                )
            raise err

        payload = _json_body(resp)
        if not payload.get("access_token"):
            raise normalize_error("Token response missing access_token", 502)
        self._access_token = payload["access_token"]
        expires_in = float(payload.get("expires_in", 3600))
        self._token_expires_at = time.time() + expires_in - TOKEN_EXPIRY_MARGIN
        logger.info("Refreshed Google Ads access token")
        return self._access_token

    async def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {await self._get_access_token()}",
            "developer-token": self.developer_token,
        }
        if self.login_customer_id:
            headers["login-customer-id"] = self.login_customer_id.replace("-", "")
        return headers

    # ── Core Request Method ──

    async def _request(
        self, method: str, path: str, json: Dict[str, Any] | None = None
    ) -> Dict[str, Any]:
        """Make a request with retry + error normalization."""

        async def attempt() -> Dict[str, Any]:
            client = await self._get_client()
            started = time.monotonic()
            resp = await client.request(
                method, f"{self.base_url}/{path}", json=json, headers=await self._headers()
            )
            self._rate_limit.last_updated = datetime.now(timezone.utc).isoformat()
            logger.debug(
                f"{method} {path} -> {resp.status_code}",
                extra={
                    "endpoint": path,
                    "status_code": resp.status_code,
                    "duration_ms": round((time.monotonic() - started) * 1000, 1),
                },
            )
            if resp.status_code >= 400:
                raise _error_from_response(resp)
            return _json_body(resp)

        try:
            return await with_retry(attempt, self.retry_options)
        except httpx.TransportError as e:
            # Network failures that outlive the retries join the error taxonomy
            raise normalize_error(
                f"Network error: {str(e) or type(e).__name__}", 502
            ) from e

    # ── Queries ──

    async def query(
        self, customer_id: str, gaql: str, page_token: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """Run a GAQL search; returns ``(rows, next_page_token)``.

        Rows use GAQL snake_case field names (``customer.descriptive_name``).
        """
        body: Dict[str, Any] = {"query": gaql}
        if page_token:
            body["pageToken"] = page_token
        cid = customer_id.replace("-", "")
        result = await self._request("POST", f"customers/{cid}/googleAds:search", body)
        rows = snake_case_keys(result.get("results", []))
        return rows, result.get("nextPageToken") or None

    async def list_accessible_customers(self) -> List[str]:
        """Customer IDs the refresh token can access."""
        result = await self._request("GET", "customers:listAccessibleCustomers")
        # Resource names look like "customers/1234567890"
        return [
            name.split("/", 1)[1]
            for name in result.get("resourceNames", [])
            if "/" in name
        ]

    # ── Status ──

    async def healthcheck(self) -> Dict[str, Any]:
        """Test API connectivity by listing accessible customers."""
        try:
            accounts = await self.list_accessible_customers()
        except GoogleAdsAPIError as e:
            logger.error(f"Healthcheck failed: {e}")
            return {
                "status": "error",
                "version": CLIENT_VERSION,
                "message": e.message,
                "error_details": {
                    "type": e.error_type.value,
                    "code": e.upstream_code,
                    "message": e.message,
                },
            }
        return {
            "status": "ok",
            "version": CLIENT_VERSION,
            "message": f"Connected successfully. {len(accounts)} accessible accounts.",
        }

    def get_rate_limit_status(self) -> RateLimitInfo:
        return self._rate_limit.model_copy()


def create_client_from_request(
    user_credentials: Optional[UserCredentials] = None,
) -> GoogleAdsClient:
    """Merge request credentials with app credentials from settings.

    App-level credentials only ever come from the environment. The refresh
    token and login customer id come from the request, falling back to
    the environment.
    """
    if not settings.has_app_credentials:
        raise GoogleAdsAPIError(
            "Missing app-level credentials in environment. Set GOOGLE_ADS_CLIENT_ID, "
            "GOOGLE_ADS_CLIENT_SECRET, and GOOGLE_DEVELOPER_TOKEN in .env",
            401,
            ErrorType.AUTH,
            "MISSING_APP_CREDENTIALS",
        )

    creds = user_credentials or UserCredentials()
    refresh_token = creds.refresh_token or settings.google_ads_refresh_token
    if not refresh_token:
        raise GoogleAdsAPIError(
            "Missing refresh_token. Provide via user_credentials or "
            "GOOGLE_ADS_REFRESH_TOKEN in .env",
            401,
            ErrorType.AUTH,
            "MISSING_REFRESH_TOKEN",
        )

    return GoogleAdsClient(
        client_id=settings.google_ads_client_id,
        client_secret=settings.google_ads_client_secret,
        developer_token=settings.google_developer_token,
        refresh_token=refresh_token,
        login_customer_id=creds.login_customer_id or settings.google_login_customer_id,
    )
