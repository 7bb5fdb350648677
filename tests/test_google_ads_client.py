"""Tests for the Google Ads REST client.

HTTP is stubbed with httpx.MockTransport (see conftest.FakeGoogleAds).

Run with: pytest tests/test_google_ads_client.py -v
"""

import httpx
import pytest

from gadsbridge.connectors.google_ads.client import (
    GoogleAdsClient,
    create_client_from_request,
    normalize_error,
    snake_case_keys,
    to_snake_case,
)
from gadsbridge.core.errors import ErrorType, GoogleAdsAPIError
from gadsbridge.core.retry import RetryOptions
from gadsbridge.models.request_models import UserCredentials


class TestSnakeCase:
    """Tests for REST → GAQL key conversion."""

    def test_to_snake_case(self):
        assert to_snake_case("descriptiveName") == "descriptive_name"
        assert to_snake_case("adGroupAd") == "ad_group_ad"
        assert to_snake_case("conversionsValue") == "conversions_value"
        assert to_snake_case("id") == "id"

    def test_nested_keys(self):
        converted = snake_case_keys(
            [{"adGroupAd": {"ad": {"id": "1", "finalUrls": ["https://x"]}}}]
        )
        assert converted == [{"ad_group_ad": {"ad": {"id": "1", "final_urls": ["https://x"]}}}]


class TestNormalizeError:
    """Tests for upstream error classification."""

    def test_auth(self):
        err = normalize_error("Request had invalid authentication credentials.", 401)
        assert err.error_type == ErrorType.AUTH
        assert err.status_code == 401

    def test_rate_limit(self):
        err = normalize_error("RESOURCE_EXHAUSTED: too many requests", 429)
        assert err.error_type == ErrorType.RATE_LIMIT
        assert err.retry_after_seconds == 60

    def test_rate_limit_uses_server_retry_after(self):
        err = normalize_error("RATE_EXCEEDED", 429, retry_after=12)
        assert err.retry_after_seconds == 12

    def test_not_found(self):
        err = normalize_error("Customer 123 does not exist", 404)
        assert err.error_type == ErrorType.NOT_FOUND
        assert err.status_code == 404

    def test_validation(self):
        err = normalize_error("Request contains an invalid argument.", 400, "INVALID_ARGUMENT")
        assert err.error_type == ErrorType.VALIDATION
        assert err.upstream_code == "INVALID_ARGUMENT"

    def test_upstream_keeps_details(self):
        err = normalize_error("Internal error", 503, details=[{"reason": "backend"}])
        assert err.error_type == ErrorType.UPSTREAM
        assert err.status_code == 503
        assert "backend" in err.message


class TestQuery:
    """Tests for GAQL search."""

    @pytest.mark.asyncio
    async def test_returns_snake_case_rows_and_token(self, ads_client, fake_api, make_rest_row):
        fake_api.search_responses["1111111111"] = [
            {"results": [make_rest_row()], "nextPageToken": "page-2"}
        ]
        rows, token = await ads_client.query("111-111-1111", "SELECT customer.id FROM customer")

        assert token == "page-2"
        assert rows[0]["customer"]["descriptive_name"] == "Test Account"
        assert rows[0]["metrics"]["cost_micros"] == "120500000"

    @pytest.mark.asyncio
    async def test_sends_auth_headers_and_page_token(self, ads_client, fake_api):
        await ads_client.query("1111111111", "SELECT customer.id FROM customer", "tok")

        search = [r for r in fake_api.requests if r.url.path.endswith("googleAds:search")][0]
        assert search.headers["authorization"] == "Bearer ya29.test-token"
        assert search.headers["developer-token"] == "dev-token"
        assert search.headers["login-customer-id"] == "1234567890"
        assert fake_api.search_bodies()[0] == {
            "query": "SELECT customer.id FROM customer",
            "pageToken": "tok",
        }

    @pytest.mark.asyncio
    async def test_access_token_is_cached(self, ads_client, fake_api):
        await ads_client.query("1111111111", "SELECT customer.id FROM customer")
        await ads_client.query("1111111111", "SELECT customer.id FROM customer")
        assert fake_api.token_calls == 1

    @pytest.mark.asyncio
    async def test_empty_response(self, ads_client):
        rows, token = await ads_client.query("1111111111", "SELECT customer.id FROM customer")
        assert rows == []
        assert token is None

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, ads_client, fake_api, no_sleep, make_rest_row):
        fake_api.search_responses["1111111111"] = [
            (503, {"error": {"code": 503, "message": "Backend unavailable", "status": "UNAVAILABLE"}}),
            {"results": [make_rest_row()]},
        ]
        rows, _ = await ads_client.query("1111111111", "SELECT customer.id FROM customer")
        assert len(rows) == 1
        assert len(no_sleep) == 1

    @pytest.mark.asyncio
    async def test_auth_error_is_not_retried(self, ads_client, fake_api, no_sleep):
        fake_api.search_responses["1111111111"] = [
            (401, {"error": {"code": 401, "message": "Request had invalid authentication credentials.", "status": "UNAUTHENTICATED"}}),
        ]
        with pytest.raises(GoogleAdsAPIError) as exc_info:
            await ads_client.query("1111111111", "SELECT customer.id FROM customer")
        assert exc_info.value.error_type == ErrorType.AUTH
        assert exc_info.value.upstream_code == "UNAUTHENTICATED"
        assert no_sleep == []

    @pytest.mark.asyncio
    async def test_updates_rate_limit_timestamp(self, ads_client):
        assert ads_client.get_rate_limit_status().last_updated is None
        await ads_client.query("1111111111", "SELECT customer.id FROM customer")
        status = ads_client.get_rate_limit_status()
        assert status.last_updated is not None
        assert status.quota_remaining is None

    @pytest.mark.asyncio
    async def test_non_json_body_is_upstream_error(self, fake_api, no_sleep):
        def handler(request):
            if request.url.path.endswith("googleAds:search"):
                return httpx.Response(200, text="<html>Service Unavailable</html>")
            return fake_api.handler(request)

        client = GoogleAdsClient(
            "id",
            "secret",
            "dev",
            "token",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            retry_options=RetryOptions(max_retries=1),
        )
        with pytest.raises(GoogleAdsAPIError) as exc_info:
            await client.query("1111111111", "SELECT customer.id FROM customer")
        assert exc_info.value.error_type == ErrorType.UPSTREAM
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_network_failure_is_upstream_error(self, no_sleep):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = GoogleAdsClient(
            "id",
            "secret",
            "dev",
            "token",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            retry_options=RetryOptions(max_retries=2),
        )
        with pytest.raises(GoogleAdsAPIError) as exc_info:
            await client.query("1111111111", "SELECT customer.id FROM customer")
        assert exc_info.value.error_type == ErrorType.UPSTREAM
        assert exc_info.value.status_code == 502
        assert "connection refused" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert len(no_sleep) == 2


class TestOAuth:
    """Tests for refresh-token exchange failures."""

    @pytest.mark.asyncio
    async def test_invalid_grant_is_auth_error(self, no_sleep):
        def handler(request):
            return httpx.Response(
                400, json={"error": "invalid_grant", "error_description": "Token has been expired or revoked."}
            )

        client = GoogleAdsClient(
            "id",
            "secret",
            "dev",
            "stale-token",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            retry_options=RetryOptions(max_retries=1),
        )
        with pytest.raises(GoogleAdsAPIError) as exc_info:
            await client.list_accessible_customers()
        assert exc_info.value.error_type == ErrorType.AUTH
        assert "revoked" in exc_info.value.message
        assert no_sleep == []

    @pytest.mark.asyncio
    async def test_token_payload_without_access_token(self, no_sleep):
        def handler(request):
            return httpx.Response(200, json={"token_type": "Bearer"})

        client = GoogleAdsClient(
            "id",
            "secret",
            "dev",
            "token",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            retry_options=RetryOptions(max_retries=0),
        )
        with pytest.raises(GoogleAdsAPIError) as exc_info:
            await client.list_accessible_customers()
        assert exc_info.value.error_type == ErrorType.UPSTREAM
        assert "access_token" in exc_info.value.message


class TestAccountsAndHealth:
    """Tests for account listing and healthcheck."""

    @pytest.mark.asyncio
    async def test_list_accessible_customers(self, ads_client, fake_api):
        fake_api.accessible = ["customers/1111111111", "customers/2222222222"]
        assert await ads_client.list_accessible_customers() == ["1111111111", "2222222222"]

    @pytest.mark.asyncio
    async def test_healthcheck_ok(self, ads_client):
        result = await ads_client.healthcheck()
        assert result["status"] == "ok"
        assert "1 accessible accounts" in result["message"]

    @pytest.mark.asyncio
    async def test_healthcheck_error(self, no_sleep):
        def handler(request):
            return httpx.Response(403, json={"error": {"code": 403, "message": "The caller does not have permission", "status": "PERMISSION_DENIED"}})

        client = GoogleAdsClient(
            "id",
            "secret",
            "dev",
            "token",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        result = await client.healthcheck()
        assert result["status"] == "error"
        assert result["error_details"]["type"] == "AUTH"

    @pytest.mark.asyncio
    async def test_healthcheck_unreachable(self, no_sleep):
        def handler(request):
            raise httpx.ConnectError("dns failure", request=request)

        client = GoogleAdsClient(
            "id",
            "secret",
            "dev",
            "token",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        result = await client.healthcheck()
        assert result["status"] == "error"
        assert result["error_details"]["type"] == "UPSTREAM"
        assert "dns failure" in result["message"]


class TestCreateClientFromRequest:
    """Tests for credential merging."""

    def test_missing_app_credentials(self, app_credentials, monkeypatch):
        monkeypatch.setattr(app_credentials, "google_developer_token", "")
        with pytest.raises(GoogleAdsAPIError) as exc_info:
            create_client_from_request(UserCredentials(refresh_token="rt"))
        assert exc_info.value.upstream_code == "MISSING_APP_CREDENTIALS"
        assert exc_info.value.status_code == 401

    def test_missing_refresh_token(self, app_credentials):
        with pytest.raises(GoogleAdsAPIError) as exc_info:
            create_client_from_request(None)
        assert exc_info.value.upstream_code == "MISSING_REFRESH_TOKEN"

    def test_request_credentials_win(self, app_credentials, monkeypatch):
        monkeypatch.setattr(app_credentials, "google_ads_refresh_token", "env-token")
        client = create_client_from_request(
            UserCredentials(refresh_token="user-token", login_customer_id="999")
        )
        assert client.refresh_token == "user-token"
        assert client.login_customer_id == "999"
        assert client.developer_token == "dev-token"

    def test_falls_back_to_environment(self, app_credentials, monkeypatch):
        monkeypatch.setattr(app_credentials, "google_ads_refresh_token", "env-token")
        monkeypatch.setattr(app_credentials, "google_login_customer_id", "888")
        client = create_client_from_request(UserCredentials())
        assert client.refresh_token == "env-token"
        assert client.login_customer_id == "888"
