"""Shared fixtures: configured credentials and a stubbed Google Ads API."""

import json

import httpx
import pytest

from gadsbridge.config import settings
from gadsbridge.connectors.google_ads.client import GoogleAdsClient
from gadsbridge.core.retry import RetryOptions

TOKEN_URL = "https://oauth2.googleapis.com/token"


@pytest.fixture
def app_credentials(monkeypatch):
    """App-level credentials as if loaded from .env."""
    monkeypatch.setattr(settings, "google_ads_client_id", "client-id")
    monkeypatch.setattr(settings, "google_ads_client_secret", "client-secret")
    monkeypatch.setattr(settings, "google_developer_token", "dev-token")
    monkeypatch.setattr(settings, "google_ads_refresh_token", None)
    monkeypatch.setattr(settings, "google_login_customer_id", None)
    return settings


@pytest.fixture
def no_sleep(monkeypatch):
    """Record retry waits instead of sleeping."""
    waits = []

    async def fake_sleep(seconds):
        waits.append(seconds)

    monkeypatch.setattr("gadsbridge.core.retry.asyncio.sleep", fake_sleep)
    return waits


class FakeGoogleAds:
    """Minimal stand-in for the OAuth and Google Ads REST endpoints.

    ``search_responses`` maps a customer id to a list of responses served in
    order; each is either a JSON body or a ``(status, body)`` tuple.
    """

    def __init__(self):
        self.search_responses = {}
        self.accessible = ["customers/1111111111"]
        self.requests = []
        self.token_calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == TOKEN_URL:
            self.token_calls += 1
            return httpx.Response(
                200, json={"access_token": "ya29.test-token", "expires_in": 3599}
            )

        path = request.url.path
        if path.endswith("customers:listAccessibleCustomers"):
            return httpx.Response(200, json={"resourceNames": self.accessible})

        if path.endswith("googleAds:search"):
            customer_id = path.split("/customers/")[1].split("/")[0]
            queue = self.search_responses.get(customer_id, [])
            response = queue.pop(0) if queue else {"results": []}
            if isinstance(response, tuple):
                status, body = response
                return httpx.Response(status, json=body)
            return httpx.Response(200, json=response)

        return httpx.Response(404, json={"error": {"message": "NOT_FOUND"}})

    def search_bodies(self):
        return [
            json.loads(r.content)
            for r in self.requests
            if r.url.path.endswith("googleAds:search")
        ]


@pytest.fixture
def fake_api():
    return FakeGoogleAds()


@pytest.fixture
def ads_client(fake_api):
    """A GoogleAdsClient wired to the fake API with instant retries."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))
    return GoogleAdsClient(
        client_id="client-id",
        client_secret="client-secret",
        developer_token="dev-token",
        refresh_token="refresh-token",
        login_customer_id="123-456-7890",
        http_client=http_client,
        retry_options=RetryOptions(max_retries=2, initial_delay=0.01, max_delay=0.05),
    )


def rest_row(customer_id="1111111111", campaign_id="555", cost="120500000"):
    """A search result as the REST API returns it (camelCase keys)."""
    return {
        "customer": {
            "resourceName": f"customers/{customer_id}",
            "id": customer_id,
            "descriptiveName": "Test Account",
            "currencyCode": "USD",
        },
        "campaign": {"id": campaign_id, "name": "Test Campaign"},
        "segments": {"date": "2025-10-01"},
        "metrics": {
            "costMicros": cost,
            "impressions": "25000",
            "clicks": "430",
            "conversions": 12.0,
            "conversionsValue": 1640000000.0,
        },
    }


@pytest.fixture
def make_rest_row():
    return rest_row
