"""GADS Bridge — Google Ads Report Routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException

from gadsbridge.connectors.google_ads.client import (
    CLIENT_VERSION,
    create_client_from_request,
)
from gadsbridge.core.errors import GoogleAdsAPIError
from gadsbridge.core.logging import get_logger
from gadsbridge.core.metric_registry import ALL_METRICS
from gadsbridge.core.pagination import PaginatedResponse
from gadsbridge.models.request_models import ClientRequest, GetReportRequest
from gadsbridge.normalization.field_mapper import StandardizedRow
from gadsbridge.reporting.report import get_report

logger = get_logger("api.report")

router = APIRouter(prefix="/google-ads", tags=["Google Ads"])

SOURCE = {"service": "gads-bridge", "version": CLIENT_VERSION}


def _http_error(e: GoogleAdsAPIError) -> HTTPException:
    return HTTPException(
        status_code=e.status_code, detail=e.to_response().model_dump(mode="json")
    )


@router.post("/report", response_model=PaginatedResponse[StandardizedRow])
async def report(request: GetReportRequest):
    """Normalized performance report at ACCOUNT, CAMPAIGN or AD level."""
    try:
        return await get_report(request)
    except GoogleAdsAPIError as e:
        logger.error(f"Report failed: {e}", extra={"tool_name": "get_report"})
        raise _http_error(e)


@router.post("/healthcheck")
async def healthcheck(request: ClientRequest):
    """Check API connectivity with the supplied (or configured) credentials."""
    try:
        client = create_client_from_request(request.user_credentials)
    except GoogleAdsAPIError as e:
        raise _http_error(e)
    try:
        result = await client.healthcheck()
    finally:
        await client.close()
    return {
        **result,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": SOURCE,
    }


@router.post("/rate-limit-status")
async def rate_limit_status(request: ClientRequest):
    """Current quota information, when Google Ads exposes it."""
    try:
        client = create_client_from_request(request.user_credentials)
    except GoogleAdsAPIError as e:
        raise _http_error(e)
    return {
        **client.get_rate_limit_status().model_dump(),
        "note": (
            "Google Ads API does not consistently expose rate limit headers. "
            "Null quota fields mean the API has not provided this data. "
            "Rate limiting is enforced server-side."
        ),
        "source": SOURCE,
    }


@router.get("/metrics")
async def list_metrics():
    """Registered metrics with their type, unit and display precision."""
    return {"metrics": [m.to_dict() for m in ALL_METRICS.values()]}
