"""GADS Bridge — Report Builder.

Runs the full report flow:
  resolve dates → build GAQL → query each account → map to StandardizedRow → paginate
"""

import time
from typing import List, Optional

from gadsbridge.config import settings
from gadsbridge.connectors.google_ads.client import (
    GoogleAdsClient,
    create_client_from_request,
)
from gadsbridge.core.errors import GoogleAdsAPIError
from gadsbridge.core.logging import generate_request_id, get_logger
from gadsbridge.core.pagination import (
    PaginatedResponse,
    create_paginated_response,
    normalize_pagination_params,
)
from gadsbridge.models.request_models import (
    Filter,
    FilterOperator,
    GetReportRequest,
    resolve_date_range,
)
from gadsbridge.normalization.field_mapper import (
    ReportingLevel,
    StandardizedRow,
    build_field_selection,
    build_resource_name,
    map_rows_to_standardized,
)

logger = get_logger("reporting.report")

COMPARISON_OPERATORS = {
    FilterOperator.EQ: "=",
    FilterOperator.GT: ">",
    FilterOperator.LT: "<",
    FilterOperator.GTE: ">=",
    FilterOperator.LTE: "<=",
}


def _filter_clause(f: Filter) -> str:
    if f.op == FilterOperator.IN:
        return f"{f.field} IN ({', '.join(f.values)})"
    return f"{f.field} {COMPARISON_OPERATORS[f.op]} {f.values[0]}"


def build_report_query(
    level: ReportingLevel,
    start_date: str,
    end_date: str,
    filters: Optional[List[Filter]] = None,
    breakdowns: Optional[List[str]] = None,
    limit: int = 500,
) -> str:
    """Assemble the GAQL text for a report.

    ``segments.date`` is selected unless breakdowns are given without "date".
    Filter values are inserted verbatim; quoting string literals is up to
    the caller.
    """
    fields = build_field_selection(level)
    if breakdowns is None or "date" in breakdowns:
        fields.append("segments.date")

    conditions = [f"segments.date BETWEEN '{start_date}' AND '{end_date}'"]
    conditions += [_filter_clause(f) for f in filters or []]

    select_clause = ",\n  ".join(fields)
    return (
        f"SELECT\n  {select_clause}\n"
        f"FROM {build_resource_name(level)}\n"
        f"WHERE {' AND '.join(conditions)}\n"
        f"LIMIT {limit}"
    )


async def get_report(
    request: GetReportRequest, client: Optional[GoogleAdsClient] = None
) -> PaginatedResponse[StandardizedRow]:
    """Fetch a normalized performance report for one or more accounts.

    A failing account is logged and skipped so the others still report.
    The returned cursor is the page token of the last account that had more.
    """
    request_id = generate_request_id()
    owns_client = client is None
    client = client or create_client_from_request(request.user_credentials)
    started = time.monotonic()

    try:
        start_date, end_date = resolve_date_range(request.date_range, request.timezone)
        paging = request.paging
        limit, page_token = normalize_pagination_params(
            paging.limit if paging else None, paging.cursor if paging else None
        )

        account_ids = request.account_ids or await client.list_accessible_customers()
        query = build_report_query(
            request.level,
            start_date,
            end_date,
            filters=request.filters,
            breakdowns=request.breakdowns,
            limit=limit,
        )

        rows: List[StandardizedRow] = []
        next_cursor: Optional[str] = None
        for account_id in account_ids:
            try:
                results, next_page_token = await client.query(
                    account_id, query, page_token
                )
            except GoogleAdsAPIError as e:
                logger.error(
                    f"Error querying account {account_id}: {e}",
                    extra={"request_id": request_id, "account_id": account_id},
                )
                continue

            rows.extend(map_rows_to_standardized(results, settings.default_currency))
            if next_page_token:
                next_cursor = next_page_token

        logger.info(
            f"Report {request.level.value} {start_date}..{end_date}: "
            f"{len(rows)} rows from {len(account_ids)} accounts",
            extra={
                "request_id": request_id,
                "tool_name": "get_report",
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return create_paginated_response(rows, next_cursor)
    finally:
        if owns_client:
            await client.close()
