"""GADS Bridge — Request Models (validated at the API boundary)."""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from gadsbridge.config import settings
from gadsbridge.normalization.field_mapper import ReportingLevel

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class DateRangePreset(str, Enum):
    LAST_7_DAYS = "LAST_7_DAYS"
    LAST_30_DAYS = "LAST_30_DAYS"
    MTD = "MTD"
    YTD = "YTD"


class MetricField(str, Enum):
    SPEND = "spend"
    IMPRESSIONS = "impressions"
    CLICKS = "clicks"
    CONVERSIONS = "conversions"
    CONVERSION_VALUE = "conversion_value"
    CTR = "ctr"
    CPC = "cpc"
    CPM = "cpm"
    CPA = "cpa"
    ROAS = "roas"


class FilterOperator(str, Enum):
    IN = "IN"
    EQ = "EQ"
    GT = "GT"
    LT = "LT"
    GTE = "GTE"
    LTE = "LTE"


class DateRange(BaseModel):
    """Either a preset or an explicit ``start_date``/``end_date`` pair."""

    preset: Optional[DateRangePreset] = None
    start_date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    end_date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)

    @model_validator(mode="after")
    def _preset_or_dates(self) -> "DateRange":
        if not self.preset and not (self.start_date and self.end_date):
            raise ValueError(
                "Either preset or both start_date and end_date must be provided"
            )
        return self


class Filter(BaseModel):
    field: str
    op: FilterOperator
    values: List[str] = Field(min_length=1)


class Paging(BaseModel):
    limit: int = Field(default=500, ge=1, le=10000)
    cursor: Optional[str] = None


class UserCredentials(BaseModel):
    """Per-user credentials. App credentials are never accepted per request."""

    refresh_token: Optional[str] = None
    login_customer_id: Optional[str] = None


class ClientRequest(BaseModel):
    """Body for endpoints that only need an authenticated client."""

    user_credentials: Optional[UserCredentials] = None


class GetReportRequest(ClientRequest):
    """Body for ``/google-ads/report``.

    ``fields`` is validated and accepted for compatibility with existing
    callers, but does not narrow the output: every row carries the full
    metric set, since the derived ratios need all base metrics.
    """

    account_ids: Optional[List[str]] = None
    date_range: DateRange
    level: ReportingLevel
    fields: Optional[List[MetricField]] = None
    filters: Optional[List[Filter]] = None
    breakdowns: Optional[List[str]] = None
    timezone: str = Field(default_factory=lambda: settings.default_timezone)
    paging: Optional[Paging] = None

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value


def resolve_date_range(
    date_range: DateRange,
    timezone: Optional[str] = None,
    today: Optional[date] = None,
) -> tuple[str, str]:
    """Resolve a DateRange into ``(start_date, end_date)`` strings.

    Presets end yesterday, in the given timezone.
    """
    if date_range.start_date and date_range.end_date:
        return date_range.start_date, date_range.end_date

    if today is None:
        tz = ZoneInfo(timezone or settings.default_timezone)
        today = datetime.now(tz).date()
    yesterday = today - timedelta(days=1)

    if date_range.preset == DateRangePreset.LAST_7_DAYS:
        start = today - timedelta(days=7)
    elif date_range.preset == DateRangePreset.LAST_30_DAYS:
        start = today - timedelta(days=30)
    elif date_range.preset == DateRangePreset.MTD:
        start = today.replace(day=1)
    elif date_range.preset == DateRangePreset.YTD:
        start = today.replace(month=1, day=1)
    else:
        raise ValueError("Invalid date range configuration")

    return start.strftime("%Y-%m-%d"), yesterday.strftime("%Y-%m-%d")
