"""GADS Bridge — Google Ads Row → Standardized Row Mapper.

Maps rows returned by a GAQL search onto the canonical, platform-tagged
reporting schema shared with other ad platforms, and derives the GAQL field
selection and resource for a reporting level.
"""

from enum import Enum
from typing import Any, Iterable, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from gadsbridge.normalization.metrics import format_metrics, normalize_metrics

PLATFORM = "google_ads"


class ReportingLevel(str, Enum):
    """Aggregation depth of a report."""

    ACCOUNT = "ACCOUNT"
    CAMPAIGN = "CAMPAIGN"
    AD = "AD"


class StandardizedRow(BaseModel):
    """Canonical reporting row.

    Metric values are display-rounded (see ``format_metrics``). Google Ads
    has no ad set level, so ``adset_id``/``adset_name`` are always None and
    exist only for schema parity with platforms that do.
    """

    model_config = ConfigDict(frozen=True)

    platform: Literal["google_ads"] = PLATFORM
    account_id: str = ""
    account_name: str = ""
    date: Optional[str] = None
    campaign_id: Optional[str] = None
    campaign_name: Optional[str] = None
    adset_id: None = None
    adset_name: None = None
    ad_id: Optional[str] = None
    ad_name: Optional[str] = None
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    conversions: float = 0.0
    conversion_value: float = 0.0
    currency: str = ""
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    cpa: float = 0.0
    roas: float = 0.0
    attribution_model: Optional[str] = None
    attribution_window: Optional[str] = None


# Always requested, in this order
ACCOUNT_FIELDS = [
    "customer.id",
    "customer.descriptive_name",
    "customer.currency_code",
]
CAMPAIGN_FIELDS = ["campaign.id", "campaign.name"]
AD_FIELDS = ["ad_group_ad.ad.id", "ad_group_ad.ad.name"]
METRIC_FIELDS = [
    "metrics.cost_micros",
    "metrics.impressions",
    "metrics.clicks",
    "metrics.conversions",
    "metrics.conversions_value",
]

RESOURCES = {
    ReportingLevel.ACCOUNT: "customer",
    ReportingLevel.CAMPAIGN: "campaign",
    ReportingLevel.AD: "ad_group_ad",
}


def _dig(row: Any, *path: str) -> Any:
    """Walk nested mappings, returning None as soon as a step is missing."""
    node = row
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def _as_text(value: Any) -> Optional[str]:
    """Stringify an identifier or name; None and "" both mean absent."""
    if value is None:
        return None
    text = str(value)
    return text or None


def map_to_standardized_row(
    row: Optional[Mapping[str, Any]], default_currency: str = "USD"
) -> StandardizedRow:
    """Map one Google Ads row onto the canonical schema.

    Never raises on partial input: missing account fields become "",
    missing campaign/ad/date fields become None, missing metrics are 0.
    """
    metrics = format_metrics(normalize_metrics(_dig(row, "metrics")))

    # TODO: read attribution model/window from customer.conversion_tracking_setting
    return StandardizedRow(
        account_id=_as_text(_dig(row, "customer", "id")) or "",
        account_name=_as_text(_dig(row, "customer", "descriptive_name")) or "",
        date=_as_text(_dig(row, "segments", "date")),
        campaign_id=_as_text(_dig(row, "campaign", "id")),
        campaign_name=_as_text(_dig(row, "campaign", "name")),
        ad_id=_as_text(_dig(row, "ad_group_ad", "ad", "id")),
        ad_name=_as_text(_dig(row, "ad_group_ad", "ad", "name")),
        currency=_as_text(_dig(row, "customer", "currency_code")) or default_currency,
        **metrics.model_dump(),
    )


def map_rows_to_standardized(
    rows: Iterable[Mapping[str, Any]], default_currency: str = "USD"
) -> List[StandardizedRow]:
    """Map rows independently, preserving order."""
    return [map_to_standardized_row(row, default_currency) for row in rows]


def _level(level: Any) -> Optional[ReportingLevel]:
    try:
        return ReportingLevel(level)
    except (TypeError, ValueError):
        return None


def build_field_selection(level: Any) -> List[str]:
    """GAQL SELECT fields for a reporting level.

    AD ⊇ CAMPAIGN ⊇ ACCOUNT; metric fields are the same at every level.
    Unknown levels get the account selection.
    """
    fields = list(ACCOUNT_FIELDS)
    resolved = _level(level)
    if resolved in (ReportingLevel.CAMPAIGN, ReportingLevel.AD):
        fields += CAMPAIGN_FIELDS
    if resolved == ReportingLevel.AD:
        fields += AD_FIELDS
    return fields + METRIC_FIELDS


def build_resource_name(level: Any) -> str:
    """GAQL FROM resource for a reporting level (``customer`` if unknown)."""
    return RESOURCES.get(_level(level), "customer")
