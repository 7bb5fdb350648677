"""GADS Bridge — Metrics Normalization.

Converts the raw ``metrics`` object of a Google Ads row into a fixed set of
base quantities and derived ratios. Every function here is pure and total:
absent, null or unparsable input is worth 0, and a zero divisor yields 0.
"""

import math
import numbers
import re
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from gadsbridge.core.metric_registry import display_decimals

MICROS_PER_UNIT = 1_000_000

# Leading numeric prefix of a string: "42abc" -> 42, "1.5e3x" -> 1500
_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class NormalizedMetrics(BaseModel):
    """Base quantities and zero-guarded derived ratios for one row."""

    model_config = ConfigDict(frozen=True)

    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    conversions: float = 0.0
    conversion_value: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    cpa: float = 0.0
    roas: float = 0.0


def _finite(value: Any) -> float:
    """Return ``value`` as a finite float, or 0 for NaN / infinity / overflow."""
    try:
        number = float(value)
    except (OverflowError, TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _coerce(value: Any, pattern: re.Pattern) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        match = pattern.match(value)
        if match is None:
            return 0.0
        return _finite(match.group(0))
    if isinstance(value, (numbers.Real, Decimal)):
        return _finite(value)
    return 0.0


def to_number(value: Any) -> float:
    """Coerce a count-like field to a float.

    Numbers pass through; strings are read by their leading real-number
    prefix so fractional conversions (``"0.5"``) survive. ``None``, booleans,
    other types and strings with no numeric prefix are 0.
    """
    return _coerce(value, _FLOAT_PREFIX)


def micros_to_decimal(value: Any) -> float:
    """Convert a micro-unit amount to whole currency units.

    Strings are parsed as integers (``"1500000.9"`` reads as 1500000).
    Negative amounts are converted as-is.
    """
    return _coerce(value, _INT_PREFIX) / MICROS_PER_UNIT


def calculate_ctr(clicks: float, impressions: float) -> float:
    """Click-through rate: clicks / impressions."""
    if impressions == 0:
        return 0.0
    return clicks / impressions


def calculate_cpc(spend: float, clicks: float) -> float:
    """Cost per click: spend / clicks."""
    if clicks == 0:
        return 0.0
    return spend / clicks


def calculate_cpm(spend: float, impressions: float) -> float:
    """Cost per mille: (spend * 1000) / impressions."""
    if impressions == 0:
        return 0.0
    return (spend * 1000) / impressions


def calculate_cpa(spend: float, conversions: float) -> float:
    """Cost per acquisition: spend / conversions."""
    if conversions == 0:
        return 0.0
    return spend / conversions


def calculate_roas(conversion_value: float, spend: float) -> float:
    """Return on ad spend: conversion_value / spend."""
    if spend == 0:
        return 0.0
    return conversion_value / spend


def normalize_metrics(raw: Optional[Mapping[str, Any]]) -> NormalizedMetrics:
    """Normalize a raw Google Ads ``metrics`` object.

    Monetary fields (``cost_micros``, ``conversions_value``) are converted
    from micros; counts are coerced with :func:`to_number`. Ratios are
    computed from the unrounded base values.
    """
    if not isinstance(raw, Mapping):
        raw = {}

    spend = micros_to_decimal(raw.get("cost_micros"))
    impressions = to_number(raw.get("impressions"))
    clicks = to_number(raw.get("clicks"))
    conversions = to_number(raw.get("conversions"))
    conversion_value = micros_to_decimal(raw.get("conversions_value"))

    return NormalizedMetrics(
        spend=spend,
        impressions=impressions,
        clicks=clicks,
        conversions=conversions,
        conversion_value=conversion_value,
        ctr=calculate_ctr(clicks, impressions),
        cpc=calculate_cpc(spend, clicks),
        cpm=calculate_cpm(spend, impressions),
        cpa=calculate_cpa(spend, conversions),
        roas=calculate_roas(conversion_value, spend),
    )


def round_metric(value: float, decimals: int = 2) -> float:
    """Round half away from zero: ``round_metric(0.005) == 0.01``."""
    multiplier = 10**decimals
    scaled = value * multiplier
    if not math.isfinite(scaled):
        return value
    rounded = math.floor(abs(scaled) + 0.5)
    if rounded == 0:
        return 0.0
    return math.copysign(rounded, scaled) / multiplier


def format_metrics(metrics: NormalizedMetrics) -> NormalizedMetrics:
    """Return a display copy rounded to each metric's registered precision."""
    return NormalizedMetrics(
        **{
            name: round_metric(value, display_decimals(name))
            for name, value in metrics.model_dump().items()
        }
    )
