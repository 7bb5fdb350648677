"""GADS Bridge — Unified Metric Registry.

Defines the canonical set of reporting metrics, their classification and
their display precision. The normalizer rounds each metric to the number of
decimals registered here, so adding a metric means registering it first.
"""

from enum import Enum
from typing import Dict


class MetricType(str, Enum):
    """How a metric is categorised."""

    VOLUME = "volume"  # Raw counts: impressions, clicks, conversions
    COST = "cost"  # Monetary: spend
    REVENUE = "revenue"  # Income: conversion_value
    DERIVED = "derived"  # Computed ratios: ctr, cpc, cpm, cpa, roas


class MetricDefinition:
    """Describes a single metric."""

    def __init__(
        self,
        name: str,
        metric_type: MetricType,
        unit: str = "",
        decimals: int = 2,
        description: str = "",
    ):
        self.name = name
        self.metric_type = metric_type
        self.unit = unit
        self.decimals = decimals
        self.description = description

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "metric_type": self.metric_type.value,
            "unit": self.unit,
            "decimals": self.decimals,
            "description": self.description,
        }

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.metric_type.value})>"


# ─────────────────────────────────────────────
# GOOGLE ADS METRICS — Base quantities
# ─────────────────────────────────────────────

GOOGLE_ADS_METRICS: Dict[str, MetricDefinition] = {
    "spend": MetricDefinition(
        "spend", MetricType.COST, "currency", 2, "Cost converted from micros"
    ),
    "impressions": MetricDefinition(
        "impressions", MetricType.VOLUME, "count", 0, "Times an ad was shown"
    ),
    "clicks": MetricDefinition("clicks", MetricType.VOLUME, "count", 0, "Clicks"),
    # Attribution can credit fractional conversions
    "conversions": MetricDefinition(
        "conversions", MetricType.VOLUME, "count", 2, "Attributed conversions"
    ),
    "conversion_value": MetricDefinition(
        "conversion_value",
        MetricType.REVENUE,
        "currency",
        2,
        "Conversion value converted from micros",
    ),
}


# ─────────────────────────────────────────────
# DERIVED METRICS — Computed by the normalizer
# ─────────────────────────────────────────────

DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "ctr": MetricDefinition(
        "ctr", MetricType.DERIVED, "ratio", 4, "Click-through rate: clicks / impressions"
    ),
    "cpc": MetricDefinition(
        "cpc", MetricType.DERIVED, "currency", 2, "Cost per click: spend / clicks"
    ),
    "cpm": MetricDefinition(
        "cpm",
        MetricType.DERIVED,
        "currency",
        2,
        "Cost per 1000 impressions: spend * 1000 / impressions",
    ),
    "cpa": MetricDefinition(
        "cpa",
        MetricType.DERIVED,
        "currency",
        2,
        "Cost per acquisition: spend / conversions",
    ),
    "roas": MetricDefinition(
        "roas",
        MetricType.DERIVED,
        "ratio",
        2,
        "Return on ad spend: conversion_value / spend",
    ),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

ALL_METRICS = {**GOOGLE_ADS_METRICS, **DERIVED_METRICS}


def get_metric(name: str) -> MetricDefinition | None:
    """Look up a metric by name."""
    return ALL_METRICS.get(name)


def metrics_by_type(metric_type: MetricType) -> list[MetricDefinition]:
    """Return all metrics of a given type."""
    return [m for m in ALL_METRICS.values() if m.metric_type == metric_type]


def display_decimals(name: str) -> int:
    """Display precision for a metric; unregistered metrics use 2."""
    metric = ALL_METRICS.get(name)
    return metric.decimals if metric else 2
