"""Aggregation engine package."""

from finance_tracker.analytics.engine import (
    build_summary,
    calculate_totals,
    category_breakdown,
    filter_by_date_range,
    monthly_trends,
    payment_method_breakdown,
)

__all__ = [
    "build_summary",
    "calculate_totals",
    "category_breakdown",
    "filter_by_date_range",
    "monthly_trends",
    "payment_method_breakdown",
]
