"""
Analytics Models

Output shapes of the aggregation engine. All amounts are Decimal and
serialize to JSON numbers.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finance_tracker.models.transaction import Money


class _AnalyticsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Totals(_AnalyticsModel):
    """
    Overall totals.

    INVARIANT: net_balance == total_income - total_expenses
    """
    total_expenses: Money = Decimal("0")
    total_income: Money = Decimal("0")
    net_balance: Money = Decimal("0")


class MonthlyTrend(_AnalyticsModel):
    """Expenses and income of one calendar month."""
    month: str = Field(..., description="Label such as 'Jan 2026'")
    month_start: date = Field(..., description="First day of the month")
    expenses: Money = Decimal("0")
    income: Money = Decimal("0")


class AnalyticsSummary(_AnalyticsModel):
    """Everything the dashboard shows, computed in one pass."""
    total_expenses: Money = Decimal("0")
    total_income: Money = Decimal("0")
    net_balance: Money = Decimal("0")
    category_breakdown: dict[str, Money] = Field(default_factory=dict)
    payment_method_breakdown: dict[str, Money] = Field(default_factory=dict)
    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)
    transaction_count: int = Field(default=0, ge=0)
