"""
Aggregation Engine

DESIGN DECISION: Analytics are PURE functions over an in-memory
sequence of transactions. No I/O, no hidden state: the same input
always gives the same output, and concurrent calls cannot interfere.

Rules shared by every function here:
- Sums use Decimal; float never enters the arithmetic
- Debit = expense, credit = income
- Category and payment-method breakdowns only count debits
- Keys are grouped as-is: the engine does not validate categories or
  payment methods, so an unrecognized value becomes its own bucket
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from finance_tracker.models.analytics import AnalyticsSummary, MonthlyTrend, Totals
from finance_tracker.models.transaction import TransactionType


ZERO = Decimal("0")
MONTH_LABEL_FORMAT = "%b %Y"


def _key(value: Any) -> str:
    """Group key for an enum member or a raw value."""
    return str(getattr(value, "value", value))


def _is_debit(txn: Any) -> bool:
    return _key(txn.transaction_type) == TransactionType.DEBIT.value


def _is_credit(txn: Any) -> bool:
    return _key(txn.transaction_type) == TransactionType.CREDIT.value


def _amount(txn: Any) -> Decimal:
    amount = txn.amount
    if isinstance(amount, Decimal):
        return amount
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(amount))


def _sum(txns: Iterable[Any]) -> Decimal:
    return sum((_amount(t) for t in txns), ZERO)


def calculate_totals(transactions: Iterable[Any]) -> Totals:
    """
    Total expenses, total income and the net balance.

    Empty input gives all zeros.
    """
    txns = list(transactions)
    total_expenses = _sum(t for t in txns if _is_debit(t))
    total_income = _sum(t for t in txns if _is_credit(t))
    return Totals(
        total_expenses=total_expenses,
        total_income=total_income,
        net_balance=total_income - total_expenses,
    )


def _debit_breakdown(transactions: Iterable[Any], attribute: str) -> dict[str, Decimal]:
    groups: dict[str, Decimal] = {}
    for txn in transactions:
        if not _is_debit(txn):
            continue
        key = _key(getattr(txn, attribute))
        groups[key] = groups.get(key, ZERO) + _amount(txn)
    return groups


def category_breakdown(transactions: Iterable[Any]) -> dict[str, Decimal]:
    """Summed debit amount per category name. Income is not categorized here."""
    return _debit_breakdown(transactions, "category")


def payment_method_breakdown(transactions: Iterable[Any]) -> dict[str, Decimal]:
    """Summed debit amount per payment method."""
    return _debit_breakdown(transactions, "payment_method")


def filter_by_date_range(
    transactions: Iterable[Any],
    start: date,
    end: date,
) -> list[Any]:
    """Transactions whose date falls in [start, end], both ends inclusive."""
    return [t for t in transactions if start <= t.date <= end]


def month_start(value: date) -> date:
    return value.replace(day=1)


def shift_month(value: date, months: int) -> date:
    """First day of the month `months` away from value's month."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_end(value: date) -> date:
    """Last day of value's month."""
    return date.fromordinal(shift_month(value, 1).toordinal() - 1)


def monthly_trends(
    transactions: Iterable[Any],
    month_count: int = 6,
    today: Optional[date] = None,
) -> list[MonthlyTrend]:
    """
    Expenses and income per calendar month.

    Returns exactly `month_count` entries anchored to the current
    month: oldest first, current month last. Buckets are calendar
    months, not rolling 30-day windows. A month with no transactions
    yields zero expenses and zero income.

    Args:
        transactions: Any transaction-like objects.
        month_count: Number of buckets, at least 1.
        today: Anchor date; defaults to date.today().

    Raises:
        ValueError: If month_count < 1.
    """
    if month_count < 1:
        raise ValueError("month_count must be at least 1")

    txns = list(transactions)
    anchor = month_start(today or date.today())

    trends = []
    for offset in range(month_count - 1, -1, -1):
        start = shift_month(anchor, -offset)
        in_month = filter_by_date_range(txns, start, month_end(start))
        trends.append(MonthlyTrend(
            month=start.strftime(MONTH_LABEL_FORMAT),
            month_start=start,
            expenses=_sum(t for t in in_month if _is_debit(t)),
            income=_sum(t for t in in_month if _is_credit(t)),
        ))

    return trends


def build_summary(
    transactions: Iterable[Any],
    month_count: int = 6,
    today: Optional[date] = None,
) -> AnalyticsSummary:
    """Every analytics view over one transaction set."""
    txns = list(transactions)
    totals = calculate_totals(txns)
    return AnalyticsSummary(
        total_expenses=totals.total_expenses,
        total_income=totals.total_income,
        net_balance=totals.net_balance,
        category_breakdown=category_breakdown(txns),
        payment_method_breakdown=payment_method_breakdown(txns),
        monthly_trends=monthly_trends(txns, month_count=month_count, today=today),
        transaction_count=len(txns),
    )
