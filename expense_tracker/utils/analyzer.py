from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List

from expense_tracker.models.analytics import (
    AnalyticsReport,
    AnalyticsSummary,
    CategoryBreakdown,
    DateRange,
    MonthlyTotal,
    PaymentMethodTotal,
)
from expense_tracker.models.expense import Expense

TOP_CATEGORY_LIMIT = 5

_CENT = Decimal("0.01")
_TENTH = Decimal("0.1")
_ZERO = Decimal("0")


def to_decimal(amount) -> Decimal:
    # str() first so 19.99 stays 19.99 instead of its binary expansion
    return Decimal(str(amount))


def money(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def percentage(part: Decimal, total: Decimal) -> float:
    if total == _ZERO:
        return 0.0
    return float((part * 100 / total).quantize(_TENTH, rounding=ROUND_HALF_UP))


def days_between(start_date: date, end_date: date) -> int:
    """Whole days in the range, never less than one."""
    return max((end_date - start_date).days, 1)


def compute_analytics(
    expenses: Iterable[Expense],
    start_date: date,
    end_date: date,
) -> AnalyticsReport:
    """
    Aggregate a user's expenses for the given date range.

    The caller has already narrowed `expenses` to one owner and to
    [start_date, end_date]. Sums are kept as exact Decimals and only rounded
    when the report is built.
    """
    total = _ZERO
    count = 0
    by_category: Dict[str, Decimal] = defaultdict(Decimal)
    by_month: Dict[str, Decimal] = defaultdict(Decimal)
    by_method: Dict[str, Decimal] = defaultdict(Decimal)

    for exp in expenses:
        amount = to_decimal(exp.amount)
        total += amount
        count += 1
        by_category[exp.category] += amount
        by_month[exp.date.isoformat()[:7]] += amount
        by_method[exp.payment_method or "cash"] += amount

    category_rows = [
        (amount, CategoryBreakdown(category=category, amount=money(amount), percentage=percentage(amount, total)))
        for category, amount in by_category.items()
    ]
    # sorted() is stable, so equal amounts keep first-seen order
    ranked = sorted(category_rows, key=lambda row: row[0], reverse=True)

    return AnalyticsReport(
        summary=AnalyticsSummary(
            total_spending=money(total),
            total_transactions=count,
            average_daily=money(total / days_between(start_date, end_date)),
            date_range=DateRange(start_date=start_date, end_date=end_date),
        ),
        by_category=[row for _, row in category_rows],
        by_month=[MonthlyTotal(month=month, amount=money(by_month[month])) for month in sorted(by_month)],
        by_payment_method=[PaymentMethodTotal(method=method, amount=money(amount)) for method, amount in by_method.items()],
        top_categories=[row for _, row in ranked[:TOP_CATEGORY_LIMIT]],
    )


def total_amount(expenses: Iterable[Expense]) -> float:
    return money(sum((to_decimal(exp.amount) for exp in expenses), _ZERO))


def sort_by_date(expenses: Iterable[Expense], newest_first: bool = False) -> List[Expense]:
    return sorted(expenses, key=lambda exp: exp.date, reverse=newest_first)
