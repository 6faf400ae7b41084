from datetime import date
from typing import List

from expense_tracker.models.expense import CamelModel


class DateRange(CamelModel):
    start_date: date
    end_date: date


class AnalyticsSummary(CamelModel):
    total_spending: float
    total_transactions: int
    average_daily: float
    date_range: DateRange


class CategoryBreakdown(CamelModel):
    category: str
    amount: float
    percentage: float


class MonthlyTotal(CamelModel):
    month: str
    amount: float


class PaymentMethodTotal(CamelModel):
    method: str
    amount: float


class AnalyticsReport(CamelModel):
    summary: AnalyticsSummary
    by_category: List[CategoryBreakdown]
    by_month: List[MonthlyTotal]
    by_payment_method: List[PaymentMethodTotal]
    top_categories: List[CategoryBreakdown]
