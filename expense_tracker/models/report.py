from datetime import date
from typing import Literal

from expense_tracker.models.expense import CamelModel

ReportFormat = Literal["csv", "json", "txt", "pdf"]


class ReportRequest(CamelModel):
    start_date: date
    end_date: date
    format: ReportFormat = "csv"
