import calendar
import logging
from datetime import date, datetime, timezone
from typing import Dict, Optional

from botocore.exceptions import ClientError
from fastapi import APIRouter, Depends, HTTPException, Query

from expense_tracker.core.config import Settings, get_settings
from expense_tracker.core.security import Identity, get_current_identity
from expense_tracker.db.dynamo import ExpenseStore
from expense_tracker.dependencies import get_expense_store
from expense_tracker.utils.analyzer import compute_analytics

router = APIRouter()
logger = logging.getLogger(__name__)


def months_before(day: date, months: int) -> date:
    """Same day-of-month `months` earlier, clamped to the end of shorter months."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


@router.get("")
def get_analytics(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    identity: Identity = Depends(get_current_identity),
    store: ExpenseStore = Depends(get_expense_store),
    settings: Settings = Depends(get_settings),
) -> Dict:
    """
    Spending analytics for a date range. Defaults to the last six months
    ending today (UTC).
    """
    end_date = end_date or datetime.now(timezone.utc).date()
    start_date = start_date or months_before(end_date, settings.ANALYTICS_DEFAULT_MONTHS)
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="startDate must not be after endDate")

    try:
        expenses = store.query_by_user(identity.user_id, start_date, end_date)
    except ClientError:
        logger.error("Error getting analytics", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get analytics")

    report = compute_analytics(expenses, start_date, end_date)
    logger.info(f"Generated analytics for user {identity.user_id} ({len(expenses)} expenses)")
    return report.model_dump(mode="json", by_alias=True)
