import logging
from datetime import date
from typing import Dict, Optional

from botocore.exceptions import ClientError
from fastapi import APIRouter, Depends, HTTPException, Query, status

from expense_tracker.core.errors import not_owner
from expense_tracker.core.security import Identity, get_current_identity
from expense_tracker.db.dynamo import ExpenseStore
from expense_tracker.dependencies import get_expense_store
from expense_tracker.models.expense import Expense, ExpenseCreate, ExpensePatch
from expense_tracker.utils.analyzer import sort_by_date, total_amount

router = APIRouter()
logger = logging.getLogger(__name__)


def _owned_expense(store: ExpenseStore, expense_id: str, user_id: str, action: str) -> Expense:
    expense = store.get(expense_id)
    if expense is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    if expense.user_id != user_id:
        logger.warning(f"User {user_id} tried to {action} expense {expense_id} owned by someone else")
        raise not_owner("expense", action)
    return expense


@router.post("", status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    identity: Identity = Depends(get_current_identity),
    store: ExpenseStore = Depends(get_expense_store),
) -> Dict:
    # No idempotency key: a resubmitted request creates a second record
    expense = Expense.from_create(identity.user_id, payload)
    try:
        store.put(expense)
    except ClientError:
        logger.error("Error adding expense", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add expense")

    logger.info(f"Added expense {expense.expense_id} for user {identity.user_id}")
    return {"message": "Expense added successfully", "expense": expense.to_item()}


@router.get("")
def list_expenses(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    category: Optional[str] = Query(None),
    identity: Identity = Depends(get_current_identity),
    store: ExpenseStore = Depends(get_expense_store),
) -> Dict:
    """
    The date range only applies when both startDate and endDate are given.
    Results are newest first.
    """
    try:
        expenses = store.query_by_user(identity.user_id, start_date, end_date)
    except ClientError:
        logger.error("Error getting expenses", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get expenses")

    if category:
        expenses = [e for e in expenses if e.category == category]
    expenses = sort_by_date(expenses, newest_first=True)

    logger.info(f"Retrieved {len(expenses)} expenses for user {identity.user_id}")
    return {
        "expenses": [e.to_item() for e in expenses],
        "count": len(expenses),
        "total": total_amount(expenses),
    }


@router.get("/{expense_id}")
def get_expense(
    expense_id: str,
    identity: Identity = Depends(get_current_identity),
    store: ExpenseStore = Depends(get_expense_store),
) -> Dict:
    try:
        expense = _owned_expense(store, expense_id, identity.user_id, "view")
    except ClientError:
        logger.error(f"Error getting expense {expense_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get expense")
    return {"expense": expense.to_item()}


@router.put("/{expense_id}")
def update_expense(
    expense_id: str,
    patch: ExpensePatch,
    identity: Identity = Depends(get_current_identity),
    store: ExpenseStore = Depends(get_expense_store),
) -> Dict:
    changes = patch.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        _owned_expense(store, expense_id, identity.user_id, "update")
        updated = store.update(expense_id, changes)
    except ClientError:
        logger.error(f"Error updating expense {expense_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update expense")

    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")

    logger.info(f"Updated expense {expense_id} for user {identity.user_id}")
    return {"message": "Expense updated successfully", "expense": updated.to_item()}


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: str,
    identity: Identity = Depends(get_current_identity),
    store: ExpenseStore = Depends(get_expense_store),
) -> Dict:
    try:
        _owned_expense(store, expense_id, identity.user_id, "delete")
        store.delete(expense_id)
    except ClientError:
        logger.error(f"Error deleting expense {expense_id}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete expense")

    logger.info(f"Deleted expense {expense_id} for user {identity.user_id}")
    return {"message": "Expense deleted successfully", "expenseId": expense_id}
