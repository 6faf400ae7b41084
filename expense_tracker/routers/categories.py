import logging
from typing import Dict

from botocore.exceptions import ClientError
from fastapi import APIRouter, Depends, HTTPException, status

from expense_tracker.core.security import Identity, get_current_identity
from expense_tracker.db.dynamo import CategoryStore
from expense_tracker.dependencies import get_category_store
from expense_tracker.models.category import DEFAULT_CATEGORIES, Category, CategoryCreate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("")
def list_categories(
    identity: Identity = Depends(get_current_identity),
    store: CategoryStore = Depends(get_category_store),
) -> Dict:
    """Built-in categories first, then the user's own."""
    try:
        custom = store.list_for_user(identity.user_id)
    except ClientError:
        logger.error("Error getting categories", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get categories")

    categories = [{**cat, "isDefault": True} for cat in DEFAULT_CATEGORIES]
    categories.extend({**cat.to_item(), "isDefault": False} for cat in custom)

    logger.info(f"Retrieved {len(categories)} categories for user {identity.user_id}")
    return {"categories": categories, "count": len(categories)}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_category(
    payload: CategoryCreate,
    identity: Identity = Depends(get_current_identity),
    store: CategoryStore = Depends(get_category_store),
) -> Dict:
    category = Category(user_id=identity.user_id, name=payload.name)
    if payload.icon:
        category.icon = payload.icon
    if payload.color:
        category.color = payload.color

    try:
        store.put(category)
    except ClientError:
        logger.error("Error adding category", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to add category")

    logger.info(f"Added category {category.category_id} for user {identity.user_id}")
    return {"message": "Category added successfully", "category": category.to_item()}
