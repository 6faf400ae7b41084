from typing import Optional
from uuid import uuid4

from pydantic import Field, field_validator

from expense_tracker.models.expense import CamelModel, utc_now_iso

DEFAULT_ICON = "📝"
DEFAULT_COLOR = "#C7CEEA"

DEFAULT_CATEGORIES = [
    {"name": "Food & Dining", "icon": "🍔", "color": "#FF6B6B"},
    {"name": "Transportation", "icon": "🚗", "color": "#4ECDC4"},
    {"name": "Shopping", "icon": "🛍️", "color": "#95E1D3"},
    {"name": "Entertainment", "icon": "🎬", "color": "#F38181"},
    {"name": "Bills & Utilities", "icon": "💡", "color": "#AA96DA"},
    {"name": "Healthcare", "icon": "🏥", "color": "#FCBAD3"},
    {"name": "Education", "icon": "📚", "color": "#FFFFD2"},
    {"name": "Travel", "icon": "✈️", "color": "#A8D8EA"},
    {"name": "Groceries", "icon": "🛒", "color": "#FFD93D"},
    {"name": "Other", "icon": "📝", "color": "#C7CEEA"},
]


class CategoryCreate(CamelModel):
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Category name is required")
        return value.strip()


class Category(CamelModel):
    category_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    name: str
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR
    created_at: str = Field(default_factory=utc_now_iso)
