from datetime import date as Date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PaymentMethod = Literal["cash", "credit", "debit", "online"]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def whole_cents(value: float) -> float:
    if Decimal(str(value)).as_tuple().exponent < -2:
        raise ValueError("amount must not have more than 2 decimal places")
    return value


def not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("category must not be blank")
    return value


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire and in the document store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_item(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ExpenseCreate(CamelModel):
    amount: float = Field(gt=0)
    category: str = Field(min_length=1)
    description: Optional[str] = ""
    date: Date
    payment_method: PaymentMethod = "cash"

    @field_validator("amount")
    @classmethod
    def amount_in_cents(cls, value: float) -> float:
        return whole_cents(value)

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, value: str) -> str:
        return not_blank(value)


class ExpensePatch(CamelModel):
    """
    Partial update for an expense. Only the fields the caller actually sent end
    up in `changes()`, which the store turns into a SET expression.
    """

    amount: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    date: Optional[Date] = None
    payment_method: Optional[PaymentMethod] = None

    @field_validator("amount")
    @classmethod
    def amount_in_cents(cls, value: Optional[float]) -> Optional[float]:
        return None if value is None else whole_cents(value)

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else not_blank(value)

    def changes(self) -> Dict[str, Any]:
        fields = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        if "description" in fields and fields["description"] is None:
            fields["description"] = ""
        return {k: v for k, v in fields.items() if v is not None}


class Expense(CamelModel):
    expense_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    amount: float
    category: str
    description: str = ""
    date: Date
    payment_method: PaymentMethod = "cash"
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @field_validator("description", mode="before")
    @classmethod
    def description_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("payment_method", mode="before")
    @classmethod
    def payment_method_default(cls, value: Any) -> Any:
        return value or "cash"

    @classmethod
    def from_create(cls, user_id: str, payload: ExpenseCreate) -> "Expense":
        now = utc_now_iso()
        return cls(
            user_id=user_id,
            amount=payload.amount,
            category=payload.category,
            description=payload.description or "",
            date=payload.date,
            payment_method=payload.payment_method,
            created_at=now,
            updated_at=now,
        )
