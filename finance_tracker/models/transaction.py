"""
Transaction Models for Finance Tracker

A Transaction is a single recorded money movement. In user-facing terms
every transaction is an "expense", whatever its direction: the
transaction_type says whether money came in (credit) or went out (debit).

DESIGN DECISION: Amounts are Decimal everywhere inside the system.
They are only turned into JSON numbers on the way out, so sums never
pick up floating point drift.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from finance_tracker.models.timestamps import utc_now


# Money is exact internally and a plain number on the wire
Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

# Field named "date" would shadow the type inside class bodies
CalendarDate = date


class PaymentMethod(str, Enum):
    """How the money moved."""
    CASH = "cash"
    UPI = "upi"
    CREDIT_CARD = "credit-card"
    DEBIT_CARD = "debit-card"


class TransactionType(str, Enum):
    """
    Direction of a transaction.

    CREDIT is income, DEBIT is an expense.
    """
    CREDIT = "credit"
    DEBIT = "debit"


class Transaction(BaseModel):
    """
    A stored transaction, owned by exactly one account.

    `category` is free text matched against Category.name; it is not a
    foreign key, so a transaction may reference a category that was
    deleted later.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Identifier, unique per account"
    )
    account_id: int = Field(
        ...,
        exclude=True,
        description="Owning account (never sent to clients)"
    )
    amount: Money = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount, always non-negative"
    )
    category: str = Field(
        ...,
        max_length=100,
        description="Category name"
    )
    payment_method: PaymentMethod
    transaction_type: TransactionType
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )
    date: CalendarDate = Field(
        ...,
        description="User-supplied calendar date"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the record was created (system-assigned)"
    )


class TransactionCreate(BaseModel):
    """
    Payload for a new transaction.

    The id and creation timestamp are assigned by the system; if a
    client sends them anyway they are ignored.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    amount: Money = Field(..., ge=0, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    payment_method: PaymentMethod
    transaction_type: TransactionType
    description: Optional[str] = Field(default=None, max_length=500)
    date: CalendarDate


class TransactionUpdate(BaseModel):
    """
    Partial update of a transaction.

    Only fields present in the payload overwrite stored values; absent
    fields keep their prior value. Unknown field names are rejected so
    nothing unexpected is ever written to storage.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    amount: Optional[Money] = Field(default=None, ge=0, decimal_places=2)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    payment_method: Optional[PaymentMethod] = None
    transaction_type: Optional[TransactionType] = None
    description: Optional[str] = Field(default=None, max_length=500)
    date: Optional[CalendarDate] = None

    @model_validator(mode='after')
    def reject_null_required_fields(self) -> 'TransactionUpdate':
        """Only description may be cleared; the other columns are NOT NULL."""
        for name in self.model_fields_set:
            if name != "description" and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """The fields that were actually supplied, keyed by field name."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set
