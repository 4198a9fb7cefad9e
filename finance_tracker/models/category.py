"""
Category Models for Finance Tracker

Categories group transactions for reporting. Every account gets the
default set seeded on first access; defaults can never be deleted.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DEFAULT_COLOR = "#6B7280"


class Category(BaseModel):
    """A stored category, owned by exactly one account."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(..., min_length=1, max_length=64)
    account_id: int = Field(..., exclude=True)
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default=DEFAULT_COLOR, max_length=20)
    is_default: bool = Field(
        default=False,
        description="Seeded category; cannot be deleted"
    )


class CategoryCreate(BaseModel):
    """Payload for a user-defined category."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, max_length=20)


# (name, color) seeded for every account that has no categories yet
DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Travel", "#3B82F6"),
    ("Grocery", "#10B981"),
    ("Food & Dining", "#F59E0B"),
    ("Entertainment", "#EF4444"),
    ("Shopping", "#8B5CF6"),
    ("Bills & Utilities", "#06B6D4"),
    ("Healthcare", "#EC4899"),
    ("Miscellaneous", "#6B7280"),
]
