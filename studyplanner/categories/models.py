from datetime import datetime
from typing import Annotated
from uuid import UUID
from pydantic import AfterValidator, Field, field_validator

from ..auth.models import CamelModel


def strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError('Value cannot be empty')
    return v


RequiredText = Annotated[str, AfterValidator(strip_required)]


class CategoryCreate(CamelModel):
    name: RequiredText = Field(..., max_length=100)
    description: str | None = Field(default=None, max_length=500)
    color: RequiredText = Field(..., max_length=32)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        if v is None:
            return v
        return v.strip() or None


class CategoryUpdate(CamelModel):
    """Partial update. Sending ``description: null`` clears the description."""
    name: RequiredText | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    color: RequiredText | None = Field(default=None, max_length=32)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        if v is None:
            return v
        return v.strip()


class CategoryResponse(CamelModel):
    id: UUID
    user_id: UUID
    name: str
    description: str | None = None
    color: str
    created_at: datetime
    updated_at: datetime


class CategoryItem(CamelModel):
    item: CategoryResponse


class CategoryList(CamelModel):
    items: list[CategoryResponse]
