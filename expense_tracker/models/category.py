from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from .constants import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON, HEX_COLOR_PATTERN


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(DEFAULT_CATEGORY_COLOR, pattern=HEX_COLOR_PATTERN)
    icon: str = Field(DEFAULT_CATEGORY_ICON, min_length=1, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be blank")
        return v


class CategoryUpdateIn(BaseModel):
    """Partial update model; at least one field must be provided."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(None, min_length=1, max_length=50)

    @model_validator(mode="after")
    def at_least_one(self) -> "CategoryUpdateIn":
        if self.name is None and self.color is None and self.icon is None:
            raise ValueError("at least one field must be provided for update")
        return self


class CategoryOut(BaseModel):
    id: int
    name: str
    color: str
    icon: str
    created_at: str
