"""
TIL Backend — Category Schemas
==============================

What:  Request and response bodies for /api/categories.
"""

import uuid

from pydantic import BaseModel, Field, field_validator


class CategoryCreate(BaseModel):
    """Body of POST /api/categories and PUT /api/categories/{id}."""
    name: str = Field(min_length=1, max_length=255, description="Tag name (case-sensitive)")

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}
