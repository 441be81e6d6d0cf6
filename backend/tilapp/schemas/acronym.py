"""
TIL Backend — Acronym Schemas
=============================

What:  Request and response bodies for /api/acronyms.
"""

import uuid

from pydantic import BaseModel, Field, field_validator


class AcronymCreate(BaseModel):
    """
    Body of POST /api/acronyms and PUT /api/acronyms/{id}.

    The owner is not part of the body: it is the authenticated caller.
    Updates overwrite every field.
    """
    short: str = Field(min_length=1, max_length=255, description="Short form, e.g. OMG")
    long: str = Field(min_length=1, max_length=1024, description="Long form, e.g. Oh My God")

    @field_validator("short", "long")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class AcronymResponse(BaseModel):
    """Full representation of an acronym."""
    id: uuid.UUID = Field(description="Unique acronym identifier")
    short: str
    long: str
    user_id: uuid.UUID = Field(description="Owning user")

    model_config = {"from_attributes": True}
