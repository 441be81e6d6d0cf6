"""
TIL Backend — User and Token Schemas
====================================

What:  Request and response bodies for /api/users.

UserPublic is the only shape a user is ever returned in. It omits the
password hash and the external identity.
"""

import uuid

from pydantic import BaseModel, Field, field_validator


class UserCreate(BaseModel):
    """Body of POST /api/users. The password arrives in clear and is hashed."""
    name: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=72, description="bcrypt uses at most 72 bytes")

    @field_validator("name", "username")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class UserPublic(BaseModel):
    id: uuid.UUID
    name: str
    username: str

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Returned by POST /api/users/login."""
    id: uuid.UUID
    value: str = Field(description="Send as 'Authorization: Bearer <value>'")
    user_id: uuid.UUID

    model_config = {"from_attributes": True}
