"""
TIL Backend — Token SQLAlchemy Model
====================================

What:  ORM model for the `tokens` table (bearer credentials).
Who:   TokenRepository, AuthService.

Tokens never expire: a row that exists is a valid credential. Deleting the
owning user deletes its tokens.
"""

import base64
import secrets
import uuid

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tilapp.database import Base

TOKEN_BYTES = 16


def generate_token_value() -> str:
    """16 random bytes, base64 encoded (24 characters)."""
    return base64.b64encode(secrets.token_bytes(TOKEN_BYTES)).decode("ascii")


class Token(Base):
    """An opaque bearer token issued at login."""

    __tablename__ = "tokens"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    value: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
        default=generate_token_value,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    @property
    def is_valid(self) -> bool:
        # No expiry is tracked
        return True

    def __repr__(self) -> str:
        return f"<Token(id={self.id}, user_id={self.user_id})>"
