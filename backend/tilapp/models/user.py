"""
TIL Backend — User SQLAlchemy Model
===================================

What:  ORM model for the `users` table.
Who:   UserRepository (CRUD), AuthService (credential checks).

Table Design:
    - username is unique: it is the login name for basic auth and holds the
      e-mail address for accounts created through Google login
    - password_hash is a bcrypt hash; OAuth-only accounts store "" which no
      password can ever match
    - external_identity records the provider-verified identity
      (e.g. "google:1234") and is unique when present
"""

import uuid
from typing import Optional

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tilapp.database import Base


class User(Base):
    """An author of acronyms."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Display name
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Login name
    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )

    external_identity: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
        default=None,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
