"""
TIL Backend — Acronym SQLAlchemy Model
======================================

What:  ORM model for the `acronyms` table.
Who:   AcronymRepository, TagReconciler (as the owner of category links).

Every acronym references exactly one user; deleting that user deletes the
acronym (ON DELETE CASCADE), which in turn removes its pivot rows.
"""

import uuid

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tilapp.database import Base


class Acronym(Base):
    """A short form / long form pair, e.g. OMG → Oh My God."""

    __tablename__ = "acronyms"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    short: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    long: Mapped[str] = mapped_column(String(1024), nullable=False)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Acronym(id={self.id}, short='{self.short}')>"
