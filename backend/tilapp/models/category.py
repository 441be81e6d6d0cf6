"""
TIL Backend — Category and Pivot SQLAlchemy Models
==================================================

What:  ORM models for the `categories` table and the
       `acronym_category_pivot` join table.
Who:   CategoryRepository, TagReconciler.

Constraints:
    - categories.name is unique. Two requests adding the same new tag at
      the same time both try to insert; the loser hits the constraint and
      attaches the winner's row instead (see TagReconciler).
    - (acronym_id, category_id) is unique on the pivot, so an acronym can
      carry a category at most once.
    - Both pivot foreign keys cascade: deleting an acronym or a category
      removes its pivot rows and nothing else.
"""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tilapp.database import Base


class Category(Base):
    """A reusable tag attachable to many acronyms."""

    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class AcronymCategoryPivot(Base):
    """One acronym-to-category attachment."""

    __tablename__ = "acronym_category_pivot"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    acronym_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("acronyms.id", ondelete="CASCADE"),
        nullable=False,
    )

    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("acronym_id", "category_id", name="uq_acronym_category"),
    )

    def __repr__(self) -> str:
        return (
            f"<AcronymCategoryPivot(acronym_id={self.acronym_id}, "
            f"category_id={self.category_id})>"
        )
