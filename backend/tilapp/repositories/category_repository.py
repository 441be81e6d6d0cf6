"""
TIL Backend — Category Repository
=================================

What:  CRUD for `categories` plus the attach/detach operations on
       `acronym_category_pivot`.
Who:   Categories API, direct attach/detach routes, TagReconciler.

Attachment semantics:
    attach(acronym, category)  → inserts a pivot row unless one exists
    detach(acronym, category)  → deletes the pivot row if present
    Both are idempotent, so repeating either has no further effect.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from tilapp.exceptions import ConflictError, NotFoundError
from tilapp.models.acronym import Acronym
from tilapp.models.category import AcronymCategoryPivot, Category
from tilapp.repositories.base import Repository, translate_errors

logger = logging.getLogger(__name__)


class CategoryRepository(Repository):

    @translate_errors("create category")
    async def create(self, name: str) -> Category:
        """
        Insert a category inside a SAVEPOINT.

        Raises:
            ConflictError: A category with this exact name already exists.
                Only the savepoint is rolled back, so the caller's
                transaction stays usable.
        """
        category = Category(name=name)
        try:
            async with self.db.begin_nested():
                self.db.add(category)
                await self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                message=f"Category '{name}' already exists",
                context={"field": "name"},
            ) from e
        logger.info("Category created: %s (%s)", category.id, name)
        return category

    @translate_errors("get category")
    async def get(self, category_id: UUID) -> Optional[Category]:
        return await self.db.get(Category, category_id)

    async def get_or_404(self, category_id: UUID) -> Category:
        category = await self.get(category_id)
        if category is None:
            raise NotFoundError(resource="category", resource_id=str(category_id))
        return category

    @translate_errors("list categories")
    async def list_all(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    @translate_errors("find category by name")
    async def find_by_name(self, name: str) -> Optional[Category]:
        # Exact, case-sensitive match
        result = await self.db.execute(select(Category).where(Category.name == name))
        return result.scalar_one_or_none()

    @translate_errors("list categories for acronym")
    async def list_for_acronym(self, acronym_id: UUID) -> List[Category]:
        result = await self.db.execute(
            select(Category)
            .join(AcronymCategoryPivot, AcronymCategoryPivot.category_id == Category.id)
            .where(AcronymCategoryPivot.acronym_id == acronym_id)
            .order_by(Category.name)
        )
        return list(result.scalars().all())

    @translate_errors("check attachment")
    async def is_attached(self, acronym: Acronym, category: Category) -> bool:
        result = await self.db.execute(
            select(AcronymCategoryPivot.id).where(
                AcronymCategoryPivot.acronym_id == acronym.id,
                AcronymCategoryPivot.category_id == category.id,
            )
        )
        return result.first() is not None

    @translate_errors("attach category")
    async def attach(self, acronym: Acronym, category: Category) -> bool:
        """
        Link a category to an acronym.

        Returns:
            True if a pivot row was written, False if it already existed.
        """
        if await self.is_attached(acronym, category):
            return False
        self.db.add(AcronymCategoryPivot(acronym_id=acronym.id, category_id=category.id))
        await self.db.flush()
        logger.debug("Attached category %s to acronym %s", category.name, acronym.id)
        return True

    @translate_errors("detach category")
    async def detach(self, acronym: Acronym, category: Category) -> bool:
        """
        Unlink a category from an acronym. The category row itself is kept.

        Returns:
            True if a pivot row was deleted, False if none existed.
        """
        result = await self.db.execute(
            delete(AcronymCategoryPivot).where(
                AcronymCategoryPivot.acronym_id == acronym.id,
                AcronymCategoryPivot.category_id == category.id,
            )
        )
        detached = result.rowcount > 0
        if detached:
            logger.debug("Detached category %s from acronym %s", category.name, acronym.id)
        return detached

    @translate_errors("save category")
    async def save(self, category: Category) -> Category:
        """
        Persist changes to an existing category (e.g. a rename).

        Raises:
            ConflictError: The new name is taken. The pending rename cannot be
                isolated in a SAVEPOINT, so the caller's transaction must be
                rolled back afterwards.
        """
        name = category.name
        try:
            self.db.add(category)
            await self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                message=f"Category '{name}' already exists",
                context={"field": "name"},
            ) from e
        return category

    @translate_errors("delete category")
    async def delete(self, category_id: UUID) -> bool:
        """Delete by id; pivot rows cascade, acronyms are untouched."""
        result = await self.db.execute(delete(Category).where(Category.id == category_id))
        return result.rowcount > 0
