"""
TIL Backend — Acronym Repository
================================

What:  CRUD, search and listing queries for the `acronyms` table.
Who:   Acronyms API, Users/Categories API (per-owner and per-tag listings),
       website pages.

Query Patterns:
    - search(term):         WHERE short = :term OR long = :term (exact match)
    - first():              LIMIT 1 in storage order
    - sorted_by_short():    ORDER BY short ASC
    - list_for_category():  JOIN acronym_category_pivot ON acronym_id
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, or_, select

from tilapp.exceptions import NotFoundError
from tilapp.models.acronym import Acronym
from tilapp.models.category import AcronymCategoryPivot
from tilapp.repositories.base import Repository, translate_errors

logger = logging.getLogger(__name__)


class AcronymRepository(Repository):

    @translate_errors("create acronym")
    async def create(self, short: str, long: str, user_id: UUID) -> Acronym:
        acronym = Acronym(short=short, long=long, user_id=user_id)
        self.db.add(acronym)
        await self.db.flush()
        logger.info("Acronym created: %s (%s)", acronym.id, short)
        return acronym

    @translate_errors("get acronym")
    async def get(self, acronym_id: UUID) -> Optional[Acronym]:
        return await self.db.get(Acronym, acronym_id)

    async def get_or_404(self, acronym_id: UUID) -> Acronym:
        acronym = await self.get(acronym_id)
        if acronym is None:
            raise NotFoundError(resource="acronym", resource_id=str(acronym_id))
        return acronym

    @translate_errors("list acronyms")
    async def list_all(self) -> List[Acronym]:
        result = await self.db.execute(select(Acronym))
        return list(result.scalars().all())

    @translate_errors("search acronyms")
    async def search(self, term: str) -> List[Acronym]:
        result = await self.db.execute(
            select(Acronym).where(or_(Acronym.short == term, Acronym.long == term))
        )
        return list(result.scalars().all())

    @translate_errors("first acronym")
    async def first(self) -> Optional[Acronym]:
        result = await self.db.execute(select(Acronym).limit(1))
        return result.scalars().first()

    @translate_errors("sort acronyms")
    async def sorted_by_short(self) -> List[Acronym]:
        result = await self.db.execute(select(Acronym).order_by(Acronym.short.asc()))
        return list(result.scalars().all())

    @translate_errors("list acronyms for user")
    async def list_for_user(self, user_id: UUID) -> List[Acronym]:
        result = await self.db.execute(
            select(Acronym).where(Acronym.user_id == user_id)
        )
        return list(result.scalars().all())

    @translate_errors("list acronyms for category")
    async def list_for_category(self, category_id: UUID) -> List[Acronym]:
        result = await self.db.execute(
            select(Acronym)
            .join(AcronymCategoryPivot, AcronymCategoryPivot.acronym_id == Acronym.id)
            .where(AcronymCategoryPivot.category_id == category_id)
        )
        return list(result.scalars().all())

    @translate_errors("save acronym")
    async def save(self, acronym: Acronym) -> Acronym:
        self.db.add(acronym)
        await self.db.flush()
        return acronym

    @translate_errors("delete acronym")
    async def delete(self, acronym_id: UUID) -> bool:
        """Delete by id; pivot rows cascade. Returns True if a row was deleted."""
        result = await self.db.execute(delete(Acronym).where(Acronym.id == acronym_id))
        return result.rowcount > 0
