"""
TIL Backend — Categories API
============================

What:  JSON endpoints under /api/categories.
Who:   API clients and the website's tag picker (GET /api/categories).

Category names are unique and case-sensitive: "Tech" and "tech" are two
categories. Creating or renaming onto an existing name answers 409.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tilapp.database import get_db_session
from tilapp.exceptions import NotFoundError
from tilapp.models.user import User
from tilapp.repositories import AcronymRepository, CategoryRepository
from tilapp.routes.deps import require_token_user
from tilapp.schemas.acronym import AcronymResponse
from tilapp.schemas.category import CategoryCreate, CategoryResponse
from tilapp.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["Categories"])

_NOT_FOUND = {404: {"description": "Category not found", "model": ErrorResponse}}
_CONFLICT = {409: {"description": "Category name already exists", "model": ErrorResponse}}


@router.get("", response_model=List[CategoryResponse], summary="List all categories")
async def list_categories(db: AsyncSession = Depends(get_db_session)):
    return await CategoryRepository(db).list_all()


@router.post("", response_model=CategoryResponse, status_code=201, responses=_CONFLICT)
async def create_category(
    payload: CategoryCreate,
    user: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await CategoryRepository(db).create(payload.name)


@router.get("/{category_id}", response_model=CategoryResponse, responses=_NOT_FOUND)
async def get_category(category_id: UUID, db: AsyncSession = Depends(get_db_session)):
    return await CategoryRepository(db).get_or_404(category_id)


@router.get(
    "/{category_id}/acronyms",
    response_model=List[AcronymResponse],
    responses=_NOT_FOUND,
    summary="Acronyms tagged with this category",
)
async def get_category_acronyms(category_id: UUID, db: AsyncSession = Depends(get_db_session)):
    category = await CategoryRepository(db).get_or_404(category_id)
    return await AcronymRepository(db).list_for_category(category.id)


@router.put("/{category_id}", response_model=CategoryResponse, responses={**_NOT_FOUND, **_CONFLICT})
async def update_category(
    category_id: UUID,
    payload: CategoryCreate,
    user: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    repository = CategoryRepository(db)
    category = await repository.get_or_404(category_id)
    category.name = payload.name
    return await repository.save(category)


@router.delete("/{category_id}", status_code=204, response_class=Response, responses=_NOT_FOUND)
async def delete_category(
    category_id: UUID,
    user: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a category. Acronyms lose the tag but are otherwise untouched."""
    if not await CategoryRepository(db).delete(category_id):
        raise NotFoundError(resource="category", resource_id=str(category_id))
    logger.info("Category %s deleted by %s", category_id, user.username)
    return Response(status_code=204)
