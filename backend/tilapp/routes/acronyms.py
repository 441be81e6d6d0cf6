"""
TIL Backend — Acronyms API
==========================

What:  JSON endpoints under /api/acronyms.
How:   Thin handlers: parse input, call the repositories, return schemas.
       Writes require a bearer token; the caller becomes the owner.
Who:   API clients (the iOS app, scripts, the website's tag picker reads
       /api/categories instead).

Route order matters: the literal paths (/search, /first, /sorted) are
declared before /{acronym_id} so they are not parsed as ids.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tilapp.database import get_db_session
from tilapp.exceptions import NotFoundError, ValidationError
from tilapp.models.user import User
from tilapp.repositories import AcronymRepository, CategoryRepository, UserRepository
from tilapp.routes.deps import require_token_user
from tilapp.schemas.acronym import AcronymCreate, AcronymResponse
from tilapp.schemas.category import CategoryResponse
from tilapp.schemas.common import ErrorResponse
from tilapp.schemas.user import UserPublic

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/acronyms", tags=["Acronyms"])

_AUTH_RESPONSES = {401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}}
_NOT_FOUND = {404: {"description": "Acronym not found", "model": ErrorResponse}}


@router.get("", response_model=List[AcronymResponse], summary="List all acronyms")
async def list_acronyms(db: AsyncSession = Depends(get_db_session)):
    return await AcronymRepository(db).list_all()


@router.post(
    "",
    response_model=AcronymResponse,
    status_code=201,
    responses=_AUTH_RESPONSES,
    summary="Create an acronym owned by the caller",
)
async def create_acronym(
    payload: AcronymCreate,
    user: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    acronym = await AcronymRepository(db).create(
        short=payload.short, long=payload.long, user_id=user.id
    )
    logger.info("Acronym %s created by %s", acronym.id, user.username)
    return acronym


@router.get(
    "/search",
    response_model=List[AcronymResponse],
    responses={400: {"description": "Missing search term", "model": ErrorResponse}},
    summary="Find acronyms whose short or long form equals the term",
)
async def search_acronyms(
    term: Optional[str] = Query(default=None, description="Exact short or long form"),
    db: AsyncSession = Depends(get_db_session),
):
    if not term:
        raise ValidationError(message="The 'term' query parameter is required", field="term")
    return await AcronymRepository(db).search(term)


@router.get("/first", response_model=AcronymResponse, responses=_NOT_FOUND, summary="First acronym")
async def first_acronym(db: AsyncSession = Depends(get_db_session)):
    acronym = await AcronymRepository(db).first()
    if acronym is None:
        raise NotFoundError(resource="acronym")
    return acronym


@router.get("/sorted", response_model=List[AcronymResponse], summary="Acronyms sorted by short form")
async def sorted_acronyms(db: AsyncSession = Depends(get_db_session)):
    return await AcronymRepository(db).sorted_by_short()


@router.get("/{acronym_id}", response_model=AcronymResponse, responses=_NOT_FOUND)
async def get_acronym(acronym_id: UUID, db: AsyncSession = Depends(get_db_session)):
    return await AcronymRepository(db).get_or_404(acronym_id)


@router.put(
    "/{acronym_id}",
    response_model=AcronymResponse,
    responses={**_AUTH_RESPONSES, **_NOT_FOUND},
    summary="Replace an acronym's short and long form",
)
async def update_acronym(
    acronym_id: UUID,
    payload: AcronymCreate,
    user: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    repository = AcronymRepository(db)
    acronym = await repository.get_or_404(acronym_id)
    acronym.short = payload.short
    acronym.long = payload.long
    acronym.user_id = user.id
    return await repository.save(acronym)


@router.delete(
    "/{acronym_id}",
    status_code=204,
    response_class=Response,
    responses={**_AUTH_RESPONSES, **_NOT_FOUND},
)
async def delete_acronym(
    acronym_id: UUID,
    user: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    if not await AcronymRepository(db).delete(acronym_id):
        raise NotFoundError(resource="acronym", resource_id=str(acronym_id))
    logger.info("Acronym %s deleted by %s", acronym_id, user.username)
    return Response(status_code=204)


@router.get("/{acronym_id}/user", response_model=UserPublic, responses=_NOT_FOUND)
async def get_acronym_user(acronym_id: UUID, db: AsyncSession = Depends(get_db_session)):
    acronym = await AcronymRepository(db).get_or_404(acronym_id)
    return await UserRepository(db).get_or_404(acronym.user_id)


@router.get("/{acronym_id}/categories", response_model=List[CategoryResponse], responses=_NOT_FOUND)
async def get_acronym_categories(acronym_id: UUID, db: AsyncSession = Depends(get_db_session)):
    acronym = await AcronymRepository(db).get_or_404(acronym_id)
    return await CategoryRepository(db).list_for_acronym(acronym.id)


@router.post(
    "/{acronym_id}/categories/{category_id}",
    status_code=201,
    response_class=Response,
    responses={**_AUTH_RESPONSES, 404: {"description": "Acronym or category not found"}},
    summary="Attach one category to an acronym",
)
async def attach_category(
    acronym_id: UUID,
    category_id: UUID,
    user: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    acronym = await AcronymRepository(db).get_or_404(acronym_id)
    categories = CategoryRepository(db)
    category = await categories.get_or_404(category_id)
    await categories.attach(acronym, category)
    return Response(status_code=201)


@router.delete(
    "/{acronym_id}/categories/{category_id}",
    status_code=204,
    response_class=Response,
    responses={**_AUTH_RESPONSES, 404: {"description": "Acronym or category not found"}},
    summary="Detach one category from an acronym",
)
async def detach_category(
    acronym_id: UUID,
    category_id: UUID,
    user: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    acronym = await AcronymRepository(db).get_or_404(acronym_id)
    categories = CategoryRepository(db)
    category = await categories.get_or_404(category_id)
    await categories.detach(acronym, category)
    return Response(status_code=204)
