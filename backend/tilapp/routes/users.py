"""
TIL Backend — Users API
=======================

What:  JSON endpoints under /api/users, including POST /login which trades
       HTTP Basic credentials for a bearer token.
How:   Users are always returned as UserPublic (no password hash).
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tilapp.database import get_db_session
from tilapp.exceptions import NotFoundError
from tilapp.models.user import User
from tilapp.repositories import AcronymRepository, UserRepository
from tilapp.routes.deps import require_basic_user, require_token_user
from tilapp.schemas.acronym import AcronymResponse
from tilapp.schemas.common import ErrorResponse
from tilapp.schemas.user import TokenResponse, UserCreate, UserPublic
from tilapp.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

_NOT_FOUND = {404: {"description": "User not found", "model": ErrorResponse}}


@router.get("", response_model=List[UserPublic], summary="List all users")
async def list_users(db: AsyncSession = Depends(get_db_session)):
    return await UserRepository(db).list_all()


@router.post(
    "",
    response_model=UserPublic,
    status_code=201,
    responses={
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
        409: {"description": "Username already taken", "model": ErrorResponse},
    },
    summary="Create a user",
)
async def create_user(
    payload: UserCreate,
    caller: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    user = await auth_service.register(
        db, name=payload.name, username=payload.username, password=payload.password
    )
    logger.info("User %s created by %s", user.username, caller.username)
    return user


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid username or password", "model": ErrorResponse}},
    summary="Exchange HTTP Basic credentials for a bearer token",
)
async def login(
    user: User = Depends(require_basic_user),
    db: AsyncSession = Depends(get_db_session),
):
    return await auth_service.issue_token(db, user)


@router.get("/{user_id}", response_model=UserPublic, responses=_NOT_FOUND)
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db_session)):
    return await UserRepository(db).get_or_404(user_id)


@router.get("/{user_id}/acronyms", response_model=List[AcronymResponse], responses=_NOT_FOUND)
async def get_user_acronyms(user_id: UUID, db: AsyncSession = Depends(get_db_session)):
    user = await UserRepository(db).get_or_404(user_id)
    return await AcronymRepository(db).list_for_user(user.id)


@router.delete("/{user_id}", status_code=204, response_class=Response, responses=_NOT_FOUND)
async def delete_user(
    user_id: UUID,
    caller: User = Depends(require_token_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a user; their acronyms and tokens go with them."""
    if not await UserRepository(db).delete(user_id):
        raise NotFoundError(resource="user", resource_id=str(user_id))
    logger.info("User %s deleted by %s", user_id, caller.username)
    return Response(status_code=204)
