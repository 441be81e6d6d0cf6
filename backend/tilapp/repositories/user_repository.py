"""
TIL Backend — User Repository
=============================

What:  CRUD and lookups for the `users` table.
Who:   Users API, AuthService (login, OAuth first sight), website register.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from tilapp.exceptions import ConflictError, NotFoundError
from tilapp.models.user import User
from tilapp.repositories.base import Repository, translate_errors

logger = logging.getLogger(__name__)


class UserRepository(Repository):

    @translate_errors("create user")
    async def create(
        self,
        name: str,
        username: str,
        password_hash: str,
        external_identity: Optional[str] = None,
    ) -> User:
        """
        Insert a user.

        Raises:
            ConflictError: The username (or external identity) is taken.
        """
        user = User(
            name=name,
            username=username,
            password_hash=password_hash,
            external_identity=external_identity,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(user)
                await self.db.flush()
        except IntegrityError as e:
            raise ConflictError(
                message=f"Username '{username}' is already taken",
                context={"field": "username"},
            ) from e
        logger.info("User created: %s (%s)", user.id, username)
        return user

    @translate_errors("get user")
    async def get(self, user_id: UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_or_404(self, user_id: UUID) -> User:
        user = await self.get(user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    @translate_errors("list users")
    async def list_all(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.username))
        return list(result.scalars().all())

    @translate_errors("find user by username")
    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    @translate_errors("find user by external identity")
    async def find_by_external_identity(self, identity: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.external_identity == identity)
        )
        return result.scalar_one_or_none()

    @translate_errors("save user")
    async def save(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    @translate_errors("delete user")
    async def delete(self, user_id: UUID) -> bool:
        """
        Delete a user by id. Their tokens, acronyms and those acronyms'
        category links go with them (ON DELETE CASCADE).

        Returns:
            True if a row was deleted.
        """
        result = await self.db.execute(delete(User).where(User.id == user_id))
        return result.rowcount > 0
