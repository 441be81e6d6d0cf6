"""
TIL Backend — Token Repository
==============================

What:  Issue and look up bearer tokens.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select

from tilapp.models.token import Token, generate_token_value
from tilapp.models.user import User
from tilapp.repositories.base import Repository, translate_errors


class TokenRepository(Repository):

    @translate_errors("create token")
    async def create_for_user(self, user: User) -> Token:
        token = Token(value=generate_token_value(), user_id=user.id)
        self.db.add(token)
        await self.db.flush()
        return token

    @translate_errors("find token")
    async def find_by_value(self, value: str) -> Optional[Token]:
        result = await self.db.execute(select(Token).where(Token.value == value))
        return result.scalar_one_or_none()

    @translate_errors("delete token")
    async def delete(self, token_id: UUID) -> bool:
        result = await self.db.execute(delete(Token).where(Token.id == token_id))
        return result.rowcount > 0
