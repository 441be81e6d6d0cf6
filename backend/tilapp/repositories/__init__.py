# Repositories package init
"""
TIL Backend — Entity Store
==========================

What:  One repository per entity, each wrapping the request's AsyncSession.
Why:   Every traversal (a user's acronyms, an acronym's categories) is an
       explicit method returning a concrete list, instead of ORM
       relationship magic.
How:   Repositories flush but never commit; the get_db_session dependency
       owns the transaction. SQLAlchemy errors surface as DatabaseError.

Repository Inventory:
    - UserRepository:     users
    - AcronymRepository:  acronyms (search, first, sorted, per-user, per-category)
    - CategoryRepository: categories + attach/detach on the pivot table
    - TokenRepository:    bearer tokens
"""

from tilapp.repositories.acronym_repository import AcronymRepository
from tilapp.repositories.category_repository import CategoryRepository
from tilapp.repositories.token_repository import TokenRepository
from tilapp.repositories.user_repository import UserRepository

__all__ = [
    "AcronymRepository",
    "CategoryRepository",
    "TokenRepository",
    "UserRepository",
]
