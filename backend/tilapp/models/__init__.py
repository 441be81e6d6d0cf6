"""
TIL Backend — ORM Models
========================

What:  SQLAlchemy models for users, acronyms, categories, the
       acronym↔category pivot and bearer tokens.
Why:   Importing this package registers every table with Base.metadata,
       which Alembic and the test suite rely on.

Relationships are plain foreign keys. Traversal (a user's acronyms, an
acronym's categories) goes through the repositories in tilapp.repositories.
"""

from tilapp.models.user import User
from tilapp.models.acronym import Acronym
from tilapp.models.category import AcronymCategoryPivot, Category
from tilapp.models.token import Token

__all__ = ["User", "Acronym", "Category", "AcronymCategoryPivot", "Token"]
