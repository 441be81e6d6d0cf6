"""
TIL Backend — Repository Helpers
================================

What:  Shared error translation for repository methods.
How:   `translate_errors` wraps an async method; application errors pass
       through untouched, SQLAlchemy errors become DatabaseError carrying the
       operation name and the original exception type in its context.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tilapp.exceptions import DatabaseError, TILError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def translate_errors(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator: map SQLAlchemyError raised by `operation` to DatabaseError."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except TILError:
                raise
            except SQLAlchemyError as e:
                logger.error("Database error during %s: %s", operation, str(e))
                raise DatabaseError(
                    context={
                        "operation": operation,
                        "original_error": type(e).__name__,
                    },
                ) from e

        return wrapper

    return decorator


class Repository:
    """Base class holding the request-scoped session."""

    def __init__(self, db: AsyncSession):
        self.db = db
