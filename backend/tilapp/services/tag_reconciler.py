"""
TIL Backend — Tag Reconciler
============================

What:  Converges an acronym's category tags onto a desired set of names.
How:   Set difference between the names already attached and the desired
       names; attach what is missing (creating unseen categories), detach
       what is no longer wanted.
Who:   Website create/edit handlers (the `categories` form field).
When:  Once per create or edit submission, inside the request's session.

Reconciliation Flow:
    existing = names attached now        desired = names submitted
    ┌──────────────────────────┐         ┌──────────────────────────┐
    │ to_add = desired−existing│────────▶│ find_by_name → attach    │
    │                          │         │ (create first if unseen) │
    ├──────────────────────────┤         ├──────────────────────────┤
    │ to_remove=existing−desired│───────▶│ detach loaded Category   │
    └──────────────────────────┘         └──────────────────────────┘

Guarantees:
    - On success, the acronym's category names equal the desired set
      (exact, case-sensitive), assuming no concurrent writer.
    - A second call with the same desired set performs no writes.
    - Category rows are never deleted here, only pivot rows.

Failure:
    The first DatabaseError propagates unchanged. Operations already applied
    are not undone by the reconciler; the request-scoped session decides
    whether the transaction commits. Nothing is retried.

Name races:
    categories.name is unique. If another request inserts the same new name
    between our lookup and our insert, create() raises ConflictError; the
    reconciler then re-reads the winner's row and attaches it.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Set, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from tilapp.exceptions import ConflictError, DatabaseError
from tilapp.models.acronym import Acronym
from tilapp.models.category import Category
from tilapp.repositories.category_repository import CategoryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    """Names attached, detached and newly created by one reconciliation."""
    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    created: Tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def normalize_names(names: Optional[Iterable[str]]) -> Set[str]:
    """
    Desired names as a set. None means no tags; blank entries (such as the
    empty option a browser submits) are dropped. Other names are kept
    verbatim because matching is exact.
    """
    if names is None:
        return set()
    return {name for name in names if name and name.strip()}


class TagReconciler:
    """
    Stateless; receives the session for each call.

    Operations on one AsyncSession cannot overlap, so attach/detach/create
    calls are awaited one after another. add and remove sets are disjoint and
    their order carries no meaning.
    """

    async def reconcile(
        self,
        db: AsyncSession,
        acronym: Acronym,
        desired_names: Optional[Iterable[str]],
    ) -> ReconcileResult:
        """
        Make the acronym's categories match `desired_names`.

        Args:
            db: Request-scoped session
            acronym: A persisted acronym (its id must be assigned)
            desired_names: Category names to end up with; None means none

        Returns:
            ReconcileResult with sorted names added, removed and created

        Raises:
            DatabaseError: Any persistence failure, on first occurrence
        """
        repository = CategoryRepository(db)

        existing: Dict[str, Category] = {
            category.name: category
            for category in await repository.list_for_acronym(acronym.id)
        }
        desired = normalize_names(desired_names)

        to_add = desired - set(existing)
        to_remove = set(existing) - desired

        if not to_add and not to_remove:
            logger.debug("Acronym %s categories already up to date", acronym.id)
            return ReconcileResult()

        logger.info(
            "Reconciling categories for acronym %s: +%s -%s",
            acronym.id,
            sorted(to_add),
            sorted(to_remove),
        )

        created = []
        for name in sorted(to_add):
            category, was_created = await self._find_or_create(repository, name)
            if was_created:
                created.append(name)
            await repository.attach(acronym, category)

        for name in sorted(to_remove):
            await repository.detach(acronym, existing[name])

        return ReconcileResult(
            added=tuple(sorted(to_add)),
            removed=tuple(sorted(to_remove)),
            created=tuple(created),
        )

    async def _find_or_create(
        self, repository: CategoryRepository, name: str
    ) -> Tuple[Category, bool]:
        category = await repository.find_by_name(name)
        if category is not None:
            return category, False

        try:
            return await repository.create(name), True
        except ConflictError:
            # Lost the insert race; attach the row the other writer created
            logger.info("Category '%s' created concurrently; reusing it", name)
            category = await repository.find_by_name(name)
            if category is None:
                raise DatabaseError(
                    message="Could not save the categories. Please try again.",
                    context={"category": name},
                )
            return category, False


# ── Singleton Instance ────────────────────────────────────────────────────
tag_reconciler = TagReconciler()
