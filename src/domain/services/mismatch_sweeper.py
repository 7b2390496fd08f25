"""Bring a user's memberships in one category in line with their location."""

from uuid import UUID

import structlog

from domain.entities.group import Group, GroupRef, MembershipRole
from domain.entities.location import (
    GroupCategory,
    LocationComponents,
    same_place,
    validate_location,
)
from domain.entities.reports import ReconciliationResult
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.group_factory import GroupFactory
from domain.services.group_resolver import GroupResolver
from domain.services.membership_reconciler import MembershipReconciler

logger = structlog.get_logger()


class MismatchSweeper:
    """Deactivates stale memberships and joins the canonical group.

    Runs inside the caller's unit of work. Stale memberships are always
    deactivated before the join, so the user never holds two active
    memberships of the same category at any point of the operation.
    """

    def __init__(
        self,
        resolver: GroupResolver,
        factory: GroupFactory,
        reconciler: MembershipReconciler,
    ) -> None:
        self._resolver = resolver
        self._factory = factory
        self._reconciler = reconciler

    async def reconcile_user_location(
        self,
        uow: IUnitOfWork,
        user_id: UUID,
        category: GroupCategory,
        location: LocationComponents,
    ) -> ReconciliationResult:
        validate_location(category, location)
        result = ReconciliationResult(user_id=user_id, category=category)

        memberships = await uow.memberships.list_active_by_user_and_category(
            user_id, category
        )
        # Read-only lookup; it decides which existing membership may stay.
        target = await self._resolver.resolve(uow, category, location)

        for membership, group in memberships:
            if self._belongs(category, group, location, target):
                continue
            await self._reconciler.deactivate_membership(uow, membership, group)
            result.removed.append(GroupRef.from_group(group))

        if target is None:
            target, result.group_created = await self._factory.create_if_absent(
                uow, category, location, user_id
            )

        role = MembershipRole.ADMIN if result.group_created else MembershipRole.MEMBER
        change = await self._reconciler.ensure_active_membership(
            uow, user_id, target, role
        )
        result.group = target
        result.membership_created = change.created
        result.reactivated = change.reactivated

        if result.changed:
            logger.info(
                "user_location_reconciled",
                user_id=str(user_id),
                category=category.value,
                group_id=str(target.id),
                removed=len(result.removed),
                group_created=result.group_created,
            )
        return result

    async def deactivate_category(
        self,
        uow: IUnitOfWork,
        user_id: UUID,
        category: GroupCategory,
    ) -> list[GroupRef]:
        """Deactivate every active membership of a category.

        Used when the user's location no longer identifies any group of the
        category at all.
        """
        removed = []
        memberships = await uow.memberships.list_active_by_user_and_category(
            user_id, category
        )
        for membership, group in memberships:
            await self._reconciler.deactivate_membership(uow, membership, group)
            removed.append(GroupRef.from_group(group))
        return removed

    async def remove_mismatched(
        self,
        uow: IUnitOfWork,
        user_id: UUID,
        location: LocationComponents,
    ) -> list[GroupRef]:
        """Hard-delete memberships in any category that no longer match."""
        removed = []
        for membership, group in await uow.memberships.list_active_by_user(user_id):
            if same_place(group.category, group.location, location):
                continue
            await self._reconciler.remove_membership(uow, membership, group)
            removed.append(GroupRef.from_group(group))
        return removed

    @staticmethod
    def _belongs(
        category: GroupCategory,
        group: Group,
        location: LocationComponents,
        target: Group | None,
    ) -> bool:
        """Whether an existing membership may stay active.

        When a canonical group resolves, only membership in that group
        survives; otherwise fall back to strict normalized equality.
        """
        if target is not None:
            return group.id == target.id
        return same_place(category, group.location, location)
