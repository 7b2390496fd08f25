"""Join / leave / rejoin state machine for community memberships."""

from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import ConflictError
from domain.entities.group import (
    Group,
    Membership,
    MembershipRole,
    MembershipStatus,
)
from domain.entities.reports import MembershipChange
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class MembershipReconciler:
    """Keeps membership rows and group member counters moving together.

    Every counter change is an atomic in-database adjustment issued inside the
    caller's transaction, right next to the membership write it accounts for.
    """

    async def ensure_active_membership(
        self,
        uow: IUnitOfWork,
        user_id: UUID,
        group: Group,
        role: MembershipRole = MembershipRole.MEMBER,
    ) -> MembershipChange:
        """Make the user an active member of the group.

        Inserts a row on first join and flips any non-active row (inactive or
        banned) back to active on rejoin, keeping the original role. Already
        active is a no-op.
        """
        now = datetime.utcnow()
        existing = await uow.memberships.get_by_user_and_group(user_id, group.id)

        if existing is None:
            try:
                created = await uow.memberships.create(
                    Membership(
                        group_id=group.id,
                        user_id=user_id,
                        role=role,
                        status=MembershipStatus.ACTIVE,
                        joined_at=now,
                    )
                )
            except ConflictError:
                # A concurrent request inserted the row first; continue from it.
                existing = await uow.memberships.get_by_user_and_group(user_id, group.id)
                if existing is None:
                    raise
            else:
                await self._adjust_count(uow, group, 1)
                logger.info(
                    "membership_created",
                    user_id=str(user_id),
                    group_id=str(group.id),
                    role=role.value,
                )
                return MembershipChange(membership=created, created=True)

        if existing.is_active:
            return MembershipChange(membership=existing)

        reactivated = await uow.memberships.update_status(
            existing.id, MembershipStatus.ACTIVE, now
        )
        await self._adjust_count(uow, group, 1)
        logger.info(
            "membership_reactivated",
            user_id=str(user_id),
            group_id=str(group.id),
        )
        return MembershipChange(membership=reactivated, reactivated=True)

    async def deactivate_membership(
        self,
        uow: IUnitOfWork,
        membership: Membership,
        group: Group,
    ) -> Membership:
        """Flip an active membership to inactive, keeping its history."""
        if not membership.is_active:
            return membership

        updated = await uow.memberships.update_status(
            membership.id, MembershipStatus.INACTIVE, datetime.utcnow()
        )
        await self._adjust_count(uow, group, -1)
        logger.info(
            "membership_deactivated",
            user_id=str(membership.user_id),
            group_id=str(group.id),
        )
        return updated

    async def remove_membership(
        self,
        uow: IUnitOfWork,
        membership: Membership,
        group: Group,
    ) -> None:
        """Hard-delete a membership row, discarding its history."""
        deleted = await uow.memberships.delete(membership.id)
        if deleted and membership.is_active:
            await self._adjust_count(uow, group, -1)
        logger.info(
            "membership_deleted",
            user_id=str(membership.user_id),
            group_id=str(group.id),
        )

    async def _adjust_count(self, uow: IUnitOfWork, group: Group, delta: int) -> None:
        """Apply a counter delta, floored at zero, and mirror it on the entity."""
        previous = await uow.groups.adjust_member_count(group.id, delta)
        if previous + delta < 0:
            logger.warning(
                "member_count_drift",
                group_id=str(group.id),
                stored=previous,
                delta=delta,
            )
        group.member_count = max(previous + delta, 0)
