"""SQLAlchemy implementation of Membership repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError, MembershipNotFoundError
from domain.entities.group import (
    Group,
    GroupStatus,
    Membership,
    MembershipRole,
    MembershipStatus,
)
from domain.entities.location import GroupCategory
from infrastructure.database.models import CommunityGroupModel, GroupMembershipModel
from infrastructure.database.repositories.sqlalchemy_group_repo import (
    group_model_to_entity,
)


class SQLAlchemyMembershipRepository:
    """SQLAlchemy implementation of IMembershipRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_user_and_group(
        self, user_id: UUID, group_id: UUID
    ) -> Membership | None:
        """Get the membership row for a user and group, whatever its status."""
        stmt = (
            select(GroupMembershipModel)
            .where(
                GroupMembershipModel.user_id == user_id,
                GroupMembershipModel.group_id == group_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, membership: Membership) -> Membership:
        """Insert a membership row."""
        model = self._to_model(membership)
        try:
            async with self._session.begin_nested():
                self._session.add(model)
                await self._session.flush()
        except IntegrityError as exc:
            raise ConflictError("membership") from exc
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update_status(
        self,
        id: UUID,
        status: MembershipStatus,
        timestamp: datetime,
    ) -> Membership:
        """Change status, stamping joined_at (active) or left_at (otherwise)."""
        stmt = select(GroupMembershipModel).where(GroupMembershipModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            raise MembershipNotFoundError(str(id))

        model.status = status.value
        if status == MembershipStatus.ACTIVE:
            model.joined_at = timestamp
            model.left_at = None
        else:
            model.left_at = timestamp

        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Hard-delete a membership row."""
        result = await self._session.execute(
            sa_delete(GroupMembershipModel).where(GroupMembershipModel.id == id)
        )
        return bool(result.rowcount)

    async def list_active_by_user_and_category(
        self, user_id: UUID, category: GroupCategory
    ) -> list[tuple[Membership, Group]]:
        """Active memberships of a user in active groups of a category."""
        return await self._list_active_for_user(
            user_id, CommunityGroupModel.category == category.value
        )

    async def list_active_by_user(
        self, user_id: UUID
    ) -> list[tuple[Membership, Group]]:
        """Active memberships of a user in any active group."""
        return await self._list_active_for_user(user_id)

    async def list_active_by_group(self, group_id: UUID) -> list[Membership]:
        """Active memberships of a group, oldest join first."""
        stmt = (
            select(GroupMembershipModel)
            .where(
                GroupMembershipModel.group_id == group_id,
                GroupMembershipModel.status == MembershipStatus.ACTIVE.value,
            )
            .order_by(GroupMembershipModel.joined_at)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def count_active_by_group(self, group_id: UUID) -> int:
        """Count active memberships of a group."""
        stmt = (
            select(func.count())
            .select_from(GroupMembershipModel)
            .where(
                GroupMembershipModel.group_id == group_id,
                GroupMembershipModel.status == MembershipStatus.ACTIVE.value,
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def _list_active_for_user(
        self, user_id: UUID, *criteria
    ) -> list[tuple[Membership, Group]]:
        stmt = (
            select(GroupMembershipModel, CommunityGroupModel)
            .join(
                CommunityGroupModel,
                CommunityGroupModel.id == GroupMembershipModel.group_id,
            )
            .where(
                GroupMembershipModel.user_id == user_id,
                GroupMembershipModel.status == MembershipStatus.ACTIVE.value,
                CommunityGroupModel.status == GroupStatus.ACTIVE.value,
                *criteria,
            )
            .order_by(CommunityGroupModel.category, GroupMembershipModel.joined_at)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [
            (self._to_entity(membership), group_model_to_entity(group))
            for membership, group in result.all()
        ]

    def _to_entity(self, model: GroupMembershipModel) -> Membership:
        """Convert ORM model to domain entity."""
        return Membership(
            id=model.id,
            group_id=model.group_id,
            user_id=model.user_id,
            role=MembershipRole(model.role),
            status=MembershipStatus(model.status),
            joined_at=model.joined_at,
            left_at=model.left_at,
        )

    def _to_model(self, entity: Membership) -> GroupMembershipModel:
        """Convert domain entity to ORM model."""
        return GroupMembershipModel(
            id=entity.id,
            group_id=entity.group_id,
            user_id=entity.user_id,
            role=entity.role.value,
            status=entity.status.value,
            joined_at=entity.joined_at,
            left_at=entity.left_at,
        )
