"""Membership repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.group import Group, Membership, MembershipStatus
from domain.entities.location import GroupCategory


class IMembershipRepository(Protocol):
    """Repository interface for user-to-group Membership edges."""

    async def get_by_user_and_group(
        self, user_id: UUID, group_id: UUID
    ) -> Membership | None:
        """Get the membership row for a user and group, whatever its status."""
        ...

    async def create(self, membership: Membership) -> Membership:
        """Insert a membership. Raises ConflictError if the pair already exists."""
        ...

    async def update_status(
        self,
        id: UUID,
        status: MembershipStatus,
        timestamp: datetime,
    ) -> Membership:
        """Change status, stamping joined_at (active) or left_at (otherwise).

        Raises MembershipNotFoundError if no row has the ID.
        """
        ...

    async def delete(self, id: UUID) -> bool:
        """Hard-delete a membership row."""
        ...

    async def list_active_by_user_and_category(
        self, user_id: UUID, category: GroupCategory
    ) -> list[tuple[Membership, Group]]:
        """Active memberships of a user in active groups of a category."""
        ...

    async def list_active_by_user(
        self, user_id: UUID
    ) -> list[tuple[Membership, Group]]:
        """Active memberships of a user in any active group."""
        ...

    async def list_active_by_group(self, group_id: UUID) -> list[Membership]:
        """Active memberships of a group, oldest join first."""
        ...

    async def count_active_by_group(self, group_id: UUID) -> int:
        """Count active memberships of a group."""
        ...
