"""Group repository protocol."""

from enum import Enum
from typing import Protocol
from uuid import UUID

from domain.entities.group import Group
from domain.entities.location import GroupCategory


class MatchMode(str, Enum):
    """How location filters are compared against stored group components."""

    EXACT = "exact"
    NORMALIZED = "normalized"
    PARTIAL = "partial"


class IGroupRepository(Protocol):
    """Repository interface for community Group entities."""

    async def get(self, id: UUID) -> Group | None:
        """Get a group by ID."""
        ...

    async def find_by_category_and_filters(
        self,
        category: GroupCategory,
        filters: dict[str, str],
        match_mode: MatchMode,
    ) -> list[Group]:
        """Find active groups of a category matching every filter.

        Results are ordered by created_at ascending.
        """
        ...

    async def list_active_by_category(self, category: GroupCategory) -> list[Group]:
        """List active groups of a category, oldest first."""
        ...

    async def list_with_coordinates(self, category: GroupCategory) -> list[Group]:
        """List active groups of a category that have coordinates."""
        ...

    async def create(self, group: Group) -> Group:
        """Create a new group. Raises ConflictError on a uniqueness violation."""
        ...

    async def update_member_count(self, id: UUID, count: int) -> None:
        """Overwrite the stored member counter."""
        ...

    async def adjust_member_count(self, id: UUID, delta: int) -> int:
        """Atomically add delta to the member counter, flooring at zero.

        Returns the counter value before the adjustment.
        """
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a group (cascade deletes memberships)."""
        ...
