"""Cache port for derived membership collections."""

from typing import Protocol
from uuid import UUID

from domain.entities.reports import MembershipView


class IMembershipCache(Protocol):
    """Cache of per-user membership lists.

    Services call the invalidation hooks synchronously after every committed
    change to a user's memberships or to a group they belong to.
    """

    def get_memberships(self, user_id: UUID) -> list[MembershipView] | None:
        """Return the cached membership list, or None on a miss."""
        ...

    def set_memberships(self, user_id: UUID, views: list[MembershipView]) -> None:
        """Store a freshly computed membership list."""
        ...

    def invalidate_user(self, user_id: UUID) -> None:
        """Drop everything cached for a user."""
        ...

    def invalidate_all(self) -> None:
        """Drop the whole cache (used after maintenance merges)."""
        ...
