"""Profile repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.location import LocationComponents
from domain.entities.profile import Profile


class IProfileRepository(Protocol):
    """Repository interface for user profiles and their stored location."""

    async def get(self, id: UUID) -> Profile | None:
        """Get a profile by user ID."""
        ...

    async def update_location(
        self, id: UUID, location: LocationComponents
    ) -> Profile:
        """Replace the stored location of a profile."""
        ...
