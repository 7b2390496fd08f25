"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from domain.entities.location import LocationComponents


@dataclass
class Profile:
    """A user profile and the location it currently reports."""

    id: UUID
    email: str
    display_name: str | None = None
    location: LocationComponents = field(default_factory=LocationComponents)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
