"""Community group domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from domain.entities.location import GroupCategory, LocationComponents


class GroupStatus(str, Enum):
    """Lifecycle status of a group. Reconciliation only touches active groups."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class MembershipRole(str, Enum):
    """Role within a group."""

    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"


class MembershipStatus(str, Enum):
    """Status of a user-to-group edge.

    Inactive rows keep the join history so a returning user gets the same row back.
    """

    ACTIVE = "active"
    INACTIVE = "inactive"
    BANNED = "banned"


@dataclass
class Group:
    """Domain entity for a location-scoped community group."""

    category: GroupCategory
    location: LocationComponents
    name: str
    created_by: UUID | None
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    status: GroupStatus = GroupStatus.ACTIVE
    member_count: int = 0
    settings: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == GroupStatus.ACTIVE


@dataclass
class Membership:
    """Domain entity for a group membership (one row per user and group)."""

    group_id: UUID
    user_id: UUID
    id: UUID = field(default_factory=uuid4)
    role: MembershipRole = MembershipRole.MEMBER
    status: MembershipStatus = MembershipStatus.ACTIVE
    joined_at: datetime = field(default_factory=datetime.utcnow)
    left_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE


@dataclass(frozen=True)
class GroupRef:
    """Lightweight reference to a group, used in reports."""

    id: UUID
    name: str
    category: GroupCategory
    city: str | None = None
    street: str | None = None

    @classmethod
    def from_group(cls, group: Group) -> "GroupRef":
        return cls(
            id=group.id,
            name=group.name,
            category=group.category,
            city=group.location.city,
            street=group.location.street,
        )
