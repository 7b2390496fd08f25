"""Result objects returned by the community membership engine."""

from dataclasses import dataclass, field
from uuid import UUID

from domain.entities.group import Group, GroupRef, Membership, MembershipRole
from domain.entities.location import GroupCategory, LocationComponents


@dataclass
class MembershipChange:
    """Outcome of ensuring an active membership."""

    membership: Membership
    created: bool = False
    reactivated: bool = False

    @property
    def changed(self) -> bool:
        return self.created or self.reactivated


@dataclass
class ReconciliationResult:
    """What changed while bringing one category in line with a location."""

    user_id: UUID
    category: GroupCategory
    removed: list[GroupRef] = field(default_factory=list)
    group: Group | None = None
    group_created: bool = False
    membership_created: bool = False
    reactivated: bool = False

    @property
    def changed(self) -> bool:
        return bool(
            self.removed
            or self.group_created
            or self.membership_created
            or self.reactivated
        )


@dataclass
class MembershipView:
    """An active membership together with its group."""

    membership: Membership
    group: Group

    @property
    def is_admin(self) -> bool:
        return self.membership.role == MembershipRole.ADMIN

    @property
    def is_moderator(self) -> bool:
        return self.membership.role == MembershipRole.MODERATOR


@dataclass
class AuditReport:
    """Result of auditing and repairing one user's memberships."""

    user_id: UUID
    location: LocationComponents
    results: dict[GroupCategory, ReconciliationResult] = field(default_factory=dict)
    skipped: list[GroupCategory] = field(default_factory=list)
    memberships: list[MembershipView] = field(default_factory=list)


@dataclass
class MergeRecord:
    """One duplicate folded into its canonical group."""

    canonical_id: UUID
    duplicate_id: UUID
    location_key: str
    moved_members: int = 0
    skipped_members: int = 0


@dataclass
class MergeReport:
    """Result of a duplicate merge pass over one category."""

    category: GroupCategory
    groups_scanned: int = 0
    merges: list[MergeRecord] = field(default_factory=list)
    counters_repaired: int = 0

    @property
    def merged_count(self) -> int:
        return len(self.merges)


@dataclass
class RemovalReport:
    """Memberships hard-deleted because they no longer match a location."""

    user_id: UUID
    removed: list[GroupRef] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return len(self.removed)


@dataclass
class NearbyGroup:
    """A group found by the radius query, with its distance in kilometres."""

    group: Group
    distance_km: float
