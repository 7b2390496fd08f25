"""Pydantic schemas for the community membership API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from domain.entities.group import Group, GroupRef
from domain.entities.location import GroupCategory, LocationComponents
from domain.entities.reports import (
    AuditReport,
    MembershipView,
    MergeRecord,
    MergeReport,
    NearbyGroup,
    ReconciliationResult,
    RemovalReport,
)


class LocationPayload(BaseModel):
    """Resolved location components supplied by the client."""

    street: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=255)
    state: str | None = Field(None, max_length=255)
    country: str | None = Field(None, max_length=255)
    formatted_address: str | None = Field(None, max_length=1000)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)

    def to_components(self) -> LocationComponents:
        return LocationComponents(
            street=self.street,
            city=self.city,
            state=self.state,
            country=self.country,
            formatted_address=self.formatted_address,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class CommunityGroupResponse(BaseModel):
    """Schema for a community group."""

    id: UUID
    category: GroupCategory
    name: str
    description: str | None
    street: str | None
    city: str | None
    state: str | None
    country: str | None
    formatted_address: str | None
    latitude: float | None
    longitude: float | None
    member_count: int
    status: str
    tags: list[str]
    settings: dict[str, Any]
    created_at: datetime

    @classmethod
    def from_group(cls, group: Group) -> "CommunityGroupResponse":
        location = group.location
        return cls(
            id=group.id,
            category=group.category,
            name=group.name,
            description=group.description,
            street=location.street,
            city=location.city,
            state=location.state,
            country=location.country,
            formatted_address=location.formatted_address,
            latitude=location.latitude,
            longitude=location.longitude,
            member_count=group.member_count,
            status=group.status.value,
            tags=group.tags,
            settings=group.settings,
            created_at=group.created_at,
        )


class GroupRefResponse(BaseModel):
    """Schema for a group referenced in a change report."""

    id: UUID
    name: str
    category: GroupCategory
    city: str | None
    street: str | None

    @classmethod
    def from_ref(cls, ref: GroupRef) -> "GroupRefResponse":
        return cls(
            id=ref.id,
            name=ref.name,
            category=ref.category,
            city=ref.city,
            street=ref.street,
        )


class MembershipResponse(BaseModel):
    """Schema for an active membership and its group."""

    id: UUID
    group_id: UUID
    role: str
    status: str
    is_admin: bool
    is_moderator: bool
    joined_at: datetime
    group: CommunityGroupResponse

    @classmethod
    def from_view(cls, view: MembershipView) -> "MembershipResponse":
        return cls(
            id=view.membership.id,
            group_id=view.membership.group_id,
            role=view.membership.role.value,
            status=view.membership.status.value,
            is_admin=view.is_admin,
            is_moderator=view.is_moderator,
            joined_at=view.membership.joined_at,
            group=CommunityGroupResponse.from_group(view.group),
        )


class MembershipListResponse(BaseModel):
    """Schema for list of memberships response."""

    data: list[MembershipResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class ReconciliationResponse(BaseModel):
    """Schema for the outcome of reconciling one category."""

    category: GroupCategory
    changed: bool
    removed: list[GroupRefResponse]
    group: CommunityGroupResponse | None
    group_created: bool
    membership_created: bool
    reactivated: bool

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> "ReconciliationResponse":
        return cls(
            category=result.category,
            changed=result.changed,
            removed=[GroupRefResponse.from_ref(ref) for ref in result.removed],
            group=CommunityGroupResponse.from_group(result.group) if result.group else None,
            group_created=result.group_created,
            membership_created=result.membership_created,
            reactivated=result.reactivated,
        )


class ReconciliationDetailResponse(BaseModel):
    """Schema for single reconciliation response."""

    data: ReconciliationResponse


class AuditResponse(BaseModel):
    """Schema for a membership audit."""

    user_id: UUID
    results: list[ReconciliationResponse]
    skipped: list[GroupCategory]
    memberships: list[MembershipResponse]

    @classmethod
    def from_report(cls, report: AuditReport) -> "AuditResponse":
        return cls(
            user_id=report.user_id,
            results=[
                ReconciliationResponse.from_result(result)
                for result in report.results.values()
            ],
            skipped=report.skipped,
            memberships=[MembershipResponse.from_view(view) for view in report.memberships],
        )


class AuditDetailResponse(BaseModel):
    """Schema for single audit response."""

    data: AuditResponse


class RemovalResponse(BaseModel):
    """Schema for the hard-delete sweep."""

    user_id: UUID
    removed_count: int
    removed: list[GroupRefResponse]

    @classmethod
    def from_report(cls, report: RemovalReport) -> "RemovalResponse":
        return cls(
            user_id=report.user_id,
            removed_count=report.removed_count,
            removed=[GroupRefResponse.from_ref(ref) for ref in report.removed],
        )


class RemovalDetailResponse(BaseModel):
    """Schema for single removal response."""

    data: RemovalResponse


class MergeRecordResponse(BaseModel):
    """Schema for one duplicate folded into its canonical group."""

    canonical_id: UUID
    duplicate_id: UUID
    location_key: str
    moved_members: int
    skipped_members: int

    @classmethod
    def from_record(cls, record: MergeRecord) -> "MergeRecordResponse":
        return cls(
            canonical_id=record.canonical_id,
            duplicate_id=record.duplicate_id,
            location_key=record.location_key,
            moved_members=record.moved_members,
            skipped_members=record.skipped_members,
        )


class MergeReportResponse(BaseModel):
    """Schema for a merge pass over one category."""

    category: GroupCategory
    groups_scanned: int
    merged_count: int
    counters_repaired: int
    merges: list[MergeRecordResponse]

    @classmethod
    def from_report(cls, report: MergeReport) -> "MergeReportResponse":
        return cls(
            category=report.category,
            groups_scanned=report.groups_scanned,
            merged_count=report.merged_count,
            counters_repaired=report.counters_repaired,
            merges=[MergeRecordResponse.from_record(record) for record in report.merges],
        )


class MergeDetailResponse(BaseModel):
    """Schema for single merge pass response."""

    data: MergeReportResponse


class MergeListResponse(BaseModel):
    """Schema for merge passes over every category."""

    data: list[MergeReportResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class NearbyGroupResponse(BaseModel):
    """Schema for a group found near a point."""

    distance_km: float
    group: CommunityGroupResponse

    @classmethod
    def from_nearby(cls, item: NearbyGroup) -> "NearbyGroupResponse":
        return cls(
            distance_km=item.distance_km,
            group=CommunityGroupResponse.from_group(item.group),
        )


class NearbyListResponse(BaseModel):
    """Schema for list of nearby groups response."""

    data: list[NearbyGroupResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
