"""Community membership API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from api.v1.dependencies import get_community_query_service, get_community_service
from api.v1.schemas.common import COMMON_ERROR_RESPONSES
from api.v1.schemas.community import (
    AuditDetailResponse,
    AuditResponse,
    LocationPayload,
    MembershipListResponse,
    MembershipResponse,
    MergeDetailResponse,
    MergeListResponse,
    MergeReportResponse,
    NearbyGroupResponse,
    NearbyListResponse,
    ReconciliationDetailResponse,
    ReconciliationResponse,
    RemovalDetailResponse,
    RemovalResponse,
)
from core.exceptions import InvalidCategoryError
from core.rate_limit import MAINTENANCE_LIMIT, READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.location import GroupCategory
from domain.services.community_query_service import CommunityQueryService
from domain.services.community_service import CommunityService

users_router = APIRouter(
    prefix="/users/{user_id}",
    tags=["communities"],
    responses=COMMON_ERROR_RESPONSES,
)
communities_router = APIRouter(
    prefix="/communities",
    tags=["communities"],
    responses=COMMON_ERROR_RESPONSES,
)


def _parse_category(value: str) -> GroupCategory:
    try:
        return GroupCategory(value.strip().lower())
    except ValueError:
        raise InvalidCategoryError(value) from None


@users_router.put(
    "/location",
    response_model=AuditDetailResponse,
    summary="Update a user's location",
    responses={
        200: {"description": "Location stored and memberships audited"},
        400: {"description": "Invalid location"},
        404: {"description": "User not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_location(
    request: Request,
    user_id: UUID,
    body: LocationPayload,
    service: CommunityService = Depends(get_community_service),
) -> AuditDetailResponse:
    """Store a new location and move the user into the matching communities."""
    report = await service.update_location(user_id, body.to_components())
    return AuditDetailResponse(data=AuditResponse.from_report(report))


@users_router.get(
    "/communities",
    response_model=MembershipListResponse,
    summary="List a user's communities",
    responses={
        200: {"description": "Active memberships with their groups"},
        400: {"description": "Unknown category"},
        404: {"description": "User not found"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_memberships(
    request: Request,
    user_id: UUID,
    category: str | None = Query(None, description="city or street"),
    service: CommunityService = Depends(get_community_service),
) -> MembershipListResponse:
    """Get the user's active community memberships."""
    views = await service.list_memberships(
        user_id, _parse_category(category) if category else None
    )
    data = [MembershipResponse.from_view(view) for view in views]
    return MembershipListResponse(data=data, meta={"total": len(data)})


@users_router.post(
    "/communities/audit",
    response_model=AuditDetailResponse,
    summary="Audit a user's communities",
    responses={
        200: {"description": "Memberships checked against the stored location"},
        404: {"description": "User not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def audit_user(
    request: Request,
    user_id: UUID,
    service: CommunityService = Depends(get_community_service),
) -> AuditDetailResponse:
    """Re-run reconciliation for both categories. Safe to repeat."""
    report = await service.audit_user(user_id)
    return AuditDetailResponse(data=AuditResponse.from_report(report))


@users_router.delete(
    "/communities/mismatched",
    response_model=RemovalDetailResponse,
    summary="Delete mismatched memberships",
    responses={
        200: {"description": "Memberships that no longer match were deleted"},
        404: {"description": "User not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def remove_mismatched(
    request: Request,
    user_id: UUID,
    service: CommunityService = Depends(get_community_service),
) -> RemovalDetailResponse:
    """Hard-delete memberships that do not match the stored location."""
    report = await service.remove_mismatched_memberships(user_id)
    return RemovalDetailResponse(data=RemovalResponse.from_report(report))


@users_router.post(
    "/communities/{category}/reconcile",
    response_model=ReconciliationDetailResponse,
    summary="Reconcile one community category",
    responses={
        200: {"description": "Membership brought in line with the location"},
        400: {"description": "Invalid location or category"},
        404: {"description": "User not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def reconcile(
    request: Request,
    user_id: UUID,
    category: str,
    body: LocationPayload,
    service: CommunityService = Depends(get_community_service),
) -> ReconciliationDetailResponse:
    """Move the user into the community of a category matching the location."""
    result = await service.reconcile_user_location(
        user_id, _parse_category(category), body.to_components()
    )
    return ReconciliationDetailResponse(data=ReconciliationResponse.from_result(result))


@communities_router.get(
    "/nearby",
    response_model=NearbyListResponse,
    summary="Find communities near a point",
    responses={
        200: {"description": "Groups within the radius, closest first"},
        400: {"description": "Invalid coordinates or category"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def nearby(
    request: Request,
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    category: str = Query("street", description="city or street"),
    radius_km: float | None = Query(None, gt=0, le=500),
    service: CommunityQueryService = Depends(get_community_query_service),
) -> NearbyListResponse:
    """Get active communities around a coordinate."""
    found = await service.nearby(_parse_category(category), latitude, longitude, radius_km)
    data = [NearbyGroupResponse.from_nearby(item) for item in found]
    return NearbyListResponse(data=data, meta={"total": len(data)})


@communities_router.post(
    "/merge-duplicates",
    response_model=MergeListResponse,
    status_code=status.HTTP_200_OK,
    summary="Merge duplicate communities of every category",
)
@limiter.limit(MAINTENANCE_LIMIT)  # type: ignore[untyped-decorator]
async def merge_all_duplicates(
    request: Request,
    service: CommunityService = Depends(get_community_service),
) -> MergeListResponse:
    """Run the duplicate merge pass for city and street communities."""
    reports = await service.merge_all_duplicates()
    data = [MergeReportResponse.from_report(report) for report in reports]
    return MergeListResponse(
        data=data,
        meta={"merged_count": sum(report.merged_count for report in reports)},
    )


@communities_router.post(
    "/{category}/merge-duplicates",
    response_model=MergeDetailResponse,
    summary="Merge duplicate communities of a category",
    responses={
        200: {"description": "Duplicates folded into their canonical groups"},
        400: {"description": "Unknown category"},
    },
)
@limiter.limit(MAINTENANCE_LIMIT)  # type: ignore[untyped-decorator]
async def merge_duplicates(
    request: Request,
    category: str,
    service: CommunityService = Depends(get_community_service),
) -> MergeDetailResponse:
    """Fold duplicate groups of one category into the oldest of each set."""
    report = await service.merge_duplicates(_parse_category(category))
    return MergeDetailResponse(data=MergeReportResponse.from_report(report))
