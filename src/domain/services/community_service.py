"""Entry points of the location-based community membership engine."""

from collections.abc import Callable
from dataclasses import replace
from uuid import UUID

import structlog

from core.exceptions import UserNotFoundError
from domain.entities.group import GroupRef
from domain.entities.location import (
    GroupCategory,
    LocationComponents,
    parse_formatted_address,
    validate_coordinates,
)
from domain.entities.profile import Profile
from domain.entities.reports import (
    AuditReport,
    MembershipView,
    MergeReport,
    ReconciliationResult,
    RemovalReport,
)
from domain.repositories.membership_cache import IMembershipCache
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.duplicate_merger import DuplicateMerger
from domain.services.group_factory import GroupFactory
from domain.services.group_resolver import GroupResolver
from domain.services.membership_reconciler import MembershipReconciler
from domain.services.mismatch_sweeper import MismatchSweeper

logger = structlog.get_logger()


class CommunityService:
    """Service layer for automatic city and street community membership.

    Each public method is one unit of work: everything it reads and writes
    commits together or not at all. The membership cache is invalidated only
    after a successful commit.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        cache: IMembershipCache | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._cache = cache
        resolver = GroupResolver()
        reconciler = MembershipReconciler()
        self._sweeper = MismatchSweeper(
            resolver=resolver,
            factory=GroupFactory(resolver),
            reconciler=reconciler,
        )
        self._merger = DuplicateMerger()

    async def reconcile_user_location(
        self,
        user_id: UUID,
        category: GroupCategory,
        location: LocationComponents,
    ) -> ReconciliationResult:
        """Move a user into the right community of a category for a location."""
        async with self._uow_factory() as uow:
            await self._require_profile(uow, user_id)
            result = await self._sweeper.reconcile_user_location(
                uow, user_id, category, location
            )
            await uow.commit()

        self._invalidate_user(user_id)
        return result

    async def audit_user(self, user_id: UUID) -> AuditReport:
        """Re-run reconciliation for both categories from the stored location.

        Safe to repeat: a second run over a consistent user changes nothing.
        """
        async with self._uow_factory() as uow:
            profile = await self._require_profile(uow, user_id)
            report = await self._audit(uow, profile)
            await uow.commit()

        self._invalidate_user(user_id)
        return report

    async def update_location(
        self, user_id: UUID, location: LocationComponents
    ) -> AuditReport:
        """Store a user's new location and audit their memberships against it."""
        if not location.has("city") and location.formatted_address:
            parsed = parse_formatted_address(location.formatted_address)
            location = replace(
                parsed, latitude=location.latitude, longitude=location.longitude
            )
        validate_coordinates(location.latitude, location.longitude)

        async with self._uow_factory() as uow:
            await self._require_profile(uow, user_id)
            profile = await uow.profiles.update_location(user_id, location)
            report = await self._audit(uow, profile)
            await uow.commit()

        self._invalidate_user(user_id)
        logger.info(
            "user_location_updated",
            user_id=str(user_id),
            city=location.city,
            street=location.street,
        )
        return report

    async def remove_mismatched_memberships(
        self,
        user_id: UUID,
        location: LocationComponents | None = None,
    ) -> RemovalReport:
        """Hard-delete memberships of any category that do not match a location.

        Defaults to the user's stored location.
        """
        async with self._uow_factory() as uow:
            profile = await self._require_profile(uow, user_id)
            removed = await self._sweeper.remove_mismatched(
                uow, user_id, location or profile.location
            )
            await uow.commit()

        self._invalidate_user(user_id)
        return RemovalReport(user_id=user_id, removed=removed)

    async def merge_duplicates(self, category: GroupCategory) -> MergeReport:
        """Maintenance pass folding duplicate groups of a category together."""
        async with self._uow_factory() as uow:
            report = await self._merger.merge_duplicates(uow, category)
            await uow.commit()

        if self._cache and (report.merged_count or report.counters_repaired):
            self._cache.invalidate_all()
        return report

    async def merge_all_duplicates(self) -> list[MergeReport]:
        """Run the merge pass for every category, one transaction each."""
        return [await self.merge_duplicates(category) for category in GroupCategory]

    async def list_memberships(
        self,
        user_id: UUID,
        category: GroupCategory | None = None,
    ) -> list[MembershipView]:
        """Active memberships of a user, optionally limited to one category."""
        views = self._cache.get_memberships(user_id) if self._cache else None
        if views is None:
            async with self._uow_factory() as uow:
                await self._require_profile(uow, user_id)
                views = await self._load_memberships(uow, user_id)
            if self._cache:
                self._cache.set_memberships(user_id, views)

        if category is None:
            return list(views)
        return [view for view in views if view.group.category == category]

    # --- Internal helpers ---

    async def _audit(self, uow: IUnitOfWork, profile: Profile) -> AuditReport:
        location = profile.location
        report = AuditReport(user_id=profile.id, location=location)

        if not location.has("city"):
            # No city means no applicable category at all.
            report.skipped = list(GroupCategory)
            logger.info("audit_skipped_no_city", user_id=str(profile.id))
        else:
            report.results[GroupCategory.CITY] = await self._sweeper.reconcile_user_location(
                uow, profile.id, GroupCategory.CITY, location
            )
            if location.has("street"):
                report.results[GroupCategory.STREET] = (
                    await self._sweeper.reconcile_user_location(
                        uow, profile.id, GroupCategory.STREET, location
                    )
                )
            else:
                removed: list[GroupRef] = await self._sweeper.deactivate_category(
                    uow, profile.id, GroupCategory.STREET
                )
                report.results[GroupCategory.STREET] = ReconciliationResult(
                    user_id=profile.id,
                    category=GroupCategory.STREET,
                    removed=removed,
                )
                report.skipped.append(GroupCategory.STREET)

        report.memberships = await self._load_memberships(uow, profile.id)
        logger.info(
            "user_memberships_audited",
            user_id=str(profile.id),
            changed=any(r.changed for r in report.results.values()),
            memberships=len(report.memberships),
        )
        return report

    async def _load_memberships(
        self, uow: IUnitOfWork, user_id: UUID
    ) -> list[MembershipView]:
        rows = await uow.memberships.list_active_by_user(user_id)
        return [MembershipView(membership=m, group=g) for m, g in rows]

    async def _require_profile(self, uow: IUnitOfWork, user_id: UUID) -> Profile:
        profile = await uow.profiles.get(user_id)
        if not profile:
            raise UserNotFoundError(str(user_id))
        return profile

    def _invalidate_user(self, user_id: UUID) -> None:
        if self._cache:
            self._cache.invalidate_user(user_id)
