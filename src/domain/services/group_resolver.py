"""Tiered lookup of the canonical group for a location."""

import structlog

from domain.entities.group import Group
from domain.entities.location import GroupCategory, LocationComponents, validate_location
from domain.repositories.group_repository import MatchMode
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

# First tier that yields a candidate wins.
MATCH_TIERS: tuple[MatchMode, ...] = (
    MatchMode.EXACT,
    MatchMode.NORMALIZED,
    MatchMode.PARTIAL,
)


class GroupResolver:
    """Finds the single group that represents a location, if any.

    Tiers are tried in order: raw string equality, then trimmed
    case-insensitive equality, then case-insensitive containment in either
    direction. Within a tier the earliest created group is returned. Not
    finding a group is a normal outcome and returns None.
    """

    async def resolve(
        self,
        uow: IUnitOfWork,
        category: GroupCategory,
        location: LocationComponents,
    ) -> Group | None:
        validate_location(category, location)
        filters = location.filters(category)

        for mode in MATCH_TIERS:
            candidates = await uow.groups.find_by_category_and_filters(
                category, filters, mode
            )
            if candidates:
                group = min(candidates, key=lambda g: g.created_at)
                logger.debug(
                    "group_resolved",
                    category=category.value,
                    tier=mode.value,
                    group_id=str(group.id),
                    candidates=len(candidates),
                )
                return group

        logger.debug("group_not_resolved", category=category.value, filters=filters)
        return None
