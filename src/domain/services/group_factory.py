"""Lazy creation of community groups for unmatched locations."""

from dataclasses import replace
from typing import Any
from uuid import UUID

import structlog

from core.exceptions import ConflictError
from domain.entities.group import Group
from domain.entities.location import (
    GroupCategory,
    LocationComponents,
    format_location,
    validate_location,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.group_resolver import GroupResolver

logger = structlog.get_logger()

CATEGORY_TAGS: dict[GroupCategory, list[str]] = {
    GroupCategory.CITY: ["city", "local", "community"],
    GroupCategory.STREET: ["street", "neighborhood", "local", "community"],
}


def default_settings(category: GroupCategory) -> dict[str, Any]:
    """Settings every auto-created community starts with."""
    return {
        "allowInvites": True,
        "requireApproval": False,
        "allowPosts": True,
        "allowComments": True,
        "autoJoinEnabled": True,
        "isCityGroup": category == GroupCategory.CITY,
        "isStreetGroup": category == GroupCategory.STREET,
    }


def group_name(category: GroupCategory, location: LocationComponents) -> str:
    if category == GroupCategory.STREET:
        return f"{location.street} Street Community"
    return f"{location.city} Community"


def group_description(category: GroupCategory, location: LocationComponents) -> str:
    region = "".join(
        f", {part}" for part in (location.state, location.country) if part
    )
    if category == GroupCategory.STREET:
        return (
            f"Connect with neighbors on {location.street} in {location.city}{region}. "
            "Share local updates, events, and build a stronger neighborhood!"
        )
    return (
        f"Connect with people in {location.city}{region}. "
        "Share local events, news, and connect with your neighbors!"
    )


class GroupFactory:
    """Creates a group for a location unless one already resolves."""

    def __init__(self, resolver: GroupResolver) -> None:
        self._resolver = resolver

    async def create_if_absent(
        self,
        uow: IUnitOfWork,
        category: GroupCategory,
        location: LocationComponents,
        creator_id: UUID,
    ) -> tuple[Group, bool]:
        """Return the group for a location and whether it was created here.

        The resolver is re-run first to narrow the window in which two
        concurrent requests both create a group for the same place. The window
        is not closed; the duplicate merger repairs what slips through.
        """
        existing = await self._resolver.resolve(uow, category, location)
        if existing:
            return existing, False

        clean = location.trimmed()
        validate_location(category, clean)
        if category == GroupCategory.CITY:
            # City communities carry no street of their own.
            clean = replace(clean, street=None, formatted_address=None)
        if clean.formatted_address is None:
            clean = replace(clean, formatted_address=format_location(clean))

        group = Group(
            category=category,
            location=clean,
            name=group_name(category, clean),
            description=group_description(category, clean),
            created_by=creator_id,
            member_count=0,
            settings=default_settings(category),
            tags=list(CATEGORY_TAGS[category]),
        )

        try:
            created = await uow.groups.create(group)
        except ConflictError:
            # Lost the creation race: whoever won is now resolvable.
            winner = await self._resolver.resolve(uow, category, location)
            if winner is None:
                raise
            logger.info(
                "group_creation_conflict_resolved",
                category=category.value,
                group_id=str(winner.id),
            )
            return winner, False

        logger.info(
            "group_created",
            category=category.value,
            group_id=str(created.id),
            name=created.name,
            created_by=str(creator_id),
        )
        return created, True
