"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.entities.location import GroupCategory
from domain.services.community_query_service import CommunityQueryService
from domain.services.community_service import CommunityService
from infrastructure.cache.memory_cache import InMemoryMembershipCache
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_membership_cache() -> InMemoryMembershipCache:
    """Get the process-wide membership cache."""
    return InMemoryMembershipCache(ttl_seconds=settings.membership_cache_ttl_seconds)


@lru_cache
def get_community_service() -> CommunityService:
    """Get Community service instance."""
    return CommunityService(get_uow_factory(), cache=get_membership_cache())


@lru_cache
def get_community_query_service() -> CommunityQueryService:
    """Get Community query service instance."""
    return CommunityQueryService(
        get_uow_factory(),
        default_radius_km={
            GroupCategory.CITY: settings.nearby_city_radius_km,
            GroupCategory.STREET: settings.nearby_street_radius_km,
        },
        max_results=settings.nearby_max_results,
    )
