"""Read-only discovery queries over community groups."""

from collections.abc import Callable

from domain.entities.location import GroupCategory, validate_coordinates
from domain.entities.reports import NearbyGroup
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.distance import haversine_km

DEFAULT_RADIUS_KM: dict[GroupCategory, float] = {
    GroupCategory.CITY: 50.0,
    GroupCategory.STREET: 5.0,
}


class CommunityQueryService:
    """Finds communities near a point. Never writes."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        default_radius_km: dict[GroupCategory, float] | None = None,
        max_results: int = 20,
    ) -> None:
        self._uow_factory = uow_factory
        self._default_radius_km = default_radius_km or dict(DEFAULT_RADIUS_KM)
        self._max_results = max_results

    async def nearby(
        self,
        category: GroupCategory,
        latitude: float,
        longitude: float,
        radius_km: float | None = None,
    ) -> list[NearbyGroup]:
        """Active groups with coordinates within the radius, closest first."""
        validate_coordinates(latitude, longitude)
        radius = radius_km if radius_km is not None else self._default_radius_km[category]

        async with self._uow_factory() as uow:
            groups = await uow.groups.list_with_coordinates(category)

        found = []
        for group in groups:
            coordinates = group.location.coordinates
            if coordinates is None:
                continue
            distance = haversine_km(latitude, longitude, *coordinates)
            if distance <= radius:
                found.append(NearbyGroup(group=group, distance_km=round(distance, 3)))

        found.sort(key=lambda item: item.distance_km)
        return found[: self._max_results]
