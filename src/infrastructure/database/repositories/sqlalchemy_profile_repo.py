"""SQLAlchemy implementation of Profile repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import UserNotFoundError
from domain.entities.location import LocationComponents
from domain.entities.profile import Profile
from infrastructure.database.models import ProfileModel


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Profile | None:
        """Get a profile by user ID."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def update_location(
        self, id: UUID, location: LocationComponents
    ) -> Profile:
        """Replace the stored location of a profile."""
        model = await self._get_model(id)
        if not model:
            raise UserNotFoundError(str(id))

        model.location_street = location.street
        model.location_city = location.city
        model.location_state = location.state
        model.location_country = location.country
        model.location_formatted_address = location.formatted_address
        model.latitude = location.latitude
        model.longitude = location.longitude

        await self._session.flush()
        return self._to_entity(model)

    async def _get_model(self, id: UUID) -> ProfileModel | None:
        stmt = select(ProfileModel).where(ProfileModel.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: ProfileModel) -> Profile:
        """Convert ORM model to domain entity."""
        return Profile(
            id=model.id,
            email=model.email,
            display_name=model.display_name,
            location=LocationComponents(
                street=model.location_street,
                city=model.location_city,
                state=model.location_state,
                country=model.location_country,
                formatted_address=model.location_formatted_address,
                latitude=model.latitude,
                longitude=model.longitude,
            ),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
