"""SQLAlchemy implementation of Group repository."""

from uuid import UUID

from sqlalchemy import (
    ColumnElement,
    String,
    and_,
    case,
    func,
    literal,
    or_,
    select,
    update,
)
from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError, GroupNotFoundError
from domain.entities.group import Group, GroupStatus
from domain.entities.location import (
    GroupCategory,
    LocationComponents,
    location_key,
    normalize,
)
from domain.repositories.group_repository import MatchMode
from infrastructure.database.models import CommunityGroupModel, GroupMembershipModel

_LIKE_ESCAPE = "\\"

_LOCATION_COLUMNS = {
    "street": CommunityGroupModel.street,
    "city": CommunityGroupModel.city,
    "state": CommunityGroupModel.state,
    "country": CommunityGroupModel.country,
}


def group_model_to_entity(model: CommunityGroupModel) -> Group:
    """Convert ORM model to domain entity."""
    return Group(
        id=model.id,
        category=GroupCategory(model.category),
        location=LocationComponents(
            street=model.street,
            city=model.city,
            state=model.state,
            country=model.country,
            formatted_address=model.formatted_address,
            latitude=model.latitude,
            longitude=model.longitude,
        ),
        name=model.name,
        description=model.description,
        status=GroupStatus(model.status),
        member_count=model.member_count,
        settings=dict(model.settings or {}),
        tags=list(model.tags or []),
        created_by=model.created_by,
        created_at=model.created_at,
    )


def _match(column: ColumnElement, value: str, mode: MatchMode) -> ColumnElement[bool]:
    """Comparison of one stored component against a query value."""
    if mode == MatchMode.EXACT:
        return column == value

    stored = func.lower(func.trim(column))
    wanted = normalize(value)
    if mode == MatchMode.NORMALIZED:
        return stored == wanted

    # Containment either way: the stored value in the query or the reverse.
    return or_(
        stored.contains(wanted, autoescape=True),
        and_(
            stored != "",
            literal(wanted, String).contains(_escape_like(stored), escape=_LIKE_ESCAPE),
        ),
    )


def _escape_like(expr: ColumnElement) -> ColumnElement[str]:
    """Escape LIKE metacharacters in a column value used as a pattern."""
    for char in (_LIKE_ESCAPE, "%", "_"):
        expr = func.replace(expr, char, _LIKE_ESCAPE + char, type_=String)
    return expr


class SQLAlchemyGroupRepository:
    """SQLAlchemy implementation of IGroupRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Group | None:
        """Get a group by ID."""
        stmt = (
            select(CommunityGroupModel)
            .where(CommunityGroupModel.id == id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_by_category_and_filters(
        self,
        category: GroupCategory,
        filters: dict[str, str],
        match_mode: MatchMode,
    ) -> list[Group]:
        """Find active groups of a category matching every filter."""
        stmt = select(CommunityGroupModel).where(
            CommunityGroupModel.category == category.value,
            CommunityGroupModel.status == GroupStatus.ACTIVE.value,
        )
        for name, value in filters.items():
            stmt = stmt.where(_match(_LOCATION_COLUMNS[name], value, match_mode))
        stmt = stmt.order_by(CommunityGroupModel.created_at).execution_options(
            populate_existing=True
        )

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_active_by_category(self, category: GroupCategory) -> list[Group]:
        """List active groups of a category, oldest first."""
        stmt = (
            select(CommunityGroupModel)
            .where(
                CommunityGroupModel.category == category.value,
                CommunityGroupModel.status == GroupStatus.ACTIVE.value,
            )
            .order_by(CommunityGroupModel.created_at, CommunityGroupModel.id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def list_with_coordinates(self, category: GroupCategory) -> list[Group]:
        """List active groups of a category that have coordinates."""
        stmt = select(CommunityGroupModel).where(
            CommunityGroupModel.category == category.value,
            CommunityGroupModel.status == GroupStatus.ACTIVE.value,
            CommunityGroupModel.latitude.is_not(None),
            CommunityGroupModel.longitude.is_not(None),
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, group: Group) -> Group:
        """Create a new group."""
        model = self._to_model(group)
        try:
            async with self._session.begin_nested():
                self._session.add(model)
                await self._session.flush()
        except IntegrityError as exc:
            raise ConflictError("group") from exc
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update_member_count(self, id: UUID, count: int) -> None:
        """Overwrite the stored member counter."""
        stmt = (
            update(CommunityGroupModel)
            .where(CommunityGroupModel.id == id)
            .values(member_count=max(count, 0))
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    async def adjust_member_count(self, id: UUID, delta: int) -> int:
        """Atomically add delta to the member counter, flooring at zero."""
        locked = (
            select(CommunityGroupModel.member_count)
            .where(CommunityGroupModel.id == id)
            .with_for_update()
        )
        previous = (await self._session.execute(locked)).scalar_one_or_none()
        if previous is None:
            raise GroupNotFoundError(str(id))

        adjusted = CommunityGroupModel.member_count + delta
        stmt = (
            update(CommunityGroupModel)
            .where(CommunityGroupModel.id == id)
            .values(member_count=case((adjusted < 0, 0), else_=adjusted))
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)
        return previous

    async def delete(self, id: UUID) -> bool:
        """Delete a group and its memberships."""
        await self._session.execute(
            sa_delete(GroupMembershipModel).where(GroupMembershipModel.group_id == id)
        )
        result = await self._session.execute(
            sa_delete(CommunityGroupModel).where(CommunityGroupModel.id == id)
        )
        return bool(result.rowcount)

    def _to_entity(self, model: CommunityGroupModel) -> Group:
        """Convert ORM model to domain entity."""
        return group_model_to_entity(model)

    def _to_model(self, entity: Group) -> CommunityGroupModel:
        """Convert domain entity to ORM model."""
        location = entity.location
        return CommunityGroupModel(
            id=entity.id,
            category=entity.category.value,
            name=entity.name,
            description=entity.description,
            status=entity.status.value,
            member_count=entity.member_count,
            street=location.street,
            city=location.city,
            state=location.state,
            country=location.country,
            formatted_address=location.formatted_address,
            latitude=location.latitude,
            longitude=location.longitude,
            location_key=location_key(entity.category, location),
            settings=entity.settings,
            tags=entity.tags,
            created_by=entity.created_by,
            created_at=entity.created_at,
        )
