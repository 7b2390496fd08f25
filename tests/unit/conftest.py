"""Shared fixtures for unit tests."""

from datetime import datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.group import Group, Membership, MembershipRole, MembershipStatus
from domain.entities.location import GroupCategory, LocationComponents


class FakeUnitOfWork:
    """Fake Unit of Work with the three repository mocks for unit testing."""

    def __init__(self) -> None:
        self.groups = AsyncMock()
        self.memberships = AsyncMock()
        self.profiles = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


def _make_group(
    category: GroupCategory = GroupCategory.CITY,
    city: str = "Kolkata",
    street: str | None = None,
    state: str | None = "West Bengal",
    country: str | None = "India",
    member_count: int = 1,
    age_minutes: int = 0,
    **kwargs: Any,
) -> Group:
    """Build a group entity; larger age_minutes means created earlier."""
    return Group(
        category=category,
        location=LocationComponents(
            street=street, city=city, state=state, country=country
        ),
        name=f"{street or city} Community",
        created_by=uuid4(),
        member_count=member_count,
        created_at=datetime(2025, 1, 1, 12, 0) - timedelta(minutes=age_minutes),
        **kwargs,
    )


def _make_membership(
    group: Group,
    user_id: UUID,
    status: MembershipStatus = MembershipStatus.ACTIVE,
    role: MembershipRole = MembershipRole.MEMBER,
) -> Membership:
    """Build a membership entity for a group."""
    return Membership(group_id=group.id, user_id=user_id, role=role, status=status)


@pytest.fixture
def make_group() -> Any:
    """Factory for group entities."""
    return _make_group


@pytest.fixture
def make_membership() -> Any:
    """Factory for membership entities."""
    return _make_membership
