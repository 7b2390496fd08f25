"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.exceptions import StoreError
from infrastructure.database.repositories.sqlalchemy_group_repo import SQLAlchemyGroupRepository
from infrastructure.database.repositories.sqlalchemy_membership_repo import (
    SQLAlchemyMembershipRepository,
)
from infrastructure.database.repositories.sqlalchemy_profile_repo import SQLAlchemyProfileRepository

logger = structlog.get_logger()


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy.

    Driver and connection failures surface as StoreError so callers can
    treat them as retryable without knowing about SQLAlchemy.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    @property
    def groups(self) -> SQLAlchemyGroupRepository:
        """Get group repository."""
        return SQLAlchemyGroupRepository(self._require_session())

    @property
    def memberships(self) -> SQLAlchemyMembershipRepository:
        """Get membership repository."""
        return SQLAlchemyMembershipRepository(self._require_session())

    @property
    def profiles(self) -> SQLAlchemyProfileRepository:
        """Get profile repository."""
        return SQLAlchemyProfileRepository(self._require_session())

    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            try:
                await self._session.commit()
            except SQLAlchemyError as exc:
                logger.error("uow_commit_failed", error=str(exc))
                raise StoreError() from exc

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    def _require_session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._session

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager and create session."""
        self._session = self._session_factory()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager and cleanup."""
        if self._session:
            try:
                if exc_type:
                    await self.rollback()
            finally:
                await self._session.close()
                self._session = None

        if isinstance(exc_val, SQLAlchemyError):
            logger.error("uow_operation_failed", error=str(exc_val))
            raise StoreError() from exc_val
