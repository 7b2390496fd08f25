"""Process-local membership cache."""

import time
from threading import Lock
from uuid import UUID

import structlog

from domain.entities.reports import MembershipView

logger = structlog.get_logger()


class InMemoryMembershipCache:
    """In-memory implementation of IMembershipCache with a per-entry TTL."""

    def __init__(self, ttl_seconds: float = 300.0) -> None:
        self._ttl = ttl_seconds
        self._entries: dict[UUID, tuple[float, list[MembershipView]]] = {}
        self._lock = Lock()

    def get_memberships(self, user_id: UUID) -> list[MembershipView] | None:
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            expires_at, views = entry
            if expires_at <= time.monotonic():
                del self._entries[user_id]
                return None
            return list(views)

    def set_memberships(self, user_id: UUID, views: list[MembershipView]) -> None:
        with self._lock:
            self._entries[user_id] = (time.monotonic() + self._ttl, list(views))

    def invalidate_user(self, user_id: UUID) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def invalidate_all(self) -> None:
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        logger.info("membership_cache_cleared", entries=dropped)
