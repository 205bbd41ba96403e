"""Snapshot cache collaborators used by the profile fallback chain."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db import session_scope
from app.domain import CachedSnapshot, Platform
from app.repositories import SnapshotRepository


def snapshot_key(platform: Platform, handle: str) -> str:
    return f"{platform.value.lower()}:{handle.strip().lower()}"


class SnapshotCache(Protocol):
    """Last-known-good profile storage keyed by ``platform:handle``."""

    def get(self, key: str) -> CachedSnapshot | None:
        """Return the stored snapshot or ``None``."""

    def put(self, key: str, snapshot: CachedSnapshot) -> None:
        """Store ``snapshot``, replacing whatever was there."""


class InMemorySnapshotCache:
    def __init__(self) -> None:
        self._entries: dict[str, CachedSnapshot] = {}

    def get(self, key: str) -> CachedSnapshot | None:
        return self._entries.get(key)

    def put(self, key: str, snapshot: CachedSnapshot) -> None:
        self._entries[key] = snapshot

    def __len__(self) -> int:
        return len(self._entries)


class DatabaseSnapshotCache:
    """Persist snapshots in the ``profile_snapshots`` table (last writer wins).

    Database trouble degrades to a cache miss instead of failing the request.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> CachedSnapshot | None:
        try:
            with self._session_factory() as session:
                return SnapshotRepository(session).get_snapshot(key)
        except SQLAlchemyError:
            logger.exception("Failed to read profile snapshot {}", key)
            return None

    def put(self, key: str, snapshot: CachedSnapshot) -> None:
        try:
            with session_scope(self._session_factory) as session:
                SnapshotRepository(session).upsert_snapshot(key, snapshot)
        except SQLAlchemyError:
            logger.exception("Failed to store profile snapshot {}", key)


__all__ = [
    "DatabaseSnapshotCache",
    "InMemorySnapshotCache",
    "SnapshotCache",
    "snapshot_key",
]
