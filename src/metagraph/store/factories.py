"""Factory helpers that instantiate entity stores based on configuration."""

from __future__ import annotations

from sqlalchemy.orm import sessionmaker

from metagraph.settings import Settings, get_settings
from metagraph.store.entity_store import EntityStore, InMemoryEntityStore, SqlEntityStore
from metagraph.store.sql import METADATA, build_engine


def build_entity_store(settings: Settings | None = None) -> EntityStore:
    """Return an entity store that matches the configured backend.

    The SQLite backend creates any missing tables before returning.

    Raises:
        NotImplementedError: If the configured backend is not supported.
    """

    resolved = settings or get_settings()
    backend = resolved.storage.backend
    if backend == "memory":
        return InMemoryEntityStore()

    if backend == "sqlite":
        engine = build_engine(settings=resolved)
        METADATA.create_all(engine)
        factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
        return SqlEntityStore(session_factory=factory)

    raise NotImplementedError(f"Unsupported storage backend '{backend}'")


__all__ = ["build_entity_store"]
