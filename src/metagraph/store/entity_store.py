"""Entity stores offering create-or-overwrite-by-id semantics.

Stores never update entities in place and never span a transaction across
more than one entity: each :meth:`EntityStore.save` call is durable on return.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Tuple, Type, TypeVar

import sqlalchemy as sa
from sqlalchemy.orm import Session, sessionmaker

from metagraph.normalization.schema import Entity
from metagraph.store import sql as sql_schema
from metagraph.store.sql import session_factory as default_session_factory

LOGGER = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class EntityStore:
    """Interface shared by every entity store backend."""

    def save(self, entity: Entity) -> None:  # pragma: no cover - interface only
        """Create ``entity`` or overwrite the stored entity with the same id."""
        raise NotImplementedError

    def get(self, entity_cls: Type[E], entity_id: str) -> E | None:  # pragma: no cover - interface only
        """Return the stored entity, or ``None`` when the id is unknown."""
        raise NotImplementedError

    def exists(self, entity_cls: Type[Entity], entity_id: str) -> bool:
        return self.get(entity_cls, entity_id) is not None


class InMemoryEntityStore(EntityStore):
    """Dictionary-backed store that also keeps an ordered log of writes."""

    def __init__(self) -> None:
        self._entities: Dict[Tuple[str, str], Entity] = {}
        self.writes: List[Tuple[str, str]] = []

    def save(self, entity: Entity) -> None:
        key = (entity.entity_type, entity.id)
        self._entities[key] = copy.deepcopy(entity)
        self.writes.append(key)

    def get(self, entity_cls: Type[E], entity_id: str) -> E | None:
        stored = self._entities.get((entity_cls.entity_type, entity_id))
        return copy.deepcopy(stored) if stored is not None else None

    def all(self, entity_cls: Type[E]) -> List[E]:
        """Return every stored entity of ``entity_cls`` in first-write order."""

        return [
            copy.deepcopy(entity)
            for (entity_type, _), entity in self._entities.items()
            if entity_type == entity_cls.entity_type
        ]

    def __len__(self) -> int:
        return len(self._entities)


class SqlEntityStore(EntityStore):
    """Persist entities into the SQL tables declared in :mod:`metagraph.store.sql`."""

    def __init__(self, *, session_factory: sessionmaker | None = None) -> None:
        self._session_factory = session_factory or default_session_factory()

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def save(self, entity: Entity) -> None:
        table = _table_for(type(entity))
        values = entity.to_dict()
        entity_id = values.pop("id")
        with self._session_scope() as session:
            result = session.execute(sa.update(table).where(table.c.id == entity_id).values(**values))
            if result.rowcount == 0:
                session.execute(sa.insert(table).values(id=entity_id, **values))
        LOGGER.debug("Saved %s id=%s", entity.entity_type, entity_id)

    def get(self, entity_cls: Type[E], entity_id: str) -> E | None:
        table = _table_for(entity_cls)
        with self._session_scope() as session:
            row = session.execute(sa.select(table).where(table.c.id == entity_id)).one_or_none()
        if row is None:
            return None
        return entity_cls(**dict(row._mapping))


def _table_for(entity_cls: Type[Entity]) -> sa.Table:
    try:
        return sql_schema.TABLES[entity_cls.entity_type]
    except KeyError as exc:
        raise ValueError(f"No table registered for entity type '{entity_cls.entity_type}'") from exc


__all__ = ["EntityStore", "InMemoryEntityStore", "SqlEntityStore"]
