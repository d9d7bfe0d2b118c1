"""In-memory entity store and unit of work.

The catalog keeps committed entities; every unit of work operates on a deep copy
and swaps it in on commit, so rollback drops the working copy. Concurrent units
of work are not merged: the last commit wins.
"""

from __future__ import annotations

import copy
import threading
from typing import TYPE_CHECKING, Literal

from mediashelf.domain.model import assign_value
from mediashelf.domain.ports.unit_of_work import CatalogRepositories

if TYPE_CHECKING:
    from collections.abc import Iterable, Set
    from datetime import datetime
    from types import TracebackType

    from mediashelf.domain.model import Entity, FieldValue, ProtectableName, Provider
    from mediashelf.domain.ports.persistence import CandidateFilter


class InMemoryEntityStore:
    def __init__(self, entities: dict[int, Entity] | None = None, *, next_id: int = 1) -> None:
        self._entities: dict[int, Entity] = entities if entities is not None else {}
        self._next_id = max([next_id, *(key + 1 for key in self._entities)])

    @property
    def next_id(self) -> int:
        return self._next_id

    def get_entity(self, entity_id: int) -> Entity | None:
        entity = self._entities.get(entity_id)
        return copy.deepcopy(entity) if entity is not None else None

    def find_by_external_id(self, provider: Provider, value: str) -> Entity | None:
        for entity in self._entities.values():
            if entity.external_ids.get(provider) == value:
                return copy.deepcopy(entity)
        return None

    def list_candidates(self, candidate_filter: CandidateFilter | None = None) -> list[Entity]:
        selected: list[Entity] = []
        for entity in self._entities.values():
            if candidate_filter is not None:
                wanted = candidate_filter.media_type
                if wanted is not None and entity.media_type not in {None, wanted}:
                    continue
                if candidate_filter.providers and not candidate_filter.providers.intersection(
                    entity.external_ids
                ):
                    continue
                if candidate_filter.unenriched_only and entity.enriched_at is not None:
                    continue
            selected.append(entity)
        selected.sort(key=lambda e: e.id or 0)
        selected.sort(key=lambda e: e.created_at, reverse=True)
        if candidate_filter is not None and candidate_filter.limit is not None:
            selected = selected[: candidate_filter.limit]
        return [copy.deepcopy(entity) for entity in selected]

    def list_entities_with_external_ids(self) -> list[Entity]:
        return [
            copy.deepcopy(entity)
            for _, entity in sorted(self._entities.items())
            if entity.external_ids
        ]

    def add(self, entity: Entity) -> Entity:
        entity.id = self._next_id
        self._next_id += 1
        self._entities[entity.id] = copy.deepcopy(entity)
        return entity

    def write_field(self, entity_id: int, name: ProtectableName, value: FieldValue) -> None:
        assign_value(self._require(entity_id), name, value)

    def write_protected_fields(self, entity_id: int, names: Set[ProtectableName]) -> None:
        self._require(entity_id).protected_fields = set(names)

    def add_external_id(self, entity_id: int, provider: Provider, value: str) -> None:
        self._require(entity_id).external_ids[provider] = value

    def set_update_available(self, entity_id: int, value: bool) -> None:  # noqa: FBT001
        self._require(entity_id).update_available = value

    def set_vo_source(self, entity_id: int, provider: Provider) -> None:
        self._require(entity_id).vo_source = provider

    def mark_enriched(self, entity_id: int, at: datetime) -> None:
        self._require(entity_id).enriched_at = at

    def _require(self, entity_id: int) -> Entity:
        entity = self._entities.get(entity_id)
        if entity is None:
            raise KeyError(f"Unknown entity {entity_id}")
        return entity


class InMemoryCatalog:
    """Committed state shared by in-memory units of work."""

    def __init__(self, entities: Iterable[Entity] = ()) -> None:
        self._lock = threading.Lock()
        self._entities: dict[int, Entity] = {}
        self._next_id = 1
        store = InMemoryEntityStore(self._entities)
        for entity in entities:
            if entity.id is None:
                store.add(entity)
            else:
                self._entities[entity.id] = copy.deepcopy(entity)
        self._next_id = max([store.next_id, *(key + 1 for key in self._entities)])

    def snapshot(self) -> tuple[dict[int, Entity], int]:
        with self._lock:
            return copy.deepcopy(self._entities), self._next_id

    def replace(self, entities: dict[int, Entity], next_id: int) -> None:
        with self._lock:
            self._entities = entities
            self._next_id = next_id

    def get(self, entity_id: int) -> Entity | None:
        with self._lock:
            entity = self._entities.get(entity_id)
            return copy.deepcopy(entity) if entity is not None else None

    def find(self, provider: Provider, value: str) -> Entity | None:
        return InMemoryEntityStore(self.snapshot()[0]).find_by_external_id(provider, value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)


class InMemoryUnitOfWork:
    def __init__(self, catalog: InMemoryCatalog) -> None:
        self._catalog = catalog
        self._repositories: CatalogRepositories | None = None
        self._working: dict[int, Entity] = {}
        self._store: InMemoryEntityStore | None = None
        self.commits = 0

    def __enter__(self) -> InMemoryUnitOfWork:
        self._working, next_id = self._catalog.snapshot()
        self._store = InMemoryEntityStore(self._working, next_id=next_id)
        self._repositories = CatalogRepositories(entities=self._store)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self._repositories = None
        self._store = None
        return False

    @property
    def repositories(self) -> CatalogRepositories:
        if self._repositories is None:
            raise RuntimeError("Unit of work used outside of its context")
        return self._repositories

    def commit(self) -> None:
        if self._store is None:
            raise RuntimeError("Unit of work used outside of its context")
        self._catalog.replace(copy.deepcopy(self._working), self._store.next_id)
        self.commits += 1

    def rollback(self) -> None:
        if self._store is None:
            return
        self._working, next_id = self._catalog.snapshot()
        self._store = InMemoryEntityStore(self._working, next_id=next_id)
        self._repositories = CatalogRepositories(entities=self._store)
