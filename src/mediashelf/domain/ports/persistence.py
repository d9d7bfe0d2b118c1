"""Ports for persisting catalog entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Set
    from datetime import datetime

    from mediashelf.domain.model import (
        Entity,
        FieldValue,
        MediaType,
        ProtectableName,
        Provider,
    )


@dataclass(slots=True, frozen=True, kw_only=True)
class CandidateFilter:
    """Selection passed to ``EntityStore.list_candidates``.

    ``media_type`` keeps entities whose type is equal or unset. ``providers``
    keeps entities holding an id for at least one of the given providers.
    Results are ordered newest first, then by id.
    """

    media_type: MediaType | None = None
    providers: frozenset[Provider] = frozenset()
    unenriched_only: bool = False
    limit: int | None = None


@runtime_checkable
class EntityStore(Protocol):
    """Persistence contract for catalog entities.

    Reads return detached aggregates; every mutation goes through one of the
    explicit write methods so that the store stays the single source of truth.
    """

    def get_entity(self, entity_id: int) -> Entity | None: ...

    def find_by_external_id(self, provider: Provider, value: str) -> Entity | None: ...

    def list_candidates(self, candidate_filter: CandidateFilter | None = None) -> list[Entity]: ...

    def list_entities_with_external_ids(self) -> list[Entity]: ...

    def add(self, entity: Entity) -> Entity: ...

    def write_field(self, entity_id: int, name: ProtectableName, value: FieldValue) -> None: ...

    def write_protected_fields(self, entity_id: int, names: Set[ProtectableName]) -> None: ...

    def add_external_id(self, entity_id: int, provider: Provider, value: str) -> None: ...

    def set_update_available(self, entity_id: int, value: bool) -> None: ...  # noqa: FBT001

    def set_vo_source(self, entity_id: int, provider: Provider) -> None: ...

    def mark_enriched(self, entity_id: int, at: datetime) -> None: ...
