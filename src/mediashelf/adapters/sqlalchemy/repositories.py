"""Entity store backed by a SQLAlchemy session."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Any, assert_never, cast

from sqlalchemy import delete, exists, insert, or_, select, update
from sqlalchemy.exc import DBAPIError, InterfaceError, SQLAlchemyError

from mediashelf.adapters.sqlalchemy.mappings import (
    entity_field_table,
    entity_relation_table,
    entity_table,
    external_id_table,
)
from mediashelf.domain.errors import StoreConnectionError, StoreWriteError
from mediashelf.domain.model import (
    CatalogField,
    Entity,
    ExternalRef,
    RelationKind,
    Titles,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Set
    from datetime import datetime

    from sqlalchemy import Row, Select
    from sqlalchemy.orm import Session

    from mediashelf.domain.model import FieldValue, ProtectableName, Provider
    from mediashelf.domain.ports.persistence import CandidateFilter

log = getLogger(__name__)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except DBAPIError as exc:
        if exc.connection_invalidated or isinstance(exc, InterfaceError):
            raise StoreConnectionError(f"Store unavailable while trying to {action}") from exc
        raise StoreWriteError(f"Could not {action}: {exc.orig}") from exc
    except SQLAlchemyError as exc:
        raise StoreWriteError(f"Could not {action}: {exc}") from exc


def _dump_value(value: FieldValue) -> Any:  # noqa: ANN401
    if isinstance(value, ExternalRef):
        raise TypeError("Relations are stored in entity_relation, not as field values")
    if isinstance(value, (frozenset, set)):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    return value


def _load_value(raw: Any) -> FieldValue:  # noqa: ANN401
    if isinstance(raw, list):
        return tuple(str(item) for item in cast("list[Any]", raw))
    return cast("FieldValue", raw)


class SqlAlchemyEntityStore:
    """``EntityStore`` over the catalog tables.

    Entities are plain dataclasses rebuilt from rows on every read; writes are
    issued immediately as Core statements inside the caller's session, so a
    rollback of the unit of work discards them.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # -- reads ------------------------------------------------------------------

    def get_entity(self, entity_id: int) -> Entity | None:
        with _store_errors(f"load entity {entity_id}"):
            loaded = self._load(select(entity_table).where(entity_table.c.id == entity_id))
        return loaded[0] if loaded else None

    def find_by_external_id(self, provider: Provider, value: str) -> Entity | None:
        owner = (
            select(external_id_table.c.entity_id)
            .where(external_id_table.c.provider == provider)
            .where(external_id_table.c.value == value)
            .scalar_subquery()
        )
        with _store_errors(f"look up {provider}:{value}"):
            loaded = self._load(select(entity_table).where(entity_table.c.id == owner))
        return loaded[0] if loaded else None

    def list_candidates(self, candidate_filter: CandidateFilter | None = None) -> list[Entity]:
        stmt = select(entity_table)
        if candidate_filter is not None:
            if candidate_filter.media_type is not None:
                stmt = stmt.where(
                    or_(
                        entity_table.c.media_type == candidate_filter.media_type,
                        entity_table.c.media_type.is_(None),
                    )
                )
            if candidate_filter.providers:
                stmt = stmt.where(
                    exists()
                    .where(external_id_table.c.entity_id == entity_table.c.id)
                    .where(external_id_table.c.provider.in_(sorted(candidate_filter.providers)))
                )
            if candidate_filter.unenriched_only:
                stmt = stmt.where(entity_table.c.enriched_at.is_(None))
        stmt = stmt.order_by(entity_table.c.created_at.desc(), entity_table.c.id)
        if candidate_filter is not None and candidate_filter.limit is not None:
            stmt = stmt.limit(candidate_filter.limit)
        with _store_errors("list candidates"):
            return self._load(stmt)

    def list_entities_with_external_ids(self) -> list[Entity]:
        stmt = (
            select(entity_table)
            .where(exists().where(external_id_table.c.entity_id == entity_table.c.id))
            .order_by(entity_table.c.id)
        )
        with _store_errors("list linked entities"):
            return self._load(stmt)

    # -- writes -----------------------------------------------------------------

    def add(self, entity: Entity) -> Entity:
        with _store_errors(f"add {entity.titles.primary!r}"):
            entity_id = self.session.execute(
                insert(entity_table)
                .values(
                    primary_title=entity.titles.primary,
                    alternate_titles=set(entity.titles.alternates),
                    media_type=entity.media_type,
                    protected_fields=set(entity.protected_fields),
                    vo_source=entity.vo_source,
                    enriched_at=entity.enriched_at,
                    update_available=entity.update_available,
                    created_at=entity.created_at,
                )
                .returning(entity_table.c.id)
            ).scalar_one()
            for provider, value in entity.external_ids.items():
                self._insert_external_id(entity_id, provider, value)
            for name, value in entity.fields.items():
                if value is not None:
                    self._upsert_field(entity_id, name, value)
            for kind, ref in entity.relations.items():
                self._upsert_relation(entity_id, kind, ref)
        entity.id = entity_id
        log.debug("Persisted %s", entity.label)
        return entity

    def write_field(self, entity_id: int, name: ProtectableName, value: FieldValue) -> None:
        with _store_errors(f"write {name} on entity {entity_id}"):
            match name:
                case CatalogField.TITLE:
                    if not isinstance(value, str) or not value.strip():
                        raise TypeError("Primary title must be a non-empty string")
                    self._update_entity(entity_id, primary_title=value)
                case CatalogField.ALTERNATE_TITLES:
                    if not isinstance(value, (frozenset, set, tuple)):
                        raise TypeError("Alternate titles must be a collection of strings")
                    self._update_entity(entity_id, alternate_titles={str(v) for v in value})
                case RelationKind():
                    self._delete_relation(entity_id, name)
                    if value is not None:
                        if not isinstance(value, ExternalRef):
                            raise TypeError(f"Relation {name} expects an ExternalRef")
                        self._upsert_relation(entity_id, name, value)
                case CatalogField():
                    self._delete_field(entity_id, name)
                    if value is not None:
                        self._upsert_field(entity_id, name, value)
                case _:
                    assert_never(name)

    def write_protected_fields(self, entity_id: int, names: Set[ProtectableName]) -> None:
        with _store_errors(f"write protected fields on entity {entity_id}"):
            self._update_entity(entity_id, protected_fields=set(names))

    def add_external_id(self, entity_id: int, provider: Provider, value: str) -> None:
        with _store_errors(f"link {provider}:{value} to entity {entity_id}"):
            self._insert_external_id(entity_id, provider, value)

    def set_update_available(self, entity_id: int, value: bool) -> None:  # noqa: FBT001
        with _store_errors(f"flag entity {entity_id}"):
            self._update_entity(entity_id, update_available=value)

    def set_vo_source(self, entity_id: int, provider: Provider) -> None:
        with _store_errors(f"set source of entity {entity_id}"):
            self._update_entity(entity_id, vo_source=provider)

    def mark_enriched(self, entity_id: int, at: datetime) -> None:
        with _store_errors(f"mark entity {entity_id} enriched"):
            self._update_entity(entity_id, enriched_at=at)

    # -- helpers ----------------------------------------------------------------

    def _update_entity(self, entity_id: int, **values: object) -> None:
        result = self.session.execute(
            update(entity_table).where(entity_table.c.id == entity_id).values(**values)
        )
        if cast("Any", result).rowcount == 0:
            raise KeyError(f"Unknown entity {entity_id}")

    def _insert_external_id(self, entity_id: int, provider: Provider, value: str) -> None:
        self.session.execute(
            insert(external_id_table).values(entity_id=entity_id, provider=provider, value=value)
        )

    def _delete_field(self, entity_id: int, name: CatalogField) -> None:
        self.session.execute(
            delete(entity_field_table)
            .where(entity_field_table.c.entity_id == entity_id)
            .where(entity_field_table.c.name == name)
        )

    def _upsert_field(self, entity_id: int, name: CatalogField, value: FieldValue) -> None:
        self._delete_field(entity_id, name)
        self.session.execute(
            insert(entity_field_table).values(
                entity_id=entity_id, name=name, value=_dump_value(value)
            )
        )

    def _delete_relation(self, entity_id: int, kind: RelationKind) -> None:
        self.session.execute(
            delete(entity_relation_table)
            .where(entity_relation_table.c.entity_id == entity_id)
            .where(entity_relation_table.c.kind == kind)
        )

    def _upsert_relation(self, entity_id: int, kind: RelationKind, ref: ExternalRef) -> None:
        self._delete_relation(entity_id, kind)
        self.session.execute(
            insert(entity_relation_table).values(
                entity_id=entity_id, kind=kind, provider=ref.provider, value=ref.value
            )
        )

    def _load(self, stmt: Select[Any]) -> list[Entity]:
        rows = self.session.execute(stmt).all()
        if not rows:
            return []
        entities = [self._entity_from_row(row) for row in rows]
        by_id = {entity.id: entity for entity in entities}
        ids = list(by_id)

        for entity_id, provider, value in self.session.execute(
            select(
                external_id_table.c.entity_id,
                external_id_table.c.provider,
                external_id_table.c.value,
            ).where(external_id_table.c.entity_id.in_(ids))
        ):
            by_id[entity_id].external_ids[provider] = value

        for entity_id, name, value in self.session.execute(
            select(
                entity_field_table.c.entity_id,
                entity_field_table.c.name,
                entity_field_table.c.value,
            ).where(entity_field_table.c.entity_id.in_(ids))
        ):
            by_id[entity_id].fields[name] = _load_value(value)

        for entity_id, kind, provider, value in self.session.execute(
            select(
                entity_relation_table.c.entity_id,
                entity_relation_table.c.kind,
                entity_relation_table.c.provider,
                entity_relation_table.c.value,
            ).where(entity_relation_table.c.entity_id.in_(ids))
        ):
            by_id[entity_id].relations[kind] = ExternalRef(provider=provider, value=value)

        return entities

    @staticmethod
    def _entity_from_row(row: Row[Any]) -> Entity:
        mapping = row._mapping  # noqa: SLF001
        return Entity(
            id=mapping["id"],
            titles=Titles(
                primary=mapping["primary_title"],
                alternates=set(mapping["alternate_titles"] or ()),
            ),
            media_type=mapping["media_type"],
            protected_fields=set(mapping["protected_fields"] or ()),
            vo_source=mapping["vo_source"],
            enriched_at=mapping["enriched_at"],
            update_available=bool(mapping["update_available"]),
            created_at=mapping["created_at"],
        )


if TYPE_CHECKING:
    from mediashelf.domain.ports.persistence import EntityStore

    _session_stub = cast("Session", object())
    _store_check: EntityStore = SqlAlchemyEntityStore(_session_stub)
