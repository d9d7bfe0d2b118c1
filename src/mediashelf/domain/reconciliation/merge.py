"""Merge a normalized record into a catalog entity through the protection ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.model import (
    PROVIDER_SPECIFIC_FIELDS,
    SIGNAL_COUNT_FIELDS,
    SIGNAL_STATUS_FIELDS,
    CatalogField,
    Entity,
    Titles,
    read_value,
)

from .normalize import union_titles

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from mediashelf.domain.model import (
        FieldValue,
        NormalizedRecord,
        ProtectableName,
        Provider,
    )
    from mediashelf.domain.ports.persistence import EntityStore

    from .ledger import FieldLedger

log = getLogger(__name__)


@dataclass(slots=True, frozen=True, kw_only=True)
class FieldChange:
    field: ProtectableName
    before: FieldValue
    after: FieldValue


@dataclass(slots=True, kw_only=True)
class MergeResult:
    entity: Entity
    created: bool
    changes: list[FieldChange] = field(default_factory=list[FieldChange])
    update_signalled: bool = False
    external_ids_added: list[Provider] = field(default_factory=list)

    @property
    def changed_fields(self) -> tuple[ProtectableName, ...]:
        return tuple(change.field for change in self.changes)


def is_update_signal(change: FieldChange) -> bool:
    """Count increases and status changes are worth surfacing; decreases never are."""

    if change.field in SIGNAL_COUNT_FIELDS:
        before = change.before if isinstance(change.before, int) else 0
        return isinstance(change.after, int) and change.after > before
    if change.field in SIGNAL_STATUS_FIELDS:
        return bool(change.after) and change.after != change.before
    return False


class MergeEngine:
    """Apply a record to an entity. Fields listed in ``disabled_fields`` are never updated."""

    def __init__(
        self,
        store: EntityStore,
        ledger: FieldLedger,
        *,
        provider_priority: Mapping[str, int] | None = None,
        disabled_fields: Collection[ProtectableName] = (),
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._priority: Mapping[str, int] = provider_priority or {}
        self._disabled: frozenset[ProtectableName] = frozenset(disabled_fields)

    def merge(
        self,
        entity: Entity | None,
        record: NormalizedRecord,
        *,
        force: bool = False,
    ) -> MergeResult:
        if entity is None:
            return self._create(record)
        return self._update(entity, record, force=force)

    def _create(self, record: NormalizedRecord) -> MergeResult:
        alternates = union_titles(record.alternate_titles, exclude=(record.title,))
        values = {name: value for name, value in record.values.items() if value is not None}
        entity = Entity(
            titles=Titles(primary=record.title.strip(), alternates=set(alternates)),
            media_type=record.media_type,
            external_ids={record.provider: record.external_id},
            fields=dict(values),
            relations=dict(record.relations),
            vo_source=record.provider,
        )
        entity = self._store.add(entity)

        changes = [FieldChange(field=CatalogField.TITLE, before=None, after=entity.titles.primary)]
        if alternates:
            changes.append(
                FieldChange(
                    field=CatalogField.ALTERNATE_TITLES,
                    before=None,
                    after=frozenset(alternates),
                )
            )
        changes.extend(
            FieldChange(field=name, before=None, after=value) for name, value in values.items()
        )
        changes.extend(
            FieldChange(field=kind, before=None, after=ref)
            for kind, ref in record.relations.items()
        )
        log.info("Created %s from %s:%s", entity.label, record.provider, record.external_id)
        return MergeResult(
            entity=entity,
            created=True,
            changes=changes,
            external_ids_added=[record.provider],
        )

    def _update(self, entity: Entity, record: NormalizedRecord, *, force: bool) -> MergeResult:
        result = MergeResult(entity=entity, created=False)
        restricted = self._outranked(entity, record.provider)
        if restricted:
            log.debug(
                "%s is authoritative for %s; only provider-specific fields from %s apply",
                entity.vo_source,
                entity.label,
                record.provider,
            )

        previous_primary = entity.titles.primary
        if not restricted:
            self._apply(result, CatalogField.TITLE, record.title.strip(), force=force)

        for name, value in record.values.items():
            if restricted and name not in PROVIDER_SPECIFIC_FIELDS:
                continue
            self._apply(result, name, value, force=force)

        # Aliases only grow; the incoming title and a replaced primary become aliases.
        retired = (previous_primary,) if previous_primary != entity.titles.primary else ()
        merged = union_titles(
            sorted(entity.titles.alternates),
            (record.title.strip(),),
            record.alternate_titles,
            retired,
            exclude=(entity.titles.primary,),
        )
        self._apply(result, CatalogField.ALTERNATE_TITLES, frozenset(merged), force=force)

        self._fill_external_id(result, record)

        if not restricted:
            for kind, ref in record.relations.items():
                if entity.relations.get(kind) is not None:
                    continue
                self._apply(result, kind, ref, force=force)

        if entity.id is not None and self._takes_over_vo(entity, record.provider):
            log.debug("%s becomes the VO source of %s", record.provider, entity.label)
            self._store.set_vo_source(entity.id, record.provider)
            entity.vo_source = record.provider

        result.update_signalled = any(is_update_signal(change) for change in result.changes)
        if result.update_signalled and not entity.update_available and entity.id is not None:
            self._store.set_update_available(entity.id, True)  # noqa: FBT003
            entity.update_available = True
        return result

    def _apply(
        self,
        result: MergeResult,
        name: ProtectableName,
        value: FieldValue,
        *,
        force: bool,
    ) -> None:
        if name in self._disabled:
            return
        entity = result.entity
        before = read_value(entity, name)
        if self._ledger.conditional_set(entity, name, value, force=force):
            result.changes.append(FieldChange(field=name, before=before, after=value))

    def _fill_external_id(self, result: MergeResult, record: NormalizedRecord) -> None:
        entity = result.entity
        current = entity.external_ids.get(record.provider)
        if current == record.external_id:
            return
        if current is not None:
            log.warning(
                "Ignoring conflicting %s id %s for %s (keeping %s)",
                record.provider,
                record.external_id,
                entity.label,
                current,
            )
            return
        if entity.id is None:
            raise ValueError(f"Entity {entity.label} must be persisted before linking ids")
        self._store.add_external_id(entity.id, record.provider, record.external_id)
        entity.external_ids[record.provider] = record.external_id
        result.external_ids_added.append(record.provider)

    def _outranked(self, entity: Entity, incoming: Provider) -> bool:
        if entity.vo_source is None or entity.vo_source == incoming:
            return False
        return self._priority.get(entity.vo_source, 0) > self._priority.get(incoming, 0)

    def _takes_over_vo(self, entity: Entity, incoming: Provider) -> bool:
        if entity.vo_source is None:
            return True
        return self._priority.get(incoming, 0) > self._priority.get(entity.vo_source, 0)
