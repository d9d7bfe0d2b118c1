"""Reconcile one normalized record: match, merge, propagate."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.model import ExternalRef

from .ledger import FieldLedger
from .match import DEFAULT_MATCH_THRESHOLD, MatchResult, TitleMatcher
from .merge import MergeEngine, MergeResult
from .relations import RelationPropagator

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from mediashelf.domain.model import Entity, NormalizedRecord, ProtectableName
    from mediashelf.domain.ports.persistence import EntityStore

log = getLogger(__name__)


@dataclass(slots=True, frozen=True, kw_only=True)
class ReconcileOutcome:
    merge: MergeResult
    match: MatchResult | None = None
    relations_updated: int = 0

    @property
    def entity(self) -> Entity:
        return self.merge.entity


class Reconciler:
    """Compose matcher, merge engine and relation propagator over one store."""

    def __init__(
        self,
        store: EntityStore,
        *,
        threshold: float = DEFAULT_MATCH_THRESHOLD,
        provider_priority: Mapping[str, int] | None = None,
        disabled_fields: Collection[ProtectableName] = (),
    ) -> None:
        self.ledger = FieldLedger(store)
        self.matcher = TitleMatcher(store, threshold=threshold)
        self.merger = MergeEngine(
            store,
            self.ledger,
            provider_priority=provider_priority,
            disabled_fields=disabled_fields,
        )
        self.propagator = RelationPropagator(store, self.ledger)

    def reconcile(
        self,
        record: NormalizedRecord,
        *,
        entity: Entity | None = None,
        force: bool = False,
    ) -> ReconcileOutcome:
        """Merge ``record`` into ``entity`` or, when none is given, into its best match."""

        match: MatchResult | None = None
        if entity is None:
            match = self.matcher.match(
                (record.title,),
                record.alternate_titles,
                record.media_type,
                external_ref=ExternalRef(provider=record.provider, value=record.external_id),
            )
            entity = match.entity if match is not None else None
            if match is not None:
                log.debug(
                    "%s:%s matched %s by %s (%.2f)",
                    record.provider,
                    record.external_id,
                    match.entity.label,
                    match.method,
                    match.similarity,
                )

        merged = self.merger.merge(entity, record, force=force)
        relations_updated = self.propagator.propagate(merged.entity)
        return ReconcileOutcome(merge=merged, match=match, relations_updated=relations_updated)
