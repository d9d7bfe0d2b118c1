"""Back-fill inverse relation pointers (sequel -> prequel, source -> adaptation)."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.model import INVERSE_RELATION

if TYPE_CHECKING:
    from mediashelf.domain.model import Entity
    from mediashelf.domain.ports.persistence import EntityStore

    from .ledger import FieldLedger

log = getLogger(__name__)


class RelationPropagator:
    """Fill the inverse pointer on related entities, never replacing one.

    Because a pointer is only ever set while empty, one pass over the catalog
    reaches a fixpoint.
    """

    def __init__(self, store: EntityStore, ledger: FieldLedger) -> None:
        self._store = store
        self._ledger = ledger

    def propagate(self, entity: Entity) -> int:
        updates = 0
        for kind, ref in list(entity.relations.items()):
            own_ref = entity.external_ref_in_family(ref.provider.family)
            if own_ref is None:
                continue
            target = self._store.find_by_external_id(ref.provider, ref.value)
            if target is None or target.id == entity.id:
                continue
            inverse = INVERSE_RELATION[kind]
            if target.relations.get(inverse) is not None:
                continue
            if self._ledger.conditional_set(target, inverse, own_ref):
                log.debug("Linked %s %s -> %s", target.label, inverse, own_ref)
                updates += 1
        return updates

    def propagate_all(self) -> int:
        entities = self._store.list_entities_with_external_ids()
        updates = sum(self.propagate(entity) for entity in entities)
        log.info("Relation propagation over %s entities applied %s updates", len(entities), updates)
        return updates
