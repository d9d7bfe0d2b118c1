"""Field protection ledger: the single gate for automated writes."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.model import assign_value, read_value

if TYPE_CHECKING:
    from mediashelf.domain.model import Entity, FieldValue, ProtectableName
    from mediashelf.domain.ports.persistence import EntityStore

log = getLogger(__name__)


def _comparable(value: FieldValue) -> object:
    if isinstance(value, (set, frozenset)):
        return frozenset(value)
    if isinstance(value, list):
        return tuple(value)
    return value


class FieldLedger:
    """Gate every automated write on an entity's protection set.

    A name in ``protected_fields`` was edited by an operator and stays untouched
    unless the caller forces the write, which also lifts the protection.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def is_protected(self, entity: Entity, name: ProtectableName) -> bool:
        return name in entity.protected_fields

    def conditional_set(
        self,
        entity: Entity,
        name: ProtectableName,
        value: FieldValue,
        *,
        force: bool = False,
    ) -> bool:
        """Write ``value`` unless protected or unchanged; return whether it was applied.

        ``None`` means the provider has nothing to say and never clears a value.
        """

        if entity.id is None:
            raise ValueError(f"Entity {entity.label} must be persisted before guarded writes")
        if value is None:
            return False
        if not force and self.is_protected(entity, name):
            log.debug("Protection violation attempt: skipped %s on %s", name, entity.label)
            return False

        changed = _comparable(read_value(entity, name)) != _comparable(value)
        if changed:
            self._store.write_field(entity.id, name, value)
            assign_value(entity, name, value)
        if force and name in entity.protected_fields:
            entity.protected_fields.discard(name)
            self._store.write_protected_fields(entity.id, entity.protected_fields)
            log.info("Cleared protection on %s for %s (forced write)", name, entity.label)
        return changed

    def protect(self, entity: Entity, name: ProtectableName) -> None:
        """Mark ``name`` as operator-edited (used by the manual edit path)."""

        if entity.id is None:
            raise ValueError(f"Entity {entity.label} must be persisted before protecting fields")
        if name in entity.protected_fields:
            return
        entity.protected_fields.add(name)
        self._store.write_protected_fields(entity.id, entity.protected_fields)

    def unprotect(self, entity: Entity, name: ProtectableName) -> None:
        if entity.id is None or name not in entity.protected_fields:
            return
        entity.protected_fields.discard(name)
        self._store.write_protected_fields(entity.id, entity.protected_fields)
