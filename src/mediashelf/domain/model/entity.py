"""Catalog entity aggregate and value access by writable name."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, assert_never

from .enums import CatalogField, Provider, RelationKind

if TYPE_CHECKING:
    from .enums import MediaType


@dataclass(slots=True, frozen=True, kw_only=True)
class ExternalRef:
    """Pointer to a record in a provider's id space (``mal_manga:42``)."""

    provider: Provider
    value: str

    def __str__(self) -> str:
        return f"{self.provider}:{self.value}"

    @classmethod
    def parse(cls, raw: str) -> ExternalRef:
        provider, sep, value = raw.partition(":")
        if not sep or not value.strip():
            raise ValueError(f"Expected '<provider>:<id>', got {raw!r}")
        return cls(provider=Provider(provider.strip()), value=value.strip())


type ProtectableName = CatalogField | RelationKind
type FieldValue = str | int | float | bool | tuple[str, ...] | frozenset[str] | ExternalRef | None


@dataclass(slots=True, kw_only=True)
class Titles:
    primary: str
    alternates: set[str] = field(default_factory=set[str])

    def all(self) -> tuple[str, ...]:
        return (self.primary, *sorted(self.alternates))


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, kw_only=True, eq=False)
class Entity:
    """One catalog item (a series, a game, ...).

    ``id`` is assigned by the store on first persist and never reused. The
    protection set holds native enum members; serialisation happens only at the
    store boundary.
    """

    titles: Titles
    id: int | None = None
    media_type: MediaType | None = None
    external_ids: dict[Provider, str] = field(default_factory=dict[Provider, str])
    fields: dict[CatalogField, FieldValue] = field(default_factory=dict[CatalogField, FieldValue])
    protected_fields: set[ProtectableName] = field(default_factory=set[ProtectableName])
    relations: dict[RelationKind, ExternalRef] = field(
        default_factory=dict[RelationKind, ExternalRef]
    )
    vo_source: Provider | None = None
    enriched_at: datetime | None = None
    update_available: bool = False
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def label(self) -> str:
        return f"{self.titles.primary} (#{self.id})" if self.id is not None else self.titles.primary

    def external_ref(self, provider: Provider) -> ExternalRef | None:
        value = self.external_ids.get(provider)
        if value is None:
            return None
        return ExternalRef(provider=provider, value=value)

    def external_ref_in_family(self, family: str) -> ExternalRef | None:
        """Return this entity's id on the same site as ``family`` (first by provider order)."""

        for provider in Provider:
            if provider.family == family and provider in self.external_ids:
                return ExternalRef(provider=provider, value=self.external_ids[provider])
        return None


def read_value(entity: Entity, name: ProtectableName) -> FieldValue:
    match name:
        case CatalogField.TITLE:
            return entity.titles.primary
        case CatalogField.ALTERNATE_TITLES:
            return frozenset(entity.titles.alternates)
        case RelationKind():
            return entity.relations.get(name)
        case CatalogField():
            return entity.fields.get(name)
        case _:
            assert_never(name)


def assign_value(entity: Entity, name: ProtectableName, value: FieldValue) -> None:
    """Apply ``value`` to the in-memory aggregate (no persistence, no protection check)."""

    match name:
        case CatalogField.TITLE:
            if not isinstance(value, str) or not value.strip():
                raise TypeError("Primary title must be a non-empty string")
            entity.titles.primary = value
        case CatalogField.ALTERNATE_TITLES:
            if not isinstance(value, (frozenset, set, tuple)):
                raise TypeError("Alternate titles must be a collection of strings")
            entity.titles.alternates = {str(item) for item in value}
        case RelationKind():
            if value is None:
                entity.relations.pop(name, None)
            elif isinstance(value, ExternalRef):
                entity.relations[name] = value
            else:
                raise TypeError(f"Relation {name} expects an ExternalRef, got {value!r}")
        case CatalogField():
            if value is None:
                entity.fields.pop(name, None)
            else:
                entity.fields[name] = value
        case _:
            assert_never(name)


def parse_protectable_name(raw: str) -> ProtectableName:
    """Resolve a stored protection entry; raises ``ValueError`` for unknown names."""

    try:
        return CatalogField(raw)
    except ValueError:
        return RelationKind(raw)
