"""Normalized provider records.

Every provider adapter translates its payloads into one of the record variants
below. Matching and merging only ever see this shape. Each variant admits the
catalog fields that make sense for its kind of work; anything else is rejected
at construction time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, ClassVar, Literal

from .enums import RECORD_KIND_BY_MEDIA_TYPE, CatalogField, MediaType, RecordKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .entity import ExternalRef, FieldValue
    from .enums import Provider, RelationKind

_COMMON_FIELDS = frozenset(
    {
        CatalogField.DESCRIPTION,
        CatalogField.BACKGROUND,
        CatalogField.STATUS,
        CatalogField.GENRES,
        CatalogField.THEMES,
        CatalogField.RATING,
        CatalogField.COVER_URL,
        CatalogField.START_DATE,
        CatalogField.END_DATE,
        CatalogField.ORIGINAL_LANGUAGE,
    }
)
_PROVIDER_STAT_FIELDS = frozenset(
    {
        CatalogField.MAL_SCORE,
        CatalogField.MAL_RANK,
        CatalogField.MAL_POPULARITY,
        CatalogField.ANILIST_SCORE,
        CatalogField.ANILIST_POPULARITY,
    }
)


def _empty_values() -> Mapping[CatalogField, FieldValue]:
    return MappingProxyType({})


def _empty_relations() -> Mapping[RelationKind, ExternalRef]:
    return MappingProxyType({})


@dataclass(slots=True, frozen=True, kw_only=True)
class _RecordBase:
    ALLOWED_FIELDS: ClassVar[frozenset[CatalogField]] = _COMMON_FIELDS

    provider: Provider
    external_id: str
    title: str
    alternate_titles: tuple[str, ...] = ()
    media_type: MediaType | None = None
    values: Mapping[CatalogField, FieldValue] = field(default_factory=_empty_values)
    relations: Mapping[RelationKind, ExternalRef] = field(default_factory=_empty_relations)

    def __post_init__(self) -> None:
        if not self.title.strip():
            raise ValueError(f"{self.provider}:{self.external_id} record has an empty title")
        if not self.external_id.strip():
            raise ValueError(f"{self.provider} record {self.title!r} has an empty external id")
        rejected = set(self.values).difference(self.ALLOWED_FIELDS)
        if rejected:
            names = ", ".join(sorted(rejected))
            raise ValueError(f"{type(self).__name__} does not accept fields: {names}")


@dataclass(slots=True, frozen=True, kw_only=True)
class PrintRecord(_RecordBase):
    """Manga, manhwa, manhua, light novels and books."""

    ALLOWED_FIELDS: ClassVar[frozenset[CatalogField]] = (
        _COMMON_FIELDS
        | _PROVIDER_STAT_FIELDS
        | {
            CatalogField.CHAPTERS,
            CatalogField.VOLUMES,
            CatalogField.AUTHORS,
            CatalogField.SERIALIZATION,
            CatalogField.DEMOGRAPHICS,
        }
    )
    kind: Literal[RecordKind.PRINT] = RecordKind.PRINT


@dataclass(slots=True, frozen=True, kw_only=True)
class ScreenRecord(_RecordBase):
    """Anime, movies and shows."""

    ALLOWED_FIELDS: ClassVar[frozenset[CatalogField]] = (
        _COMMON_FIELDS
        | _PROVIDER_STAT_FIELDS
        | {
            CatalogField.EPISODES,
            CatalogField.STUDIOS,
            CatalogField.DEMOGRAPHICS,
        }
    )
    kind: Literal[RecordKind.SCREEN] = RecordKind.SCREEN


@dataclass(slots=True, frozen=True, kw_only=True)
class GameRecord(_RecordBase):
    ALLOWED_FIELDS: ClassVar[frozenset[CatalogField]] = _COMMON_FIELDS | {
        CatalogField.STUDIOS,
        CatalogField.AUTHORS,
    }
    kind: Literal[RecordKind.GAME] = RecordKind.GAME


type NormalizedRecord = PrintRecord | ScreenRecord | GameRecord

RECORD_CLASS_BY_KIND: Mapping[RecordKind, type[PrintRecord | ScreenRecord | GameRecord]] = (
    MappingProxyType(
        {
            RecordKind.PRINT: PrintRecord,
            RecordKind.SCREEN: ScreenRecord,
            RecordKind.GAME: GameRecord,
        }
    )
)


def record_class_for(media_type: MediaType) -> type[PrintRecord | ScreenRecord | GameRecord]:
    return RECORD_CLASS_BY_KIND[RECORD_KIND_BY_MEDIA_TYPE[media_type]]
