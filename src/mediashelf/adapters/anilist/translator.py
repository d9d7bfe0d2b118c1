"""Translate AniList media into normalized records."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from mediashelf.domain.model import (
    CatalogField,
    ExternalRef,
    MediaType,
    PrintRecord,
    Provider,
    PublicationStatus,
    RelationKind,
    ScreenRecord,
)
from mediashelf.domain.reconciliation.normalize import union_titles

from .schema import AniListMediaType

if TYPE_CHECKING:
    from mediashelf.domain.model import FieldValue

    from .schema import AniListFuzzyDate, AniListMedia

_STATUS_MAP: dict[str, PublicationStatus] = {
    "NOT_YET_RELEASED": PublicationStatus.UPCOMING,
    "RELEASING": PublicationStatus.ONGOING,
    "FINISHED": PublicationStatus.FINISHED,
    "HIATUS": PublicationStatus.HIATUS,
    "CANCELLED": PublicationStatus.DISCONTINUED,
}

_RELATION_MAP: dict[str, RelationKind] = {
    "PREQUEL": RelationKind.PREQUEL,
    "SEQUEL": RelationKind.SEQUEL,
    "ADAPTATION": RelationKind.ADAPTATION,
    "SOURCE": RelationKind.SOURCE,
    "PARENT": RelationKind.SOURCE,
}

_PRINT_TYPE_BY_COUNTRY: dict[str, MediaType] = {
    "KR": MediaType.MANHWA,
    "CN": MediaType.MANHUA,
    "TW": MediaType.MANHUA,
}

_LANGUAGE_BY_COUNTRY: dict[str, str] = {
    "JP": "ja",
    "KR": "ko",
    "CN": "zh",
    "TW": "zh",
}

_AUTHOR_ROLES = ("story", "art", "original creator")
_MARKUP = re.compile(r"<[^>]+>")


def translate_media(media: AniListMedia) -> PrintRecord | ScreenRecord:
    title = media.title.romaji or media.title.english or media.title.native or ""
    alternates = tuple(
        union_titles(
            [media.title.english or "", media.title.native or ""],
            media.synonyms,
            exclude=(title,),
        )
    )
    values: dict[CatalogField, FieldValue] = {
        CatalogField.DESCRIPTION: _description(media.description),
        CatalogField.STATUS: _status(media.status),
        CatalogField.GENRES: tuple(media.genres),
        CatalogField.THEMES: tuple(tag.name for tag in media.tags if not tag.is_adult),
        CatalogField.RATING: "erotica" if media.is_adult else None,
        CatalogField.COVER_URL: _cover_url(media),
        CatalogField.START_DATE: _date(media.start_date),
        CatalogField.END_DATE: _date(media.end_date),
        CatalogField.ORIGINAL_LANGUAGE: _LANGUAGE_BY_COUNTRY.get(media.country_of_origin or ""),
        CatalogField.ANILIST_SCORE: media.average_score,
        CatalogField.ANILIST_POPULARITY: media.popularity,
    }
    relations = _relations(media)

    if media.type is AniListMediaType.ANIME:
        values[CatalogField.EPISODES] = media.episodes
        values[CatalogField.STUDIOS] = tuple(
            studio.name for studio in (media.studios.nodes if media.studios else [])
        )
        return ScreenRecord(
            provider=Provider.ANILIST,
            external_id=str(media.id),
            title=title,
            alternate_titles=alternates,
            media_type=MediaType.ANIME,
            values=_present(values),
            relations=relations,
        )

    values[CatalogField.CHAPTERS] = media.chapters
    values[CatalogField.VOLUMES] = media.volumes
    values[CatalogField.AUTHORS] = _authors(media)
    return PrintRecord(
        provider=Provider.ANILIST,
        external_id=str(media.id),
        title=title,
        alternate_titles=alternates,
        media_type=_print_media_type(media),
        values=_present(values),
        relations=relations,
    )


def _print_media_type(media: AniListMedia) -> MediaType:
    if media.format == "NOVEL":
        return MediaType.LIGHT_NOVEL
    return _PRINT_TYPE_BY_COUNTRY.get(media.country_of_origin or "", MediaType.MANGA)


def _relations(media: AniListMedia) -> dict[RelationKind, ExternalRef]:
    relations: dict[RelationKind, ExternalRef] = {}
    if media.relations is None:
        return relations
    for edge in media.relations.edges:
        kind = _RELATION_MAP.get(edge.relation_type or "")
        if kind is None or kind in relations:
            continue
        relations[kind] = ExternalRef(provider=Provider.ANILIST, value=str(edge.node.id))
    return relations


def _authors(media: AniListMedia) -> tuple[str, ...]:
    if media.staff is None:
        return ()
    names: dict[str, None] = {}
    for edge in media.staff.edges:
        role = (edge.role or "").lower()
        if any(marker in role for marker in _AUTHOR_ROLES) and edge.node.name.full:
            names.setdefault(edge.node.name.full.strip())
    return tuple(names)


def _status(raw: str | None) -> str | None:
    status = _STATUS_MAP.get(raw or "")
    return str(status) if status is not None else None


def _description(raw: str | None) -> str | None:
    if not raw:
        return None
    text = _MARKUP.sub("", raw.replace("<br>", "\n")).strip()
    return text or None


def _cover_url(media: AniListMedia) -> str | None:
    if media.cover_image is None:
        return None
    return media.cover_image.extra_large or media.cover_image.large


def _date(value: AniListFuzzyDate | None) -> str | None:
    """Render a fuzzy date as ``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``."""

    if value is None or value.year is None:
        return None
    if value.month is None:
        return f"{value.year:04d}"
    if value.day is None:
        return f"{value.year:04d}-{value.month:02d}"
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def _present(values: dict[CatalogField, FieldValue]) -> dict[CatalogField, FieldValue]:
    return {name: value for name, value in values.items() if value not in (None, ())}
