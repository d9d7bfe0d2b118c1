"""Translate Jikan entries into normalized records."""

from __future__ import annotations

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

if TYPE_CHECKING:
    from mediashelf.domain.model import FieldValue

    from .schema import JikanAnime, JikanEntry, JikanManga, JikanNamedResource

_MANGA_STATUS_MAP: dict[str, PublicationStatus] = {
    "not yet published": PublicationStatus.UPCOMING,
    "publishing": PublicationStatus.ONGOING,
    "finished": PublicationStatus.FINISHED,
    "on hiatus": PublicationStatus.HIATUS,
    "discontinued": PublicationStatus.DISCONTINUED,
}

_ANIME_STATUS_MAP: dict[str, PublicationStatus] = {
    "not yet aired": PublicationStatus.UPCOMING,
    "currently airing": PublicationStatus.ONGOING,
    "finished airing": PublicationStatus.FINISHED,
}

_MANGA_TYPE_MAP: dict[str, MediaType] = {
    "manga": MediaType.MANGA,
    "one-shot": MediaType.MANGA,
    "doujinshi": MediaType.MANGA,
    "oel": MediaType.MANGA,
    "manhwa": MediaType.MANHWA,
    "manhua": MediaType.MANHUA,
    "novel": MediaType.LIGHT_NOVEL,
    "light novel": MediaType.LIGHT_NOVEL,
}

_LANGUAGE_BY_MEDIA_TYPE: dict[MediaType, str] = {
    MediaType.MANHWA: "ko",
    MediaType.MANHUA: "zh",
}

_RELATION_MAP: dict[str, RelationKind] = {
    "prequel": RelationKind.PREQUEL,
    "sequel": RelationKind.SEQUEL,
    "adaptation": RelationKind.ADAPTATION,
    "source": RelationKind.SOURCE,
    "parent story": RelationKind.SOURCE,
}

_RELATED_PROVIDER: dict[str, Provider] = {
    "manga": Provider.MAL_MANGA,
    "anime": Provider.MAL_ANIME,
}

_EXPLICIT_GENRES = frozenset({"hentai", "erotica"})


def translate_manga(manga: JikanManga) -> PrintRecord:
    media_type = _MANGA_TYPE_MAP.get((manga.type or "").lower(), MediaType.MANGA)
    values = _common_values(manga, media_type)
    values.update(
        {
            CatalogField.STATUS: _map_status(manga.status, _MANGA_STATUS_MAP),
            CatalogField.CHAPTERS: manga.chapters,
            CatalogField.VOLUMES: manga.volumes,
            CatalogField.AUTHORS: _names(manga.authors),
            CatalogField.SERIALIZATION: _names(manga.serializations),
            CatalogField.START_DATE: _date(manga.published.from_ if manga.published else None),
            CatalogField.END_DATE: _date(manga.published.to if manga.published else None),
            CatalogField.RATING: _rating(manga, None),
        }
    )
    return PrintRecord(
        provider=Provider.MAL_MANGA,
        external_id=str(manga.mal_id),
        title=manga.title,
        alternate_titles=_alternate_titles(manga),
        media_type=media_type,
        values=_present(values),
        relations=_relations(manga),
    )


def translate_anime(anime: JikanAnime) -> ScreenRecord:
    values = _common_values(anime, MediaType.ANIME)
    values.update(
        {
            CatalogField.STATUS: _map_status(anime.status, _ANIME_STATUS_MAP),
            CatalogField.EPISODES: anime.episodes,
            CatalogField.STUDIOS: _names(anime.studios),
            CatalogField.START_DATE: _date(anime.aired.from_ if anime.aired else None),
            CatalogField.END_DATE: _date(anime.aired.to if anime.aired else None),
            CatalogField.RATING: _rating(anime, anime.rating),
        }
    )
    return ScreenRecord(
        provider=Provider.MAL_ANIME,
        external_id=str(anime.mal_id),
        title=anime.title,
        alternate_titles=_alternate_titles(anime),
        media_type=MediaType.ANIME,
        values=_present(values),
        relations=_relations(anime),
    )


def _common_values(entry: JikanEntry, media_type: MediaType) -> dict[CatalogField, FieldValue]:
    return {
        CatalogField.DESCRIPTION: _text(entry.synopsis),
        CatalogField.BACKGROUND: _text(entry.background),
        CatalogField.GENRES: _names(entry.genres, entry.explicit_genres),
        CatalogField.THEMES: _names(entry.themes),
        CatalogField.DEMOGRAPHICS: _names(entry.demographics),
        CatalogField.COVER_URL: _cover_url(entry),
        CatalogField.ORIGINAL_LANGUAGE: _LANGUAGE_BY_MEDIA_TYPE.get(media_type, "ja"),
        CatalogField.MAL_SCORE: entry.score,
        CatalogField.MAL_RANK: entry.rank,
        CatalogField.MAL_POPULARITY: entry.popularity,
    }


def _alternate_titles(entry: JikanEntry) -> tuple[str, ...]:
    extra = [title.title for title in entry.titles]
    return tuple(
        union_titles(
            [entry.title_english or "", entry.title_japanese or ""],
            entry.title_synonyms,
            extra,
            exclude=(entry.title,),
        )
    )


def _relations(entry: JikanEntry) -> dict[RelationKind, ExternalRef]:
    relations: dict[RelationKind, ExternalRef] = {}
    for relation in entry.relations:
        kind = _RELATION_MAP.get(relation.relation.strip().lower())
        if kind is None or kind in relations:
            continue
        for item in relation.entry:
            provider = _RELATED_PROVIDER.get(item.type.strip().lower())
            if provider is None:
                continue
            relations[kind] = ExternalRef(provider=provider, value=str(item.mal_id))
            break
    return relations


def _map_status(raw: str | None, mapping: dict[str, PublicationStatus]) -> str | None:
    if not raw:
        return None
    status = mapping.get(raw.strip().lower())
    return str(status) if status is not None else None


def _rating(entry: JikanEntry, mal_rating: str | None) -> str | None:
    tags = {item.name.lower() for item in (*entry.genres, *entry.explicit_genres, *entry.themes)}
    if tags & _EXPLICIT_GENRES:
        return "erotica"
    if not mal_rating:
        return None
    if "Rx" in mal_rating or "R+" in mal_rating:
        return "erotica"
    if "R - 17" in mal_rating or "17+" in mal_rating:
        return "suggestive"
    return "safe"


def _cover_url(entry: JikanEntry) -> str | None:
    images = entry.images
    if images is None or images.jpg is None:
        return None
    return images.jpg.large_image_url or images.jpg.image_url


def _names(*groups: list[JikanNamedResource]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for group in groups:
        for item in group:
            name = item.name.strip()
            if name:
                seen.setdefault(name)
    return tuple(seen)


def _date(raw: str | None) -> str | None:
    if not raw:
        return None
    return raw[:10]


def _text(raw: str | None) -> str | None:
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


def _present(values: dict[CatalogField, FieldValue]) -> dict[CatalogField, FieldValue]:
    """Drop missing and empty values: a provider without data has nothing to say."""

    return {name: value for name, value in values.items() if value not in (None, ())}
