"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class Provider(StrEnum):
    # MyAnimeList numbers manga and anime independently, so each gets its own id space.
    MAL_MANGA = "mal_manga"
    MAL_ANIME = "mal_anime"
    ANILIST = "anilist"
    NAUTILJON = "nautiljon"

    @property
    def family(self) -> str:
        """Site the id space belongs to (``mal_manga`` and ``mal_anime`` are both ``mal``)."""

        return self.value.split("_", 1)[0]


class MediaType(StrEnum):
    MANGA = "manga"
    MANHWA = "manhwa"
    MANHUA = "manhua"
    LIGHT_NOVEL = "light_novel"
    ANIME = "anime"
    GAME = "game"
    MOVIE = "movie"
    SHOW = "show"
    BOOK = "book"


class RecordKind(StrEnum):
    PRINT = "print"
    SCREEN = "screen"
    GAME = "game"


RECORD_KIND_BY_MEDIA_TYPE: Mapping[MediaType, RecordKind] = MappingProxyType(
    {
        MediaType.MANGA: RecordKind.PRINT,
        MediaType.MANHWA: RecordKind.PRINT,
        MediaType.MANHUA: RecordKind.PRINT,
        MediaType.LIGHT_NOVEL: RecordKind.PRINT,
        MediaType.BOOK: RecordKind.PRINT,
        MediaType.ANIME: RecordKind.SCREEN,
        MediaType.MOVIE: RecordKind.SCREEN,
        MediaType.SHOW: RecordKind.SCREEN,
        MediaType.GAME: RecordKind.GAME,
    }
)


class CatalogField(StrEnum):
    """Closed set of catalog values automated writers may touch."""

    TITLE = "title"
    ALTERNATE_TITLES = "alternate_titles"
    DESCRIPTION = "description"
    BACKGROUND = "background"
    STATUS = "status"
    EPISODES = "episodes"
    CHAPTERS = "chapters"
    VOLUMES = "volumes"
    GENRES = "genres"
    THEMES = "themes"
    DEMOGRAPHICS = "demographics"
    AUTHORS = "authors"
    STUDIOS = "studios"
    SERIALIZATION = "serialization"
    RATING = "rating"
    COVER_URL = "cover_url"
    START_DATE = "start_date"
    END_DATE = "end_date"
    ORIGINAL_LANGUAGE = "original_language"

    MAL_SCORE = "mal_score"
    MAL_RANK = "mal_rank"
    MAL_POPULARITY = "mal_popularity"
    ANILIST_SCORE = "anilist_score"
    ANILIST_POPULARITY = "anilist_popularity"


class RelationKind(StrEnum):
    PREQUEL = "prequel"
    SEQUEL = "sequel"
    ADAPTATION = "adaptation"
    SOURCE = "source"


INVERSE_RELATION: Mapping[RelationKind, RelationKind] = MappingProxyType(
    {
        RelationKind.PREQUEL: RelationKind.SEQUEL,
        RelationKind.SEQUEL: RelationKind.PREQUEL,
        RelationKind.ADAPTATION: RelationKind.SOURCE,
        RelationKind.SOURCE: RelationKind.ADAPTATION,
    }
)

# A provider's own statistics; the source-priority rule never blocks these.
PROVIDER_SPECIFIC_FIELDS: Mapping[CatalogField, str] = MappingProxyType(
    {
        CatalogField.MAL_SCORE: "mal",
        CatalogField.MAL_RANK: "mal",
        CatalogField.MAL_POPULARITY: "mal",
        CatalogField.ANILIST_SCORE: "anilist",
        CatalogField.ANILIST_POPULARITY: "anilist",
    }
)

SIGNAL_COUNT_FIELDS: frozenset[CatalogField] = frozenset(
    {CatalogField.EPISODES, CatalogField.CHAPTERS, CatalogField.VOLUMES}
)
SIGNAL_STATUS_FIELDS: frozenset[CatalogField] = frozenset({CatalogField.STATUS})


class PublicationStatus(StrEnum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    FINISHED = "finished"
    HIATUS = "hiatus"
    DISCONTINUED = "discontinued"


class JobState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        return self in {JobState.RUNNING, JobState.PAUSED}

    @property
    def is_terminal(self) -> bool:
        return self in {JobState.COMPLETED, JobState.CANCELLED, JobState.FAILED}
