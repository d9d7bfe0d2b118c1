"""Jikan v4 response schemas (``/manga/{id}/full`` and ``/anime/{id}/full``)."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

type MalId = int
type JikanDate = str  # ISO 8601 timestamp, e.g. 2019-02-13T00:00:00+00:00


class JikanBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Jikan %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class JikanResource(StrEnum):
    MANGA = "manga"
    ANIME = "anime"


class JikanImageSet(JikanBaseModel):
    image_url: str | None = None
    small_image_url: str | None = None
    large_image_url: str | None = None


class JikanImages(JikanBaseModel):
    jpg: JikanImageSet | None = None
    webp: JikanImageSet | None = None


class JikanTitle(JikanBaseModel):
    type: str
    title: str


class JikanNamedResource(JikanBaseModel):
    """Genre, theme, demographic, author, studio or magazine reference."""

    mal_id: MalId
    type: str | None = None
    name: str
    url: str | None = None


class JikanDateRange(JikanBaseModel):
    from_: JikanDate | None = Field(default=None, alias="from")
    to: JikanDate | None = None
    string: str | None = None


class JikanRelationEntry(JikanBaseModel):
    mal_id: MalId
    type: str
    name: str
    url: str | None = None


class JikanRelation(JikanBaseModel):
    relation: str
    entry: list[JikanRelationEntry] = Field(default_factory=list["JikanRelationEntry"])


class JikanEntry(JikanBaseModel):
    """Fields shared by manga and anime entries."""

    mal_id: MalId
    url: str | None = None
    images: JikanImages | None = None
    titles: list[JikanTitle] = Field(default_factory=list["JikanTitle"])
    title: str
    title_english: str | None = None
    title_japanese: str | None = None
    title_synonyms: list[str] = Field(default_factory=list)
    type: str | None = None
    status: str | None = None
    score: float | None = None
    scored_by: int | None = None
    rank: int | None = None
    popularity: int | None = None
    members: int | None = None
    favorites: int | None = None
    synopsis: str | None = None
    background: str | None = None
    genres: list[JikanNamedResource] = Field(default_factory=list["JikanNamedResource"])
    explicit_genres: list[JikanNamedResource] = Field(default_factory=list["JikanNamedResource"])
    themes: list[JikanNamedResource] = Field(default_factory=list["JikanNamedResource"])
    demographics: list[JikanNamedResource] = Field(default_factory=list["JikanNamedResource"])
    relations: list[JikanRelation] = Field(default_factory=list["JikanRelation"])


class JikanManga(JikanEntry):
    chapters: int | None = None
    volumes: int | None = None
    publishing: bool | None = None
    published: JikanDateRange | None = None
    authors: list[JikanNamedResource] = Field(default_factory=list["JikanNamedResource"])
    serializations: list[JikanNamedResource] = Field(default_factory=list["JikanNamedResource"])


class JikanAnime(JikanEntry):
    source: str | None = None
    episodes: int | None = None
    airing: bool | None = None
    aired: JikanDateRange | None = None
    rating: str | None = None
    season: str | None = None
    year: int | None = None
    studios: list[JikanNamedResource] = Field(default_factory=list["JikanNamedResource"])
    producers: list[JikanNamedResource] = Field(default_factory=list["JikanNamedResource"])


class JikanMangaResponse(JikanBaseModel):
    data: JikanManga


class JikanAnimeResponse(JikanBaseModel):
    data: JikanAnime
