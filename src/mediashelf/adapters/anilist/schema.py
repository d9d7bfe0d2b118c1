"""AniList GraphQL response schemas for the ``Media`` lookup."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

MEDIA_QUERY = """
query ($id: Int) {
  Media(id: $id) {
    id
    idMal
    type
    format
    status(version: 2)
    title { romaji english native }
    synonyms
    description(asHtml: false)
    episodes
    chapters
    volumes
    countryOfOrigin
    isAdult
    startDate { year month day }
    endDate { year month day }
    genres
    tags { name isAdult }
    averageScore
    popularity
    coverImage { extraLarge large }
    studios(isMain: true) { nodes { name } }
    staff(perPage: 10) { edges { role node { name { full } } } }
    relations { edges { relationType(version: 2) node { id type format } } }
  }
}
"""


class AniListBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning(
            "AniList %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class AniListMediaType(StrEnum):
    ANIME = "ANIME"
    MANGA = "MANGA"


class AniListTitle(AniListBaseModel):
    romaji: str | None = None
    english: str | None = None
    native: str | None = None


class AniListFuzzyDate(AniListBaseModel):
    year: int | None = None
    month: int | None = None
    day: int | None = None


class AniListTag(AniListBaseModel):
    name: str
    is_adult: bool | None = Field(default=None, alias="isAdult")


class AniListCoverImage(AniListBaseModel):
    extra_large: str | None = Field(default=None, alias="extraLarge")
    large: str | None = None


class AniListStudio(AniListBaseModel):
    name: str


class AniListStudioConnection(AniListBaseModel):
    nodes: list[AniListStudio] = Field(default_factory=list["AniListStudio"])


class AniListStaffName(AniListBaseModel):
    full: str | None = None


class AniListStaff(AniListBaseModel):
    name: AniListStaffName


class AniListStaffEdge(AniListBaseModel):
    role: str | None = None
    node: AniListStaff


class AniListStaffConnection(AniListBaseModel):
    edges: list[AniListStaffEdge] = Field(default_factory=list["AniListStaffEdge"])


class AniListRelatedMedia(AniListBaseModel):
    id: int
    type: AniListMediaType | None = None
    format: str | None = None


class AniListRelationEdge(AniListBaseModel):
    relation_type: str | None = Field(default=None, alias="relationType")
    node: AniListRelatedMedia


class AniListRelationConnection(AniListBaseModel):
    edges: list[AniListRelationEdge] = Field(default_factory=list["AniListRelationEdge"])


class AniListMedia(AniListBaseModel):
    id: int
    id_mal: int | None = Field(default=None, alias="idMal")
    type: AniListMediaType
    format: str | None = None
    status: str | None = None
    title: AniListTitle
    synonyms: list[str] = Field(default_factory=list)
    description: str | None = None
    episodes: int | None = None
    chapters: int | None = None
    volumes: int | None = None
    country_of_origin: str | None = Field(default=None, alias="countryOfOrigin")
    is_adult: bool | None = Field(default=None, alias="isAdult")
    start_date: AniListFuzzyDate | None = Field(default=None, alias="startDate")
    end_date: AniListFuzzyDate | None = Field(default=None, alias="endDate")
    genres: list[str] = Field(default_factory=list)
    tags: list[AniListTag] = Field(default_factory=list["AniListTag"])
    average_score: int | None = Field(default=None, alias="averageScore")
    popularity: int | None = None
    cover_image: AniListCoverImage | None = Field(default=None, alias="coverImage")
    studios: AniListStudioConnection | None = None
    staff: AniListStaffConnection | None = None
    relations: AniListRelationConnection | None = None


class AniListMediaData(AniListBaseModel):
    media: AniListMedia | None = Field(default=None, alias="Media")


class AniListError(AniListBaseModel):
    message: str
    status: int | None = None


class AniListMediaResponse(AniListBaseModel):
    data: AniListMediaData | None = None
    errors: list[AniListError] = Field(default_factory=list["AniListError"])
