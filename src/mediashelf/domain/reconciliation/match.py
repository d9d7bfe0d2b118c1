"""Resolve an incoming record to zero or one catalog entity.

Order of precedence:
1. provider id already attached to an entity (identity match)
2. exact normalised title or alternate title, media types compatible
3. best fuzzy similarity at or above the configured threshold

Ties at the top score go to the entity with the most external ids, then to the
lowest local id.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.ports.persistence import CandidateFilter

from .normalize import normalize_title, split_alternate_titles, title_similarity

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mediashelf.domain.model import Entity, ExternalRef, MediaType
    from mediashelf.domain.ports.persistence import EntityStore

log = getLogger(__name__)

DEFAULT_MATCH_THRESHOLD = 75.0
EXACT_SIMILARITY = 100.0


class MatchMethod(StrEnum):
    EXTERNAL_ID = "external_id"
    TITLE_EXACT = "title_exact"
    TITLE_SIMILARITY = "title_similarity"


@dataclass(slots=True, frozen=True, kw_only=True)
class MatchResult:
    entity: Entity
    is_exact_match: bool
    similarity: float
    matched_title: str
    method: MatchMethod


def media_types_compatible(expected: MediaType | None, actual: MediaType | None) -> bool:
    """Unspecified on either side is compatible; otherwise types must agree."""

    return expected is None or actual is None or expected == actual


@dataclass(slots=True, frozen=True)
class _Scored:
    entity: Entity
    similarity: float
    matched_title: str

    def rank(self) -> tuple[float, int, int]:
        entity_id = self.entity.id if self.entity.id is not None else 0
        return (-self.similarity, -len(self.entity.external_ids), entity_id)


class TitleMatcher:
    def __init__(self, store: EntityStore, *, threshold: float = DEFAULT_MATCH_THRESHOLD) -> None:
        self._store = store
        self.threshold = threshold

    def match(
        self,
        candidate_titles: Iterable[str],
        candidate_alt_titles: str | Iterable[str] | None = None,
        expected_media_type: MediaType | None = None,
        *,
        external_ref: ExternalRef | None = None,
    ) -> MatchResult | None:
        if external_ref is not None:
            entity = self._store.find_by_external_id(external_ref.provider, external_ref.value)
            if entity is not None:
                return MatchResult(
                    entity=entity,
                    is_exact_match=True,
                    similarity=EXACT_SIMILARITY,
                    matched_title=entity.titles.primary,
                    method=MatchMethod.EXTERNAL_ID,
                )

        keys = _candidate_keys(candidate_titles, candidate_alt_titles)
        if not keys:
            return None

        pool = [
            entity
            for entity in self._store.list_candidates(
                CandidateFilter(media_type=expected_media_type)
            )
            if media_types_compatible(expected_media_type, entity.media_type)
        ]

        exact: list[_Scored] = []
        fuzzy: list[_Scored] = []
        for entity in pool:
            scored = _score_entity(entity, keys)
            if scored is None:
                continue
            if scored.similarity >= EXACT_SIMILARITY:
                exact.append(scored)
            elif scored.similarity >= self.threshold:
                fuzzy.append(scored)

        if exact:
            best = min(exact, key=_Scored.rank)
            return MatchResult(
                entity=best.entity,
                is_exact_match=True,
                similarity=EXACT_SIMILARITY,
                matched_title=best.matched_title,
                method=MatchMethod.TITLE_EXACT,
            )
        if fuzzy:
            best = min(fuzzy, key=_Scored.rank)
            log.debug(
                "Fuzzy match %.2f for %s against %r",
                best.similarity,
                best.entity.label,
                best.matched_title,
            )
            return MatchResult(
                entity=best.entity,
                is_exact_match=False,
                similarity=best.similarity,
                matched_title=best.matched_title,
                method=MatchMethod.TITLE_SIMILARITY,
            )
        return None


def _candidate_keys(
    titles: Iterable[str],
    alt_titles: str | Iterable[str] | None,
) -> tuple[str, ...]:
    keys: dict[str, None] = {}
    for title in (*titles, *split_alternate_titles(alt_titles)):
        key = normalize_title(title)
        if key:
            keys.setdefault(key)
    return tuple(keys)


def _score_entity(entity: Entity, keys: tuple[str, ...]) -> _Scored | None:
    best: _Scored | None = None
    for title in entity.titles.all():
        existing = normalize_title(title)
        if not existing:
            continue
        for key in keys:
            similarity = EXACT_SIMILARITY if key == existing else title_similarity(key, existing)
            if best is None or similarity > best.similarity:
                best = _Scored(entity=entity, similarity=similarity, matched_title=title)
            if similarity >= EXACT_SIMILARITY:
                return best
    return best
