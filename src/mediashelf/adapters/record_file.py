"""JSON Lines files of normalized records (the bulk import format).

One object per line::

    {"provider": "mal_manga", "external_id": "2", "title": "Berserk",
     "media_type": "manga", "alternate_titles": ["ベルセルク"],
     "values": {"chapters": 380, "genres": ["Action"]},
     "relations": {"adaptation": "mal_anime:33"}}

``alternate_titles`` may also be a delimited or JSON-array string. Blank lines
and lines starting with ``#`` are skipped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediashelf.domain.model import (
    RECORD_CLASS_BY_KIND,
    CatalogField,
    ExternalRef,
    MediaType,
    Provider,
    RecordKind,
    RelationKind,
    record_class_for,
)
from mediashelf.domain.reconciliation.normalize import split_alternate_titles

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from mediashelf.domain.model import FieldValue, NormalizedRecord

log = logging.getLogger(__name__)


class RecordLine(BaseModel):
    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    provider: Provider
    external_id: str
    title: str
    media_type: MediaType | None = None
    kind: RecordKind | None = None
    alternate_titles: list[str] = Field(default_factory=list)
    values: dict[CatalogField, Any] = Field(default_factory=dict)
    relations: dict[RelationKind, str] = Field(default_factory=dict)

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning("Record file: ignoring unknown keys: %s", ", ".join(sorted(new_keys)))

    @field_validator("external_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    @field_validator("alternate_titles", mode="before")
    @classmethod
    def _split_titles(cls, value: object) -> object:
        if value is None or isinstance(value, str):
            return split_alternate_titles(value)
        return value


def _field_value(raw: Any) -> FieldValue:  # noqa: ANN401
    if isinstance(raw, list):
        return tuple(str(item) for item in cast("list[Any]", raw))
    if raw is None or isinstance(raw, (str, int, float, bool)):
        return raw
    raise ValueError(f"Unsupported field value {raw!r}")


def to_record(line: RecordLine) -> NormalizedRecord:
    if line.kind is not None:
        record_cls = RECORD_CLASS_BY_KIND[line.kind]
    elif line.media_type is not None:
        record_cls = record_class_for(line.media_type)
    else:
        raise ValueError("Record needs either 'media_type' or 'kind'")

    return record_cls(
        provider=line.provider,
        external_id=line.external_id,
        title=line.title,
        alternate_titles=tuple(line.alternate_titles),
        media_type=line.media_type,
        values={name: _field_value(value) for name, value in line.values.items()},
        relations={kind: ExternalRef.parse(ref) for kind, ref in line.relations.items()},
    )


def parse_record(text: str) -> NormalizedRecord:
    """Parse one JSON line; raises ``ValueError`` (including pydantic errors)."""

    return to_record(RecordLine.model_validate_json(text))


def iter_record_lines(path: Path) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, text)`` for every non-blank, non-comment line."""

    with path.open(encoding="utf-8") as handle:
        for number, raw in enumerate(handle, start=1):
            text = raw.strip()
            if not text or text.startswith("#"):
                continue
            yield number, text
