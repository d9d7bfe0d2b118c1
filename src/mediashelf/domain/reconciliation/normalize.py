"""Title normalisation, alternate-title parsing and similarity scoring."""

from __future__ import annotations

import json
import re
import unicodedata
from typing import TYPE_CHECKING, Any, cast

from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from collections.abc import Iterable

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
# Word characters plus the kana and CJK ideograph blocks; everything else is noise.
_NOT_TITLE_CHAR = re.compile(r"[^\w\u3040-\u309f\u30a0-\u30ff\u4e00-\u9faf\u3400-\u4dbf]")
_ALT_TITLE_DELIMITERS = re.compile(r"[\n\r;,/|]+")


def normalize_title(value: str | None) -> str:
    """Reduce a title to its comparison key.

    NFKC folds full-width and compatibility forms, then the title is lowercased,
    stripped of diacritics, whitespace and punctuation. Letters, digits and CJK
    characters survive.
    """

    if not value:
        return ""
    text = unicodedata.normalize("NFKC", value).lower()
    text = _COMBINING_MARKS.sub("", unicodedata.normalize("NFD", text))
    text = _NOT_TITLE_CHAR.sub("", text)
    return text.replace("_", "")


def split_alternate_titles(raw: str | Iterable[str] | None) -> list[str]:
    """Parse stored or provider-supplied alternate titles into a clean list.

    Accepts a JSON array string, a delimited string (``"A / B | C"``) or any
    iterable of strings. Unparseable input yields an empty list.
    """

    if raw is None:
        return []
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                loaded = json.loads(text)
            except json.JSONDecodeError:
                loaded = None
            if isinstance(loaded, list):
                items = cast("list[Any]", loaded)
                return [str(item).strip() for item in items if str(item).strip()]
        return [part.strip() for part in _ALT_TITLE_DELIMITERS.split(text) if part.strip()]
    return [str(item).strip() for item in raw if item is not None and str(item).strip()]


def union_titles(
    *groups: Iterable[str],
    exclude: Iterable[str] = (),
) -> list[str]:
    """Merge title groups, keeping the first spelling of each normalised key.

    Titles that normalise to empty, or to the same key as anything in
    ``exclude`` (typically the primary title), are dropped.
    """

    seen = {key for key in (normalize_title(title) for title in exclude) if key}
    merged: list[str] = []
    for group in groups:
        for title in group:
            key = normalize_title(title)
            if not key or key in seen:
                continue
            seen.add(key)
            merged.append(title.strip())
    return merged


def title_similarity(left: str, right: str) -> float:
    """Score two normalised titles on a 0-100 scale (normalised Levenshtein)."""

    if not left or not right:
        return 0.0
    return round(Levenshtein.normalized_similarity(left, right) * 100, 2)
