"""Catalog reconciliation: matching, protected merging and relation propagation."""

from __future__ import annotations

from .engine import ReconcileOutcome, Reconciler
from .ledger import FieldLedger
from .match import (
    DEFAULT_MATCH_THRESHOLD,
    MatchMethod,
    MatchResult,
    TitleMatcher,
    media_types_compatible,
)
from .merge import FieldChange, MergeEngine, MergeResult, is_update_signal
from .normalize import normalize_title, split_alternate_titles, title_similarity, union_titles
from .relations import RelationPropagator

__all__ = [
    "DEFAULT_MATCH_THRESHOLD",
    "FieldChange",
    "FieldLedger",
    "MatchMethod",
    "MatchResult",
    "MergeEngine",
    "MergeResult",
    "ReconcileOutcome",
    "Reconciler",
    "RelationPropagator",
    "TitleMatcher",
    "is_update_signal",
    "media_types_compatible",
    "normalize_title",
    "split_alternate_titles",
    "title_similarity",
    "union_titles",
]
