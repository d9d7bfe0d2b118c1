"""Reconciliation and enrichment run settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from .env import env_float, env_int
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_MATCH_THRESHOLD = 75.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_MARGIN_SECONDS = 1.0
DEFAULT_BACKOFF_CEILING_SECONDS = 300.0
DEFAULT_MAX_REPORTS = 10

# Keyed by provider value. Higher wins when deciding who may overwrite shared fields.
# Nautiljon's curated VO data beats both MyAnimeList and AniList.
DEFAULT_PROVIDER_PRIORITY: Mapping[str, int] = MappingProxyType(
    {
        "nautiljon": 40,
        "mal_manga": 30,
        "mal_anime": 30,
        "anilist": 20,
    }
)


@dataclass(frozen=True, slots=True)
class EnrichmentConfig:
    """Run settings.

    ``disabled_fields`` holds catalog field or relation names (``description``,
    ``sequel``...) that merges must leave alone; values are checked when the
    reconciler is built.
    """

    match_threshold: float = DEFAULT_MATCH_THRESHOLD
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_margin_seconds: float = DEFAULT_RETRY_MARGIN_SECONDS
    backoff_ceiling_seconds: float = DEFAULT_BACKOFF_CEILING_SECONDS
    max_reports: int = DEFAULT_MAX_REPORTS
    provider_priority: Mapping[str, int] = field(default_factory=lambda: DEFAULT_PROVIDER_PRIORITY)
    disabled_fields: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not 0 < self.match_threshold <= 100:  # noqa: PLR2004
            raise ConfigurationError(
                f"Match threshold must be within (0, 100], got {self.match_threshold}"
            )
        if self.max_retries < 0:
            raise ConfigurationError("Max retries must be non-negative")
        if self.max_reports < 1:
            raise ConfigurationError("At least one report must be kept")


def _env_priority(name: str) -> Mapping[str, int]:
    """Parse ``provider=rank`` pairs, e.g. ``anilist=50,nautiljon=10``, over the defaults."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return DEFAULT_PROVIDER_PRIORITY
    priority = dict(DEFAULT_PROVIDER_PRIORITY)
    for pair in raw.split(","):
        provider, sep, rank = pair.partition("=")
        provider = provider.strip()
        if not sep or not provider:
            raise ConfigurationError(f"{name} entries must look like provider=rank, got {pair!r}")
        try:
            priority[provider] = int(rank)
        except ValueError as exc:
            raise ConfigurationError(f"{name} rank for {provider} must be an integer") from exc
    return MappingProxyType(priority)


def _env_names(name: str) -> frozenset[str]:
    raw = os.getenv(name) or ""
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


def get_enrichment_config() -> EnrichmentConfig:
    return EnrichmentConfig(
        match_threshold=env_float("MEDIASHELF_MATCH_THRESHOLD", DEFAULT_MATCH_THRESHOLD),
        max_retries=env_int("MEDIASHELF_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        backoff_ceiling_seconds=env_float(
            "MEDIASHELF_BACKOFF_CEILING_SECONDS", DEFAULT_BACKOFF_CEILING_SECONDS
        ),
        max_reports=env_int("MEDIASHELF_MAX_REPORTS", DEFAULT_MAX_REPORTS),
        provider_priority=_env_priority("MEDIASHELF_PROVIDER_PRIORITY"),
        disabled_fields=_env_names("MEDIASHELF_DISABLED_FIELDS"),
    )
