"""AniList GraphQL provider adapter."""

from __future__ import annotations

from .client import AniListClient
from .fetcher import AniListProviderAdapter
from .translator import translate_media

__all__ = [
    "AniListClient",
    "AniListProviderAdapter",
    "translate_media",
]
