"""Jikan (MyAnimeList) provider adapter."""

from __future__ import annotations

from .client import JikanClient
from .fetcher import JikanProviderAdapter, build_jikan_adapters
from .schema import JikanResource
from .translator import translate_anime, translate_manga

__all__ = [
    "JikanClient",
    "JikanProviderAdapter",
    "JikanResource",
    "build_jikan_adapters",
    "translate_anime",
    "translate_manga",
]
