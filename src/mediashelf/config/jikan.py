"""Jikan (MyAnimeList mirror) configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import env_float
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_JIKAN_BASE_URL = "https://api.jikan.moe/v4"
DEFAULT_JIKAN_DELAY_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class JikanConfig:
    resilience: ResilienceConfig
    request_delay_seconds: float = DEFAULT_JIKAN_DELAY_SECONDS


def get_jikan_config() -> JikanConfig:
    base_url = os.getenv("JIKAN_BASE_URL") or DEFAULT_JIKAN_BASE_URL
    resilience = ResilienceConfig(
        name="jikan",
        base_url=base_url,
        ratelimit=RateLimit(max_calls=3, per_seconds=1.0),
        retry=RetryPolicy(total=2),
        cache=CacheConfig(enabled=True, backend="memory"),
        default_headers={"Accept": "application/json"},
    )
    return JikanConfig(
        resilience=resilience,
        request_delay_seconds=env_float("JIKAN_DELAY_SECONDS", DEFAULT_JIKAN_DELAY_SECONDS),
    )
