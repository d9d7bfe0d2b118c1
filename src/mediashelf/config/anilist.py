"""AniList GraphQL configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import env_float, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_ANILIST_BASE_URL = "https://graphql.anilist.co"
DEFAULT_ANILIST_DELAY_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class AniListConfig:
    resilience: ResilienceConfig
    request_delay_seconds: float = DEFAULT_ANILIST_DELAY_SECONDS


def get_anilist_config(*, authenticated: bool = False) -> AniListConfig:
    """Build the AniList client configuration.

    Public media lookups need no credentials; ``authenticated=True`` requires
    ``ANILIST_ACCESS_TOKEN`` (an OAuth bearer token) and raises otherwise.
    """

    headers = {"Accept": "application/json", "Content-Type": "application/json"}
    if authenticated:
        token = require_env_vars(("ANILIST_ACCESS_TOKEN",))["ANILIST_ACCESS_TOKEN"]
        headers["Authorization"] = f"Bearer {token}"

    resilience = ResilienceConfig(
        name="anilist",
        base_url=os.getenv("ANILIST_BASE_URL") or DEFAULT_ANILIST_BASE_URL,
        ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
        retry=RetryPolicy(total=2),
        # GraphQL lookups are POSTs; hishel would not cache them anyway
        cache=None,
        default_headers=headers,
    )
    return AniListConfig(
        resilience=resilience,
        request_delay_seconds=env_float("ANILIST_DELAY_SECONDS", DEFAULT_ANILIST_DELAY_SECONDS),
    )
