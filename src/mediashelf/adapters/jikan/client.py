"""Jikan (unofficial MyAnimeList) API client."""

from __future__ import annotations

import asyncio
import json
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from mediashelf.adapters.http_resilience import ResilientClient, raise_for_provider_status
from mediashelf.domain.errors import FatalProviderError, TransientProviderError
from mediashelf.domain.model import Provider

from .schema import JikanAnime, JikanAnimeResponse, JikanManga, JikanMangaResponse, JikanResource

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel

    from mediashelf.config.http_resilience import ResilienceConfig
    from mediashelf.config.jikan import JikanConfig

log = getLogger(__name__)

PROVIDER_BY_RESOURCE: dict[JikanResource, Provider] = {
    JikanResource.MANGA: Provider.MAL_MANGA,
    JikanResource.ANIME: Provider.MAL_ANIME,
}


class JikanClient:
    """Low-level HTTP client for the Jikan v4 API."""

    def __init__(
        self,
        *,
        config: JikanConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def fetch_manga(self, mal_id: str) -> JikanManga:
        response = asyncio.run(self._fetch_async(JikanResource.MANGA, mal_id, JikanMangaResponse))
        return response.data

    def fetch_anime(self, mal_id: str) -> JikanAnime:
        response = asyncio.run(self._fetch_async(JikanResource.ANIME, mal_id, JikanAnimeResponse))
        return response.data

    async def _fetch_async[TModel: BaseModel](
        self,
        resource: JikanResource,
        mal_id: str,
        model: type[TModel],
    ) -> TModel:
        provider = PROVIDER_BY_RESOURCE[resource]
        if not mal_id.strip().isdigit():
            raise FatalProviderError(f"Invalid MyAnimeList id {mal_id!r}", provider=provider)

        path = f"{resource}/{mal_id.strip()}/full"
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.get(path)
            except httpx.TransportError as exc:
                raise TransientProviderError(
                    f"Jikan request for {path} failed: {exc}", provider=provider
                ) from exc

        raise_for_provider_status(response, provider)
        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise FatalProviderError(
                f"Jikan returned invalid JSON for {path}", provider=provider
            ) from exc
        if not isinstance(payload, dict):
            raise FatalProviderError(f"Unexpected Jikan payload for {path}", provider=provider)

        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            log.debug("Rejected Jikan payload for %s: %s", path, exc)
            raise FatalProviderError(
                f"Malformed Jikan payload for {path}", provider=provider
            ) from exc
