"""AniList GraphQL client."""

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

from .schema import MEDIA_QUERY, AniListMedia, AniListMediaResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from mediashelf.config.anilist import AniListConfig
    from mediashelf.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


class AniListClient:
    def __init__(
        self,
        *,
        config: AniListConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def fetch_media(self, media_id: str) -> AniListMedia:
        return asyncio.run(self._fetch_media_async(media_id))

    async def _fetch_media_async(self, media_id: str) -> AniListMedia:
        if not media_id.strip().isdigit():
            raise FatalProviderError(f"Invalid AniList id {media_id!r}", provider=Provider.ANILIST)

        body = {"query": MEDIA_QUERY, "variables": {"id": int(media_id)}}
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.post("/", json=body)
            except httpx.TransportError as exc:
                raise TransientProviderError(
                    f"AniList request for media {media_id} failed: {exc}",
                    provider=Provider.ANILIST,
                ) from exc

        raise_for_provider_status(response, Provider.ANILIST)
        try:
            payload = AniListMediaResponse.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as exc:
            log.debug("Rejected AniList payload for media %s: %s", media_id, exc)
            raise FatalProviderError(
                f"Malformed AniList payload for media {media_id}", provider=Provider.ANILIST
            ) from exc

        media = payload.data.media if payload.data is not None else None
        if media is None:
            reason = "; ".join(error.message for error in payload.errors) or "no media returned"
            raise FatalProviderError(
                f"AniList media {media_id} unavailable: {reason}", provider=Provider.ANILIST
            )
        return media
