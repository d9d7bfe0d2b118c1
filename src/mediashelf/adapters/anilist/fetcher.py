"""AniList provider adapter."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.errors import FatalProviderError
from mediashelf.domain.model import Provider

from .client import AniListClient
from .translator import translate_media

if TYPE_CHECKING:
    from mediashelf.config.anilist import AniListConfig
    from mediashelf.domain.model import NormalizedRecord

log = getLogger(__name__)


class AniListProviderAdapter:
    def __init__(self, *, config: AniListConfig, client: AniListClient | None = None) -> None:
        self._client = client or AniListClient(config=config)

    @property
    def provider(self) -> Provider:
        return Provider.ANILIST

    def fetch_by_id(self, external_id: str) -> NormalizedRecord:
        log.debug("Fetching AniList media %s", external_id)
        media = self._client.fetch_media(external_id)
        try:
            return translate_media(media)
        except ValueError as exc:
            raise FatalProviderError(
                f"AniList media {external_id} cannot be normalized: {exc}",
                provider=Provider.ANILIST,
            ) from exc


if TYPE_CHECKING:
    from mediashelf.domain.ports.providers import ProviderAdapter

    def _adapter_check(config: AniListConfig) -> ProviderAdapter:
        return AniListProviderAdapter(config=config)
