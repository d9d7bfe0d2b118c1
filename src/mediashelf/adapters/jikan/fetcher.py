"""Jikan provider adapters (one per MyAnimeList id space)."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.errors import FatalProviderError

from .client import PROVIDER_BY_RESOURCE, JikanClient
from .schema import JikanResource
from .translator import translate_anime, translate_manga

if TYPE_CHECKING:
    from mediashelf.config.jikan import JikanConfig
    from mediashelf.domain.model import NormalizedRecord, Provider

log = getLogger(__name__)


class JikanProviderAdapter:
    """Fetch MyAnimeList manga or anime through Jikan and translate them.

    ``mal_manga`` and ``mal_anime`` ids live in separate id spaces, so each
    resource gets its own adapter instance.
    """

    def __init__(
        self,
        resource: JikanResource,
        *,
        config: JikanConfig,
        client: JikanClient | None = None,
    ) -> None:
        self._resource = resource
        self._client = client or JikanClient(config=config)

    @property
    def provider(self) -> Provider:
        return PROVIDER_BY_RESOURCE[self._resource]

    def fetch_by_id(self, external_id: str) -> NormalizedRecord:
        log.debug("Fetching %s %s from Jikan", self._resource, external_id)
        try:
            if self._resource is JikanResource.ANIME:
                return translate_anime(self._client.fetch_anime(external_id))
            return translate_manga(self._client.fetch_manga(external_id))
        except ValueError as exc:
            raise FatalProviderError(
                f"Jikan {self._resource} {external_id} cannot be normalized: {exc}",
                provider=self.provider,
            ) from exc


def build_jikan_adapters(
    config: JikanConfig,
    *,
    client: JikanClient | None = None,
) -> list[JikanProviderAdapter]:
    shared = client or JikanClient(config=config)
    return [
        JikanProviderAdapter(resource, config=config, client=shared) for resource in JikanResource
    ]


if TYPE_CHECKING:
    from mediashelf.domain.ports.providers import ProviderAdapter

    def _adapter_check(config: JikanConfig) -> ProviderAdapter:
        return JikanProviderAdapter(JikanResource.MANGA, config=config)
