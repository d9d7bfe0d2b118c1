from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from mediashelf.adapters.jikan import (
    JikanClient,
    JikanProviderAdapter,
    JikanResource,
    build_jikan_adapters,
)
from mediashelf.domain.errors import FatalProviderError, TransientProviderError
from mediashelf.domain.model import MediaType, Provider
from tests.helpers.http import mock_client_factory

if TYPE_CHECKING:
    from collections.abc import Callable

    from mediashelf.config.jikan import JikanConfig


def _client(
    config: JikanConfig,
    handler: Callable[[httpx.Request], httpx.Response],
) -> JikanClient:
    return JikanClient(config=config, client_factory=mock_client_factory(handler))


def test_fetch_manga_requests_full_resource(
    jikan_config: JikanConfig, berserk_payload: dict[str, object]
) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": berserk_payload})

    manga = _client(jikan_config, handler).fetch_manga("2")

    assert manga.mal_id == 2
    assert manga.title == "Berserk"
    assert [str(request.url) for request in seen] == ["https://jikan.test/v4/manga/2/full"]


def test_fetch_anime_requests_anime_resource(
    jikan_config: JikanConfig, cowboy_bebop_payload: dict[str, object]
) -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"data": cowboy_bebop_payload})

    anime = _client(jikan_config, handler).fetch_anime(" 1 ")

    assert anime.episodes == 26
    assert paths == ["/v4/anime/1/full"]


def test_unknown_id_is_fatal(jikan_config: JikanConfig) -> None:
    client = _client(jikan_config, lambda _request: httpx.Response(404, json={"status": 404}))

    with pytest.raises(FatalProviderError) as excinfo:
        client.fetch_manga("999999")

    assert excinfo.value.provider is Provider.MAL_MANGA


def test_rate_limit_is_transient_with_retry_hint(jikan_config: JikanConfig) -> None:
    client = _client(
        jikan_config,
        lambda _request: httpx.Response(429, headers={"Retry-After": "3"}),
    )

    with pytest.raises(TransientProviderError) as excinfo:
        client.fetch_anime("1")

    assert excinfo.value.retry_after == "3"
    assert excinfo.value.provider is Provider.MAL_ANIME


def test_server_error_is_transient(jikan_config: JikanConfig) -> None:
    client = _client(jikan_config, lambda _request: httpx.Response(503))

    with pytest.raises(TransientProviderError):
        client.fetch_manga("2")


def test_network_failure_is_transient(jikan_config: JikanConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientProviderError):
        _client(jikan_config, handler).fetch_manga("2")


def test_non_numeric_id_is_rejected_without_request(jikan_config: JikanConfig) -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(FatalProviderError, match="Invalid MyAnimeList id"):
        _client(jikan_config, handler).fetch_manga("berserk")

    assert calls == []


def test_invalid_json_is_fatal(jikan_config: JikanConfig) -> None:
    client = _client(jikan_config, lambda _request: httpx.Response(200, content=b"<html>"))

    with pytest.raises(FatalProviderError, match="invalid JSON"):
        client.fetch_manga("2")


def test_payload_without_required_fields_is_fatal(jikan_config: JikanConfig) -> None:
    client = _client(
        jikan_config,
        lambda _request: httpx.Response(200, json={"data": {"mal_id": 2}}),
    )

    with pytest.raises(FatalProviderError, match="Malformed"):
        client.fetch_manga("2")


def test_adapters_cover_both_id_spaces(
    jikan_config: JikanConfig,
    berserk_payload: dict[str, object],
    cowboy_bebop_payload: dict[str, object],
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/v4/anime/"):
            return httpx.Response(200, json={"data": cowboy_bebop_payload})
        return httpx.Response(200, json={"data": berserk_payload})

    manga_adapter, anime_adapter = build_jikan_adapters(
        jikan_config, client=_client(jikan_config, handler)
    )

    manga = manga_adapter.fetch_by_id("2")
    anime = anime_adapter.fetch_by_id("1")

    assert (manga_adapter.provider, anime_adapter.provider) == (
        Provider.MAL_MANGA,
        Provider.MAL_ANIME,
    )
    assert manga.media_type is MediaType.MANGA
    assert anime.media_type is MediaType.ANIME


def test_adapter_reports_untranslatable_entry_as_fatal(
    jikan_config: JikanConfig, berserk_payload: dict[str, object]
) -> None:
    berserk_payload["title"] = "   "
    adapter = JikanProviderAdapter(
        JikanResource.MANGA,
        config=jikan_config,
        client=_client(
            jikan_config, lambda _request: httpx.Response(200, json={"data": berserk_payload})
        ),
    )

    with pytest.raises(FatalProviderError, match="cannot be normalized"):
        adapter.fetch_by_id("2")
