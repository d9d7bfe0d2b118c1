"""Shared fixtures for Jikan adapter tests."""

from __future__ import annotations

import pytest

from mediashelf.config.http_resilience import ResilienceConfig, RetryPolicy
from mediashelf.config.jikan import JikanConfig


@pytest.fixture
def jikan_config() -> JikanConfig:
    return JikanConfig(
        resilience=ResilienceConfig(
            name="jikan-test",
            base_url="https://jikan.test/v4",
            retry=RetryPolicy(total=0),
            cache=None,
        ),
        request_delay_seconds=0.0,
    )


@pytest.fixture
def berserk_payload() -> dict[str, object]:
    return {
        "mal_id": 2,
        "url": "https://myanimelist.net/manga/2/Berserk",
        "images": {
            "jpg": {
                "image_url": "https://cdn.myanimelist.net/images/manga/1/157897.jpg",
                "large_image_url": "https://cdn.myanimelist.net/images/manga/1/157897l.jpg",
            }
        },
        "titles": [
            {"type": "Default", "title": "Berserk"},
            {"type": "Japanese", "title": "ベルセルク"},
            {"type": "French", "title": "Berserk"},
        ],
        "title": "Berserk",
        "title_english": "Berserk",
        "title_japanese": "ベルセルク",
        "title_synonyms": ["Berserk: The Prototype"],
        "type": "Manga",
        "chapters": None,
        "volumes": None,
        "status": "Publishing",
        "publishing": True,
        "published": {"from": "1989-08-25T00:00:00+00:00", "to": None},
        "score": 9.47,
        "rank": 1,
        "popularity": 2,
        "synopsis": "  Guts, a former mercenary now known as the Black Swordsman.  ",
        "background": "",
        "authors": [{"mal_id": 1868, "type": "people", "name": "Miura, Kentarou"}],
        "serializations": [{"mal_id": 2, "type": "manga", "name": "Young Animal"}],
        "genres": [
            {"mal_id": 1, "type": "manga", "name": "Action"},
            {"mal_id": 8, "type": "manga", "name": "Drama"},
        ],
        "explicit_genres": [],
        "themes": [{"mal_id": 58, "type": "manga", "name": "Gore"}],
        "demographics": [{"mal_id": 41, "type": "manga", "name": "Seinen"}],
        "relations": [
            {
                "relation": "Adaptation",
                "entry": [
                    {"mal_id": 33, "type": "anime", "name": "Kenpuu Denki Berserk"},
                    {"mal_id": 10218, "type": "anime", "name": "Berserk: Ougon Jidai-hen I"},
                ],
            },
            {
                "relation": "Side story",
                "entry": [{"mal_id": 92299, "type": "manga", "name": "Berserk: Shinen no Kami"}],
            },
        ],
        "external": [{"name": "Wikipedia", "url": "https://en.wikipedia.org/wiki/Berserk"}],
    }


@pytest.fixture
def cowboy_bebop_payload() -> dict[str, object]:
    return {
        "mal_id": 1,
        "title": "Cowboy Bebop",
        "title_english": "Cowboy Bebop",
        "title_japanese": "カウボーイビバップ",
        "title_synonyms": [],
        "type": "TV",
        "source": "Original",
        "episodes": 26,
        "status": "Finished Airing",
        "aired": {"from": "1998-04-03T00:00:00+00:00", "to": "1999-04-24T00:00:00+00:00"},
        "rating": "R - 17+ (violence & profanity)",
        "score": 8.75,
        "genres": [{"mal_id": 1, "type": "anime", "name": "Action"}],
        "studios": [{"mal_id": 14, "type": "anime", "name": "Sunrise"}],
        "relations": [
            {
                "relation": "Side Story",
                "entry": [{"mal_id": 5, "type": "anime", "name": "Cowboy Bebop: Tengoku"}],
            },
            {
                "relation": "Adaptation",
                "entry": [{"mal_id": 173, "type": "manga", "name": "Cowboy Bebop"}],
            },
        ],
    }
