"""Shared fixtures for AniList adapter tests."""

from __future__ import annotations

import pytest

from mediashelf.config.anilist import AniListConfig
from mediashelf.config.http_resilience import ResilienceConfig, RetryPolicy


@pytest.fixture
def anilist_config() -> AniListConfig:
    return AniListConfig(
        resilience=ResilienceConfig(
            name="anilist-test",
            base_url="https://graphql.anilist.test",
            retry=RetryPolicy(total=0),
            cache=None,
        ),
        request_delay_seconds=0.0,
    )


@pytest.fixture
def solo_leveling_media() -> dict[str, object]:
    return {
        "id": 105398,
        "idMal": 121496,
        "type": "MANGA",
        "format": "MANGA",
        "status": "FINISHED",
        "title": {
            "romaji": "Na Honjaman Level Up",
            "english": "Solo Leveling",
            "native": "나 혼자만 레벨업",
        },
        "synonyms": ["Only I Level Up", "Solo Leveling"],
        "description": "10 years ago, <i>the Gate</i> appeared.<br>Hunters rose.",
        "chapters": 201,
        "volumes": None,
        "countryOfOrigin": "KR",
        "isAdult": False,
        "startDate": {"year": 2018, "month": 3, "day": 4},
        "endDate": {"year": 2021, "month": 12, "day": None},
        "genres": ["Action", "Adventure", "Fantasy"],
        "tags": [
            {"name": "Dungeon", "isAdult": False},
            {"name": "Nudity", "isAdult": True},
        ],
        "averageScore": 83,
        "popularity": 190000,
        "coverImage": {"extraLarge": "https://s4.anilist.co/cover/bx105398.jpg", "large": None},
        "staff": {
            "edges": [
                {"role": "Story", "node": {"name": {"full": "Chugong"}}},
                {"role": "Art", "node": {"name": {"full": "DUBU"}}},
                {"role": "Translator (English)", "node": {"name": {"full": "Hye Young Im"}}},
            ]
        },
        "relations": {
            "edges": [
                {
                    "relationType": "SOURCE",
                    "node": {"id": 105399, "type": "MANGA", "format": "NOVEL"},
                },
                {"relationType": "ADAPTATION", "node": {"id": 151807, "type": "ANIME"}},
                {"relationType": "ADAPTATION", "node": {"id": 176496, "type": "ANIME"}},
                {"relationType": "CHARACTER", "node": {"id": 1, "type": "MANGA"}},
            ]
        },
    }
