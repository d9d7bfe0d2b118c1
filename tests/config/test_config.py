from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from mediashelf.config import (
    ConfigurationError,
    EnrichmentConfig,
    MissingConfigurationError,
    get_anilist_config,
    get_database_config,
    get_enrichment_config,
    get_jikan_config,
    get_storage_config,
    require_env_vars,
)
from mediashelf.config.enrichment import DEFAULT_MATCH_THRESHOLD, DEFAULT_PROVIDER_PRIORITY
from mediashelf.config.env import env_float, env_int

if TYPE_CHECKING:
    from pathlib import Path


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_numeric_env_helpers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NUMBER_VAR", "2.5")
    monkeypatch.setenv("BLANK_VAR", "")

    assert env_float("NUMBER_VAR", 1.0) == 2.5
    assert env_float("BLANK_VAR", 1.0) == 1.0
    assert env_int("BLANK_VAR", 3) == 3
    with pytest.raises(ConfigurationError, match="NUMBER_VAR must be an integer"):
        env_int("NUMBER_VAR", 3)


def test_enrichment_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "MEDIASHELF_MATCH_THRESHOLD",
        "MEDIASHELF_MAX_RETRIES",
        "MEDIASHELF_BACKOFF_CEILING_SECONDS",
        "MEDIASHELF_MAX_REPORTS",
        "MEDIASHELF_PROVIDER_PRIORITY",
        "MEDIASHELF_DISABLED_FIELDS",
    ):
        monkeypatch.delenv(name, raising=False)

    config = get_enrichment_config()

    assert config.match_threshold == DEFAULT_MATCH_THRESHOLD
    assert config.provider_priority == DEFAULT_PROVIDER_PRIORITY
    assert config.provider_priority["nautiljon"] > config.provider_priority["mal_manga"]
    assert config.provider_priority["mal_manga"] > config.provider_priority["anilist"]
    assert config.disabled_fields == frozenset()


def test_enrichment_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MEDIASHELF_MATCH_THRESHOLD", "90")
    monkeypatch.setenv("MEDIASHELF_MAX_RETRIES", "5")
    monkeypatch.setenv("MEDIASHELF_MAX_REPORTS", "3")

    config = get_enrichment_config()

    assert (config.match_threshold, config.max_retries, config.max_reports) == (90.0, 5, 3)


def test_enrichment_config_reads_priority_and_disabled_fields(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("MEDIASHELF_PROVIDER_PRIORITY", "anilist=50, nautiljon=10")
    monkeypatch.setenv("MEDIASHELF_DISABLED_FIELDS", "Description, sequel,,")

    config = get_enrichment_config()

    assert config.provider_priority == {
        "nautiljon": 10,
        "mal_manga": 30,
        "mal_anime": 30,
        "anilist": 50,
    }
    assert config.disabled_fields == {"description", "sequel"}


@pytest.mark.parametrize("raw", ["anilist", "anilist=high", "=5"])
def test_malformed_provider_priority_is_rejected(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("MEDIASHELF_PROVIDER_PRIORITY", raw)

    with pytest.raises(ConfigurationError, match="MEDIASHELF_PROVIDER_PRIORITY"):
        get_enrichment_config()


@pytest.mark.parametrize(
    "kwargs",
    [{"match_threshold": 0.0}, {"match_threshold": 120.0}, {"max_retries": -1}, {"max_reports": 0}],
)
def test_enrichment_config_rejects_invalid_values(kwargs: dict[str, Any]) -> None:
    with pytest.raises(ConfigurationError):
        EnrichmentConfig(**kwargs)


def test_storage_config_uses_data_dir_override(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("MEDIASHELF_DATA_DIR", str(tmp_path / "shelf"))

    storage = get_storage_config()

    assert storage.resolve_data_dir() == (tmp_path / "shelf").resolve()
    assert storage.reports_dir().is_dir()
    assert storage.database_uri().endswith("shelf/mediashelf.db")


def test_database_uri_prefers_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"

    monkeypatch.delenv("DATABASE_URI")
    monkeypatch.setenv("MEDIASHELF_DATA_DIR", str(tmp_path))
    assert get_database_config().uri == f"sqlite+pysqlite:///{tmp_path.resolve()}/mediashelf.db"


def test_provider_configs_read_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JIKAN_BASE_URL", "https://jikan.local/v4")
    monkeypatch.setenv("JIKAN_DELAY_SECONDS", "0.5")
    monkeypatch.delenv("ANILIST_BASE_URL", raising=False)

    jikan = get_jikan_config()
    anilist = get_anilist_config()

    assert jikan.resilience.base_url == "https://jikan.local/v4"
    assert jikan.request_delay_seconds == 0.5
    assert anilist.resilience.base_url == "https://graphql.anilist.co"
    assert anilist.resilience.cache is None


def test_authenticated_anilist_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ANILIST_ACCESS_TOKEN", raising=False)
    with pytest.raises(MissingConfigurationError):
        get_anilist_config(authenticated=True)

    monkeypatch.setenv("ANILIST_ACCESS_TOKEN", "token")
    config = get_anilist_config(authenticated=True)

    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["Authorization"] == "Bearer token"
