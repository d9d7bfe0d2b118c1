from __future__ import annotations

from datetime import UTC, datetime

import pytest

from mediashelf.adapters.memory import InMemoryCatalog, InMemoryUnitOfWork
from mediashelf.domain.model import CatalogField, MediaType, Provider
from mediashelf.domain.ports.persistence import CandidateFilter
from tests.helpers.catalog import make_entity, make_store


def test_catalog_assigns_ids_in_order() -> None:
    catalog = InMemoryCatalog([make_entity("Berserk"), make_entity("Monster")])

    first = catalog.get(1)
    second = catalog.get(2)

    assert len(catalog) == 2
    assert first is not None
    assert first.titles.primary == "Berserk"
    assert second is not None
    assert second.titles.primary == "Monster"


def test_commit_publishes_changes(catalog: InMemoryCatalog) -> None:
    with InMemoryUnitOfWork(catalog) as uow:
        entity = uow.repositories.entities.add(make_entity("Pluto"))
        uow.repositories.entities.write_field(entity.id or 0, CatalogField.CHAPTERS, 65)
        assert catalog.get(entity.id or 0) is None
        uow.commit()

    stored = catalog.get(1)
    assert stored is not None
    assert stored.fields[CatalogField.CHAPTERS] == 65
    assert uow.commits == 1


def test_exception_discards_working_copy(catalog: InMemoryCatalog) -> None:
    with pytest.raises(RuntimeError, match="boom"), InMemoryUnitOfWork(catalog) as uow:
        uow.repositories.entities.add(make_entity("Pluto"))
        raise RuntimeError("boom")

    assert len(catalog) == 0


def test_rollback_restores_committed_state() -> None:
    catalog = InMemoryCatalog([make_entity("Berserk", fields={CatalogField.CHAPTERS: 364})])

    with InMemoryUnitOfWork(catalog) as uow:
        uow.repositories.entities.write_field(1, CatalogField.CHAPTERS, 999)
        uow.rollback()
        entity = uow.repositories.entities.get_entity(1)
        uow.commit()

    assert entity is not None
    assert entity.fields[CatalogField.CHAPTERS] == 364
    stored = catalog.get(1)
    assert stored is not None
    assert stored.fields[CatalogField.CHAPTERS] == 364


def test_repositories_outside_context_raise(catalog: InMemoryCatalog) -> None:
    uow = InMemoryUnitOfWork(catalog)

    with pytest.raises(RuntimeError, match="outside of its context"):
        _ = uow.repositories
    with pytest.raises(RuntimeError, match="outside of its context"):
        uow.commit()


def test_store_returns_copies() -> None:
    store = make_store(make_entity("Berserk"))

    entity = store.get_entity(1)
    assert entity is not None
    entity.fields[CatalogField.CHAPTERS] = 1

    again = store.get_entity(1)
    assert again is not None
    assert CatalogField.CHAPTERS not in again.fields


def test_write_to_unknown_entity_raises() -> None:
    with pytest.raises(KeyError):
        make_store().mark_enriched(42, datetime(2024, 1, 1, tzinfo=UTC))


def test_list_candidates_filters_and_orders_newest_first() -> None:
    older = make_entity("Berserk", external_ids={Provider.MAL_MANGA: "2"})
    older.created_at = datetime(2024, 1, 1, tzinfo=UTC)
    newer = make_entity("Monster", external_ids={Provider.MAL_MANGA: "1"})
    newer.created_at = datetime(2024, 6, 1, tzinfo=UTC)
    untyped = make_entity("Pluto", media_type=None, external_ids={Provider.ANILIST: "30"})
    untyped.created_at = datetime(2024, 6, 1, tzinfo=UTC)
    anime = make_entity("Berserk", media_type=MediaType.ANIME)
    enriched = make_entity("Vagabond", external_ids={Provider.MAL_MANGA: "656"})
    enriched.enriched_at = datetime(2024, 7, 1, tzinfo=UTC)
    store = make_store(older, newer, untyped, anime, enriched)

    manga = store.list_candidates(
        CandidateFilter(media_type=MediaType.MANGA, unenriched_only=True)
    )
    mal = store.list_candidates(CandidateFilter(providers=frozenset({Provider.MAL_MANGA})))
    limited = store.list_candidates(CandidateFilter(media_type=MediaType.MANGA, limit=1))

    assert [entity.titles.primary for entity in manga] == ["Monster", "Pluto", "Berserk"]
    assert {entity.titles.primary for entity in mal} == {"Berserk", "Monster", "Vagabond"}
    assert len(limited) == 1
