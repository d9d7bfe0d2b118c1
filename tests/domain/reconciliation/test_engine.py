from __future__ import annotations

from mediashelf.domain.model import (
    CatalogField,
    ExternalRef,
    MediaType,
    Provider,
    RelationKind,
)
from mediashelf.domain.reconciliation import MatchMethod, Reconciler
from tests.helpers.catalog import make_entity, make_print_record, make_screen_record, make_store


def test_unmatched_record_creates_entity() -> None:
    store = make_store()
    reconciler = Reconciler(store)

    outcome = reconciler.reconcile(
        make_print_record("Berserk", values={CatalogField.CHAPTERS: 364}),
    )

    assert outcome.match is None
    assert outcome.merge.created
    assert outcome.entity.id == 1
    assert store.find_by_external_id(Provider.MAL_MANGA, "2") is not None


def test_second_import_rematches_by_external_id_and_signals_update() -> None:
    store = make_store()
    reconciler = Reconciler(store)
    reconciler.reconcile(make_print_record("Berserk", values={CatalogField.CHAPTERS: 364}))

    outcome = reconciler.reconcile(
        make_print_record("Berserk: Renamed", values={CatalogField.CHAPTERS: 370}),
    )

    assert outcome.match is not None
    assert outcome.match.method is MatchMethod.EXTERNAL_ID
    assert not outcome.merge.created
    assert outcome.merge.update_signalled
    stored = store.get_entity(1)
    assert stored is not None
    assert stored.fields[CatalogField.CHAPTERS] == 370
    assert stored.update_available
    assert stored.titles.alternates == {"Berserk"}


def test_media_type_guard_creates_separate_entities() -> None:
    store = make_store(
        make_entity(
            "Attack on Titan",
            media_type=MediaType.ANIME,
            external_ids={Provider.MAL_ANIME: "16498"},
        )
    )
    reconciler = Reconciler(store)

    outcome = reconciler.reconcile(
        make_print_record("Attack on Titan", external_id="23390", media_type=MediaType.MANGA),
    )

    assert outcome.merge.created
    assert outcome.entity.id == 2
    assert outcome.entity.media_type is MediaType.MANGA


def test_title_match_links_new_provider_id() -> None:
    store = make_store(make_entity("Shingeki no Kyojin", alternates={"Attack on Titan"}))
    reconciler = Reconciler(store)

    outcome = reconciler.reconcile(
        make_print_record("Attack on Titan", provider=Provider.ANILIST, external_id="53390"),
    )

    assert outcome.match is not None
    assert outcome.match.method is MatchMethod.TITLE_EXACT
    stored = store.get_entity(1)
    assert stored is not None
    assert stored.external_ids == {Provider.ANILIST: "53390"}


def test_explicit_entity_skips_matching() -> None:
    entity = make_entity("Totally Different", external_ids={Provider.MAL_MANGA: "2"})
    store = make_store(entity)
    reconciler = Reconciler(store)

    outcome = reconciler.reconcile(make_print_record("Berserk"), entity=entity)

    assert outcome.match is None
    assert outcome.entity is entity


def test_reconcile_propagates_relations_of_the_merged_entity() -> None:
    store = make_store(
        make_entity("Berserk", media_type=MediaType.MANGA, external_ids={Provider.MAL_MANGA: "2"})
    )
    reconciler = Reconciler(store)

    outcome = reconciler.reconcile(
        make_screen_record(
            "Berserk",
            relations={RelationKind.SOURCE: ExternalRef(provider=Provider.MAL_MANGA, value="2")},
        )
    )

    assert outcome.merge.created
    assert outcome.relations_updated == 1
    manga = store.get_entity(1)
    assert manga is not None
    assert manga.relations[RelationKind.ADAPTATION] == ExternalRef(
        provider=Provider.MAL_ANIME, value="33"
    )
