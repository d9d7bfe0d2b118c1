from __future__ import annotations

import pytest

from mediashelf.domain.model import (
    CatalogField,
    ExternalRef,
    Provider,
    RelationKind,
    assign_value,
    parse_protectable_name,
    read_value,
)
from tests.helpers.catalog import make_entity


def test_external_ref_round_trips_through_text() -> None:
    ref = ExternalRef.parse(" mal_anime : 33 ")

    assert ref == ExternalRef(provider=Provider.MAL_ANIME, value="33")
    assert str(ref) == "mal_anime:33"


@pytest.mark.parametrize("raw", ["mal_anime", "mal_anime:", "unknown:1"])
def test_external_ref_rejects_malformed_text(raw: str) -> None:
    with pytest.raises(ValueError):  # noqa: PT011
        ExternalRef.parse(raw)


def test_provider_family_groups_mal_id_spaces() -> None:
    assert Provider.MAL_MANGA.family == Provider.MAL_ANIME.family == "mal"
    assert Provider.ANILIST.family == "anilist"


def test_external_ref_in_family_prefers_declaration_order() -> None:
    entity = make_entity(external_ids={Provider.MAL_ANIME: "33", Provider.MAL_MANGA: "2"})

    assert entity.external_ref_in_family("mal") == ExternalRef(
        provider=Provider.MAL_MANGA, value="2"
    )
    assert entity.external_ref_in_family("anilist") is None


def test_read_and_assign_by_protectable_name() -> None:
    entity = make_entity("Berserk", alternates={"ベルセルク"})
    sequel = ExternalRef(provider=Provider.MAL_MANGA, value="3")

    assign_value(entity, CatalogField.ALTERNATE_TITLES, ("A", "B"))
    assign_value(entity, RelationKind.SEQUEL, sequel)
    assign_value(entity, CatalogField.CHAPTERS, 12)

    assert read_value(entity, CatalogField.TITLE) == "Berserk"
    assert read_value(entity, CatalogField.ALTERNATE_TITLES) == frozenset({"A", "B"})
    assert read_value(entity, RelationKind.SEQUEL) == sequel
    assert read_value(entity, CatalogField.CHAPTERS) == 12

    assign_value(entity, CatalogField.CHAPTERS, None)
    assert read_value(entity, CatalogField.CHAPTERS) is None


def test_assign_value_checks_types() -> None:
    entity = make_entity()

    with pytest.raises(TypeError):
        assign_value(entity, CatalogField.TITLE, "  ")
    with pytest.raises(TypeError):
        assign_value(entity, RelationKind.SEQUEL, "mal_manga:3")


def test_parse_protectable_name() -> None:
    assert parse_protectable_name("title") is CatalogField.TITLE
    assert parse_protectable_name("sequel") is RelationKind.SEQUEL
    with pytest.raises(ValueError):  # noqa: PT011
        parse_protectable_name("bogus")
