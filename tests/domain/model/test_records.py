from __future__ import annotations

import pytest

from mediashelf.domain.model import (
    CatalogField,
    GameRecord,
    MediaType,
    PrintRecord,
    Provider,
    ScreenRecord,
    record_class_for,
)


def test_record_rejects_fields_outside_its_kind() -> None:
    with pytest.raises(ValueError, match="episodes"):
        PrintRecord(
            provider=Provider.MAL_MANGA,
            external_id="2",
            title="Berserk",
            values={CatalogField.EPISODES: 25},
        )


def test_record_requires_title_and_id() -> None:
    with pytest.raises(ValueError, match="empty title"):
        ScreenRecord(provider=Provider.MAL_ANIME, external_id="33", title="  ")
    with pytest.raises(ValueError, match="empty external id"):
        ScreenRecord(provider=Provider.MAL_ANIME, external_id="", title="Berserk")


@pytest.mark.parametrize(
    ("media_type", "expected"),
    [
        (MediaType.MANHWA, PrintRecord),
        (MediaType.LIGHT_NOVEL, PrintRecord),
        (MediaType.MOVIE, ScreenRecord),
        (MediaType.GAME, GameRecord),
    ],
)
def test_record_class_for_media_type(media_type: MediaType, expected: type) -> None:
    assert record_class_for(media_type) is expected
