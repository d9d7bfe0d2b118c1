from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from mediashelf.domain.enrichment import ReportKind, RunReport
from mediashelf.domain.errors import FatalProviderError
from mediashelf.domain.model import CatalogField, ExternalRef, JobState, Provider, RelationKind
from mediashelf.domain.reconciliation import FieldChange
from tests.helpers.catalog import make_entity

if TYPE_CHECKING:
    from mediashelf.domain.model import Entity


def _persisted(title: str, entity_id: int) -> Entity:
    entity = make_entity(title)
    entity.id = entity_id
    return entity


def test_report_buckets_outcomes() -> None:
    report = RunReport(run_id="run-1")
    report.record_created(
        _persisted("Berserk", 1),
        [FieldChange(field=CatalogField.TITLE, before=None, after="Berserk")],
        provider=Provider.MAL_MANGA,
    )
    report.record_updated(
        _persisted("Monster", 2),
        [FieldChange(field=CatalogField.CHAPTERS, before=100, after=162)],
    )
    report.record_updated(_persisted("Pluto", 3), [])
    report.record_failed("Vagabond (#4)", FatalProviderError("404"), entity_id=4)

    assert report.kind is ReportKind.ENRICHMENT
    assert [entry.label for entry in report.created] == ["Berserk (#1)"]
    assert [entry.label for entry in report.updated] == ["Monster (#2)"]
    assert report.unchanged == 1
    assert report.failed[0].error == "FatalProviderError: 404"
    assert report.total == 4


def test_report_serialises_to_json() -> None:
    started = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    report = RunReport(run_id="run-2", kind=ReportKind.IMPORT, started_at=started)
    report.record_updated(
        _persisted("Berserk", 1),
        [
            FieldChange(
                field=CatalogField.ALTERNATE_TITLES,
                before=frozenset(),
                after=frozenset({"ベルセルク", "Berserk Deluxe"}),
            ),
            FieldChange(
                field=RelationKind.ADAPTATION,
                before=None,
                after=ExternalRef(provider=Provider.MAL_ANIME, value="33"),
            ),
        ],
    )
    report.finish(JobState.COMPLETED, at=started)

    payload = json.loads(json.dumps(report.to_dict()))

    assert payload["kind"] == "import"
    assert payload["state"] == "completed"
    assert payload["finished_at"] == "2026-03-01T12:00:00+00:00"
    assert payload["summary"]["updated"] == 1
    changes = payload["updated"][0]["changes"]
    assert changes[0] == {
        "field": "alternate_titles",
        "before": [],
        "after": ["Berserk Deluxe", "ベルセルク"],
    }
    assert changes[1]["after"] == "mal_anime:33"
