"""Per-run outcome accumulation (created / updated / failed with field diffs)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from mediashelf.domain.model import ExternalRef

if TYPE_CHECKING:
    from mediashelf.domain.model import Entity, FieldValue, JobState, Provider
    from mediashelf.domain.reconciliation.merge import FieldChange


class ReportKind(StrEnum):
    ENRICHMENT = "enrichment"
    IMPORT = "import"


@dataclass(slots=True, frozen=True, kw_only=True)
class ReportEntry:
    label: str
    entity_id: int | None = None
    provider: Provider | None = None
    changes: tuple[FieldChange, ...] = ()
    error: str | None = None


def _jsonable(value: FieldValue) -> Any:  # noqa: ANN401
    if isinstance(value, ExternalRef):
        return str(value)
    if isinstance(value, (frozenset, set)):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    return value


@dataclass(slots=True, kw_only=True)
class RunReport:
    run_id: str
    kind: ReportKind = ReportKind.ENRICHMENT
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    state: JobState | None = None
    created: list[ReportEntry] = field(default_factory=list[ReportEntry])
    updated: list[ReportEntry] = field(default_factory=list[ReportEntry])
    failed: list[ReportEntry] = field(default_factory=list[ReportEntry])
    unchanged: int = 0

    @property
    def total(self) -> int:
        return len(self.created) + len(self.updated) + len(self.failed) + self.unchanged

    def record_created(
        self, entity: Entity, changes: list[FieldChange], *, provider: Provider | None = None
    ) -> None:
        self.created.append(
            ReportEntry(
                label=entity.label,
                entity_id=entity.id,
                provider=provider,
                changes=tuple(changes),
            )
        )

    def record_updated(
        self, entity: Entity, changes: list[FieldChange], *, provider: Provider | None = None
    ) -> None:
        if not changes:
            self.unchanged += 1
            return
        self.updated.append(
            ReportEntry(
                label=entity.label,
                entity_id=entity.id,
                provider=provider,
                changes=tuple(changes),
            )
        )

    def record_failed(
        self,
        label: str,
        error: BaseException | str,
        *,
        entity_id: int | None = None,
        provider: Provider | None = None,
    ) -> None:
        message = error if isinstance(error, str) else f"{type(error).__name__}: {error}"
        self.failed.append(
            ReportEntry(label=label, entity_id=entity_id, provider=provider, error=message)
        )

    def finish(self, state: JobState, *, at: datetime | None = None) -> None:
        self.state = state
        self.finished_at = at or datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        def entry(item: ReportEntry) -> dict[str, Any]:
            return {
                "label": item.label,
                "entity_id": item.entity_id,
                "provider": item.provider,
                "error": item.error,
                "changes": [
                    {
                        "field": str(change.field),
                        "before": _jsonable(change.before),
                        "after": _jsonable(change.after),
                    }
                    for change in item.changes
                ],
            }

        return {
            "run_id": self.run_id,
            "kind": str(self.kind),
            "state": str(self.state) if self.state is not None else None,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "summary": {
                "total": self.total,
                "created": len(self.created),
                "updated": len(self.updated),
                "failed": len(self.failed),
                "unchanged": self.unchanged,
            },
            "created": [entry(item) for item in self.created],
            "updated": [entry(item) for item in self.updated],
            "failed": [entry(item) for item in self.failed],
        }
