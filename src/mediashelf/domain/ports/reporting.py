"""Port for persisting run reports."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from mediashelf.domain.enrichment.report import RunReport


@runtime_checkable
class ReportSink(Protocol):
    def write(self, report: RunReport) -> Path | None: ...
