"""Run reports on disk: a readable text file plus a JSON twin, with rotation."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.model import ExternalRef

if TYPE_CHECKING:
    from pathlib import Path

    from mediashelf.domain.enrichment.report import ReportEntry, RunReport
    from mediashelf.domain.model import FieldValue

log = getLogger(__name__)

DEFAULT_MAX_REPORTS = 10
RULE_WIDTH = 80
MAX_VALUE_WIDTH = 80

_TITLES = {
    "enrichment": "ENRICHMENT REPORT",
    "import": "IMPORT REPORT",
}


def format_value(value: FieldValue) -> str:
    if value is None:
        return "(none)"
    if isinstance(value, ExternalRef):
        text = str(value)
    elif isinstance(value, (frozenset, set)):
        text = ", ".join(sorted(value))
    elif isinstance(value, tuple):
        text = ", ".join(value)
    else:
        text = str(value)
    if len(text) > MAX_VALUE_WIDTH:
        return f"{text[: MAX_VALUE_WIDTH - 3]}..."
    return text


def render_text_report(report: RunReport) -> str:
    lines = ["=" * RULE_WIDTH, _TITLES.get(report.kind, f"{report.kind.upper()} REPORT")]
    lines.append("=" * RULE_WIDTH)
    lines.append(f"Run: {report.run_id}")
    lines.append(f"Started: {report.started_at.isoformat(timespec='seconds')}")
    if report.finished_at is not None:
        lines.append(f"Finished: {report.finished_at.isoformat(timespec='seconds')}")
    if report.state is not None:
        lines.append(f"State: {report.state}")
    lines.append("")
    lines.append("SUMMARY")
    lines.append("-" * RULE_WIDTH)
    lines.append(f"Total processed: {report.total}")
    lines.append(f"Created: {len(report.created)}")
    lines.append(f"Updated: {len(report.updated)}")
    lines.append(f"Unchanged: {report.unchanged}")
    lines.append(f"Failed: {len(report.failed)}")

    for heading, entries in (
        ("CREATED", report.created),
        ("UPDATED", report.updated),
        ("FAILED", report.failed),
    ):
        if not entries:
            continue
        lines.append("")
        lines.append(f"{heading} ({len(entries)})")
        lines.append("-" * RULE_WIDTH)
        for entry in entries:
            lines.extend(_render_entry(entry))
    lines.append("")
    return "\n".join(lines)


def _render_entry(entry: ReportEntry) -> list[str]:
    source = f" [{entry.provider}]" if entry.provider else ""
    lines = [f"* {entry.label}{source}"]
    if entry.error:
        lines.append(f"    error: {entry.error}")
    lines.extend(
        f"    {change.field}: {format_value(change.before)} -> {format_value(change.after)}"
        for change in entry.changes
    )
    return lines


class FileReportSink:
    """Write ``<prefix>-YYYY-MM-DD-HH-MM-SS.txt`` and ``.json`` into ``directory``.

    Only the newest ``max_reports`` reports per prefix are kept. The prefix
    defaults to the report kind, so enrichment and import reports rotate
    independently.
    """

    def __init__(
        self,
        directory: Path,
        *,
        prefix: str | None = None,
        max_reports: int = DEFAULT_MAX_REPORTS,
    ) -> None:
        if max_reports < 1:
            raise ValueError("max_reports must be at least 1")
        self._directory = directory
        self._prefix = prefix
        self._max_reports = max_reports

    def write(self, report: RunReport) -> Path:
        prefix = self._prefix or str(report.kind)
        self._directory.mkdir(parents=True, exist_ok=True)
        stamp = (report.finished_at or report.started_at).strftime("%Y-%m-%d-%H-%M-%S")
        stem = f"{prefix}-{stamp}"
        counter = 1
        while (self._directory / f"{stem}.txt").exists():
            counter += 1
            stem = f"{prefix}-{stamp}-{counter}"

        text_path = self._directory / f"{stem}.txt"
        text_path.write_text(render_text_report(report), encoding="utf-8")
        (self._directory / f"{stem}.json").write_text(
            json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
        )
        log.info("Report written to %s", text_path)
        self._rotate(prefix)
        return text_path

    def _rotate(self, prefix: str) -> None:
        # Names embed the timestamp, so name order is age order.
        reports = sorted(self._directory.glob(f"{prefix}-*.txt"), reverse=True)
        for stale in reports[self._max_reports :]:
            for path in (stale, stale.with_suffix(".json")):
                path.unlink(missing_ok=True)
            log.debug("Rotated out report %s", stale.name)


if TYPE_CHECKING:
    from mediashelf.domain.ports.reporting import ReportSink

    def _sink_check(directory: Path) -> ReportSink:
        return FileReportSink(directory)
