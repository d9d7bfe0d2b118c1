from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mediashelf.app import ImportResult
from mediashelf.domain.enrichment import AlreadyRunning, RunSummary
from mediashelf.domain.model import JobState, Provider
from mediashelf.ui import cli as cli_module

if TYPE_CHECKING:
    from pathlib import Path


class FakeController:
    def __init__(self, state: JobState = JobState.IDLE) -> None:
        self.state = state
        self.cancelled = 0

    def cancel(self) -> None:
        self.cancelled += 1


@pytest.fixture
def fake_controller(monkeypatch: pytest.MonkeyPatch) -> FakeController:
    controller = FakeController()
    monkeypatch.setattr(cli_module, "build_controller", lambda: controller)
    return controller


def test_enrich_defaults(
    monkeypatch: pytest.MonkeyPatch, fake_controller: FakeController
) -> None:
    captured: dict[str, object] = {}

    def fake_enrich(**kwargs: object) -> RunSummary:
        captured.update(kwargs)
        return RunSummary(run_token="run-1", state=JobState.COMPLETED)

    monkeypatch.setattr(cli_module, "enrich_catalog", fake_enrich)

    cli_module.main(["enrich"])

    assert captured["force"] is False
    assert captured["providers"] is None
    assert captured["limit"] is None
    assert captured["controller"] is fake_controller
    assert cli_module._ACTIVE == {}


def test_enrich_with_flags(
    monkeypatch: pytest.MonkeyPatch, fake_controller: FakeController
) -> None:
    captured: dict[str, object] = {}

    def fake_enrich(**kwargs: object) -> RunSummary:
        captured.update(kwargs)
        assert cli_module._ACTIVE["controller"] is fake_controller
        return RunSummary(run_token="run-1", state=JobState.COMPLETED)

    monkeypatch.setattr(cli_module, "enrich_catalog", fake_enrich)

    cli_module.main(
        ["enrich", "--force", "--provider", "anilist", "--provider", "mal_manga", "--limit", "5"]
    )

    assert captured["force"] is True
    assert captured["providers"] == (Provider.ANILIST, Provider.MAL_MANGA)
    assert captured["limit"] == 5


@pytest.mark.usefixtures("fake_controller")
def test_enrich_invalid_limit_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "enrich_catalog", lambda **_: None)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["enrich", "--limit", "0"])

    assert excinfo.value.code == 2


@pytest.mark.usefixtures("fake_controller")
def test_enrich_already_running_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        cli_module,
        "enrich_catalog",
        lambda **_: AlreadyRunning(run_token="other", state=JobState.RUNNING),
    )

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["enrich"])

    assert excinfo.value.code == 1


def test_import_missing_file_exits_with_usage_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["import", str(tmp_path / "missing.jsonl")])

    assert excinfo.value.code == 2


def test_import_passes_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "records.jsonl"
    path.write_text("", encoding="utf-8")
    seen: list[Path] = []

    def fake_import(target: Path) -> ImportResult:
        seen.append(target)
        return ImportResult()

    monkeypatch.setattr(cli_module, "import_records", fake_import)

    cli_module.main(["import", str(path)])

    assert seen == [path]


def test_edit_failure_exits_with_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_edit(entity_id: int, field: str, value: str) -> None:
        raise ValueError(f"Unknown entity {entity_id} ({field}={value})")

    monkeypatch.setattr(cli_module, "edit_field", fake_edit)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["edit", "9", "chapters", "12"])

    assert excinfo.value.code == 1


def test_propagate_command(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[None] = []

    def fake_propagate() -> int:
        calls.append(None)
        return 3

    monkeypatch.setattr(cli_module, "propagate_relations", fake_propagate)

    cli_module.main(["propagate"])

    assert len(calls) == 1


def test_sigint_cancels_active_run(monkeypatch: pytest.MonkeyPatch) -> None:
    controller = FakeController(JobState.RUNNING)
    monkeypatch.setitem(
        cli_module._ACTIVE,
        "controller",
        controller,  # pyright: ignore[reportArgumentType]
    )

    cli_module.sigint_handler(2, None)

    assert controller.cancelled == 1


def test_sigint_without_run_exits() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.sigint_handler(2, None)

    assert excinfo.value.code == 0
