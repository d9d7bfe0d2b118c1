"""Background enrichment job controller.

Exactly one run is active per controller. A run walks a worklist of entities,
fetches each one from its providers through the shared throttle, reconciles the
records and commits per item. Pause and cancel are cooperative: the loop checks
them between items, after every provider call and before committing, so an
interrupted item is rolled back as a whole.

State machine::

    IDLE -> RUNNING <-> PAUSED -> COMPLETED | CANCELLED | FAILED -> IDLE
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.domain.errors import ProviderError, StoreConnectionError, StoreWriteError
from mediashelf.domain.model import JobState
from mediashelf.domain.ports.persistence import CandidateFilter
from mediashelf.domain.reconciliation import DEFAULT_MATCH_THRESHOLD, Reconciler

from .report import ReportKind, RunReport
from .throttle import CallInterrupted, ProviderThrottle

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Mapping
    from pathlib import Path

    from mediashelf.domain.model import ProtectableName, Provider
    from mediashelf.domain.ports.providers import ProviderAdapter
    from mediashelf.domain.ports.reporting import ReportSink
    from mediashelf.domain.ports.unit_of_work import CatalogUnitOfWork
    from mediashelf.domain.reconciliation import FieldChange

log = getLogger(__name__)

type UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]


@dataclass(slots=True, frozen=True, kw_only=True)
class Progress:
    current: int
    total: int
    item_label: str
    elapsed_ms: int
    eta_ms: int | None


type ProgressCallback = Callable[[Progress], None]


@dataclass(slots=True, frozen=True, kw_only=True)
class RunOptions:
    force: bool = False
    providers: tuple[Provider, ...] | None = None
    limit: int | None = None
    progress: ProgressCallback | None = None


@dataclass(slots=True, kw_only=True)
class RunSummary:
    run_token: str
    state: JobState = JobState.RUNNING
    total: int = 0
    processed: int = 0
    enriched: int = 0
    errors: int = 0
    relations_updated: int = 0
    report_path: Path | None = None

    @property
    def cancelled(self) -> bool:
        return self.state is JobState.CANCELLED


@dataclass(slots=True, frozen=True, kw_only=True)
class AlreadyRunning:
    """Returned by ``start`` while another run is active."""

    run_token: str
    state: JobState


@dataclass(slots=True, frozen=True, kw_only=True)
class ControlResult:
    ok: bool
    reason: str | None = None


class RunHandle:
    def __init__(self, token: str, summary: RunSummary) -> None:
        self.token = token
        self.summary = summary
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> RunSummary:
        if not self._done.wait(timeout):
            raise TimeoutError(f"Enrichment run {self.token} still active after {timeout}s")
        return self.summary

    def _complete(self) -> None:
        self._done.set()


class _ItemOutcome(StrEnum):
    ENRICHED = "enriched"
    UNCHANGED = "unchanged"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class _WorkItem:
    entity_id: int
    label: str


def _utcnow() -> datetime:
    return datetime.now(UTC)


class EnrichmentController:
    def __init__(  # noqa: PLR0913
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        adapters: Iterable[ProviderAdapter],
        throttle: ProviderThrottle | None = None,
        report_sink: ReportSink | None = None,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        provider_priority: Mapping[str, int] | None = None,
        disabled_fields: Collection[ProtectableName] = (),
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._adapters: dict[Provider, ProviderAdapter] = {
            adapter.provider: adapter for adapter in adapters
        }
        self._throttle = throttle or ProviderThrottle()
        self._report_sink = report_sink
        self._match_threshold = match_threshold
        self._provider_priority = provider_priority
        self._disabled_fields = frozenset(disabled_fields)
        self._clock = clock
        self._now = now

        self._cond = threading.Condition()
        self._state = JobState.IDLE
        self._token: str | None = None
        self._paused = False
        self._cancel_requested = False
        self._last_summary: RunSummary | None = None

    # -- public control surface -------------------------------------------------

    @property
    def state(self) -> JobState:
        with self._cond:
            return self._state

    @property
    def run_token(self) -> str | None:
        with self._cond:
            return self._token

    @property
    def last_summary(self) -> RunSummary | None:
        return self._last_summary

    def start(self, options: RunOptions | None = None) -> RunHandle | AlreadyRunning:
        options = options or RunOptions()
        unknown = [p for p in options.providers or () if p not in self._adapters]
        if unknown:
            raise ValueError(f"No adapter configured for: {', '.join(unknown)}")

        with self._cond:
            if self._token is not None:
                log.info("Enrichment already running (%s)", self._token)
                return AlreadyRunning(run_token=self._token, state=self._state)
            token = uuid.uuid4().hex
            self._token = token
            self._state = JobState.RUNNING
            self._paused = False
            self._cancel_requested = False

        handle = RunHandle(token, RunSummary(run_token=token))
        thread = threading.Thread(
            target=self._run,
            args=(handle, options),
            name=f"enrichment-{token[:8]}",
            daemon=True,
        )
        thread.start()
        return handle

    def run(self, options: RunOptions | None = None) -> RunSummary | AlreadyRunning:
        """Start a run and block until it reaches a terminal state."""

        handle = self.start(options)
        if isinstance(handle, AlreadyRunning):
            return handle
        return handle.wait()

    def pause(self, token: str | None = None) -> ControlResult:
        with self._cond:
            rejected = self._reject(token)
            if rejected is not None:
                return rejected
            self._paused = True
            self._state = JobState.PAUSED
            self._cond.notify_all()
        log.info("Enrichment run %s paused", token or self._token)
        return ControlResult(ok=True)

    def resume(self, token: str | None = None) -> ControlResult:
        with self._cond:
            rejected = self._reject(token)
            if rejected is not None:
                return rejected
            self._paused = False
            self._state = JobState.RUNNING
            self._cond.notify_all()
        log.info("Enrichment run %s resumed", token or self._token)
        return ControlResult(ok=True)

    def cancel(self, token: str | None = None) -> ControlResult:
        with self._cond:
            rejected = self._reject(token)
            if rejected is not None:
                return rejected
            self._cancel_requested = True
            self._cond.notify_all()
        log.info("Cancellation requested for enrichment run %s", token or self._token)
        return ControlResult(ok=True)

    def _reject(self, token: str | None) -> ControlResult | None:
        if self._token is None:
            return ControlResult(ok=False, reason="no-run")
        if token is not None and token != self._token:
            log.debug("Ignoring control signal for stale run %s", token)
            return ControlResult(ok=False, reason="stale-token")
        return None

    # -- cooperative checkpoints ------------------------------------------------

    def _checkpoint(self, token: str) -> bool:
        """Block while paused; return ``False`` once the run must stop."""

        with self._cond:
            while self._paused and not self._cancel_requested and self._token == token:
                self._cond.wait()
            return not self._cancel_requested

    def _wait(self, seconds: float) -> bool:
        deadline = time.monotonic() + seconds
        with self._cond:
            while not self._cancel_requested:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return True
                self._cond.wait(remaining)
            return False

    # -- run loop ---------------------------------------------------------------

    def _run(self, handle: RunHandle, options: RunOptions) -> None:
        token = handle.token
        summary = handle.summary
        report = RunReport(run_id=token, kind=ReportKind.ENRICHMENT, started_at=self._now())
        state = JobState.COMPLETED
        started = self._clock()
        try:
            worklist = self._build_worklist(options)
            summary.total = len(worklist)
            log.info(
                "Starting enrichment run %s: %s items (force=%s)",
                token,
                summary.total,
                options.force,
            )
            for index, item in enumerate(worklist, start=1):
                if not self._checkpoint(token):
                    state = JobState.CANCELLED
                    break
                outcome = self._process_item(item, options, token, report)
                if outcome is _ItemOutcome.CANCELLED:
                    state = JobState.CANCELLED
                    break
                summary.processed += 1
                if outcome is _ItemOutcome.ENRICHED:
                    summary.enriched += 1
                elif outcome is _ItemOutcome.FAILED:
                    summary.errors += 1
                self._report_progress(options, summary, index, item, started)

            summary.relations_updated = self._propagate_all()
        except StoreConnectionError:
            log.exception("Store connection lost; aborting enrichment run %s", token)
            state = JobState.FAILED
        except Exception:
            log.exception("Enrichment run %s crashed", token)
            state = JobState.FAILED
        finally:
            report.finish(state, at=self._now())
            summary.state = state
            summary.report_path = self._flush(report)
            self._finish(token, summary)
            handle._complete()  # noqa: SLF001

    def _build_worklist(self, options: RunOptions) -> list[_WorkItem]:
        providers = frozenset(options.providers or self._adapters)
        with self._uow_factory() as uow:
            entities = uow.repositories.entities.list_candidates(
                CandidateFilter(
                    providers=providers,
                    unenriched_only=not options.force,
                    limit=options.limit,
                )
            )
        return [_WorkItem(entity_id=e.id, label=e.label) for e in entities if e.id is not None]

    def _process_item(
        self,
        item: _WorkItem,
        options: RunOptions,
        token: str,
        report: RunReport,
    ) -> _ItemOutcome:
        """Fetch, reconcile and commit one entity.

        Every failure except a lost store connection stays with the item: it is
        rolled back, reported and the run moves on.
        """

        providers = options.providers or tuple(self._adapters)
        current: Provider | None = None
        changes: list[FieldChange] = []
        with self._uow_factory() as uow:
            store = uow.repositories.entities
            try:
                entity = store.get_entity(item.entity_id)
                if entity is None or entity.id is None:
                    report.record_failed(
                        item.label, "entity no longer exists", entity_id=item.entity_id
                    )
                    return _ItemOutcome.FAILED

                reconciler = Reconciler(
                    store,
                    threshold=self._match_threshold,
                    provider_priority=self._provider_priority,
                    disabled_fields=self._disabled_fields,
                )
                was_enriched = entity.enriched_at is not None
                for provider in providers:
                    external_id = entity.external_ids.get(provider)
                    if external_id is None:
                        continue
                    current = provider
                    adapter = self._adapters[provider]
                    record = self._throttle.call(
                        provider, partial(adapter.fetch_by_id, external_id), wait=self._wait
                    )
                    if not self._checkpoint(token):
                        uow.rollback()
                        return _ItemOutcome.CANCELLED
                    outcome = reconciler.reconcile(record, entity=entity, force=options.force)
                    changes.extend(outcome.merge.changes)

                if not self._checkpoint(token):
                    uow.rollback()
                    return _ItemOutcome.CANCELLED
                marked = bool(changes) or not was_enriched
                if marked:
                    store.mark_enriched(entity.id, self._now())
                uow.commit()
            except CallInterrupted:
                uow.rollback()
                return _ItemOutcome.CANCELLED
            except StoreConnectionError:
                raise
            except (ProviderError, StoreWriteError) as exc:
                uow.rollback()
                log.warning("Enrichment failed for %s via %s: %s", item.label, current, exc)
                report.record_failed(item.label, exc, entity_id=item.entity_id, provider=current)
                return _ItemOutcome.FAILED
            except Exception as exc:
                uow.rollback()
                log.exception("Unexpected error while enriching %s via %s", item.label, current)
                report.record_failed(item.label, exc, entity_id=item.entity_id, provider=current)
                return _ItemOutcome.FAILED

        report.record_updated(entity, changes, provider=current)
        if changes:
            log.info("Enriched %s: %s", entity.label, ", ".join(c.field for c in changes))
        return _ItemOutcome.ENRICHED if marked else _ItemOutcome.UNCHANGED

    def _propagate_all(self) -> int:
        with self._uow_factory() as uow:
            reconciler = Reconciler(uow.repositories.entities)
            try:
                updates = reconciler.propagator.propagate_all()
                uow.commit()
            except StoreWriteError as exc:
                uow.rollback()
                log.warning("Relation propagation failed: %s", exc)
                return 0
        return updates

    def _report_progress(
        self,
        options: RunOptions,
        summary: RunSummary,
        current: int,
        item: _WorkItem,
        started: float,
    ) -> None:
        if options.progress is None:
            return
        elapsed = max(self._clock() - started, 0.0)
        eta_ms = (
            int(elapsed / current * (summary.total - current) * 1000) if current else None
        )
        options.progress(
            Progress(
                current=current,
                total=summary.total,
                item_label=item.label,
                elapsed_ms=int(elapsed * 1000),
                eta_ms=eta_ms,
            )
        )

    def _flush(self, report: RunReport) -> Path | None:
        if self._report_sink is None:
            return None
        try:
            return self._report_sink.write(report)
        except OSError:
            log.exception("Could not write enrichment report %s", report.run_id)
            return None

    def _finish(self, token: str, summary: RunSummary) -> None:
        with self._cond:
            if self._token != token:
                return
            self._state = summary.state
            self._last_summary = summary
            log.info(
                "Enrichment run %s %s: processed=%s, enriched=%s, errors=%s",
                token,
                summary.state,
                summary.processed,
                summary.enriched,
                summary.errors,
            )
            self._token = None
            self._state = JobState.IDLE
            self._paused = False
            self._cancel_requested = False
            self._cond.notify_all()
