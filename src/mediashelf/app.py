"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from mediashelf.adapters.anilist import AniListProviderAdapter
from mediashelf.adapters.jikan import build_jikan_adapters
from mediashelf.adapters.record_file import iter_record_lines, parse_record
from mediashelf.adapters.reports import FileReportSink
from mediashelf.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from mediashelf.config import (
    ConfigurationError,
    get_anilist_config,
    get_enrichment_config,
    get_jikan_config,
    get_storage_config,
)
from mediashelf.domain.enrichment import (
    BackoffPolicy,
    EnrichmentController,
    ProviderThrottle,
    ReportKind,
    RunOptions,
    RunReport,
)
from mediashelf.domain.errors import StoreWriteError
from mediashelf.domain.model import (
    CatalogField,
    ExternalRef,
    JobState,
    Provider,
    RelationKind,
    parse_protectable_name,
)
from mediashelf.domain.reconciliation import Reconciler
from mediashelf.domain.reconciliation.normalize import split_alternate_titles

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from mediashelf.config import EnrichmentConfig
    from mediashelf.domain.enrichment import AlreadyRunning, ProgressCallback, RunSummary
    from mediashelf.domain.model import Entity, FieldValue, ProtectableName
    from mediashelf.domain.ports.providers import ProviderAdapter
    from mediashelf.domain.ports.reporting import ReportSink
    from mediashelf.domain.ports.unit_of_work import CatalogUnitOfWork

type UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class ImportResult:
    read: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    relations_updated: int = 0
    report_path: Path | None = None


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def _default_report_sink(config: EnrichmentConfig) -> ReportSink:
    return FileReportSink(get_storage_config().reports_dir(), max_reports=config.max_reports)


def resolve_disabled_fields(config: EnrichmentConfig) -> frozenset[ProtectableName]:
    """Turn configured field names into catalog fields and relation kinds."""

    resolved: set[ProtectableName] = set()
    for name in config.disabled_fields:
        try:
            resolved.add(parse_protectable_name(name))
        except ValueError as exc:
            raise ConfigurationError(f"Unknown field in disabled fields: {name!r}") from exc
    return frozenset(resolved)


def build_provider_adapters() -> list[ProviderAdapter]:
    """Adapters for every provider with a live API (Jikan for MAL, AniList)."""

    adapters: list[ProviderAdapter] = []
    adapters.extend(build_jikan_adapters(get_jikan_config()))
    adapters.append(AniListProviderAdapter(config=get_anilist_config()))
    return adapters


def build_throttle(config: EnrichmentConfig | None = None) -> ProviderThrottle:
    effective = config or get_enrichment_config()
    jikan_delay = get_jikan_config().request_delay_seconds
    return ProviderThrottle(
        delays={
            Provider.MAL_MANGA: jikan_delay,
            Provider.MAL_ANIME: jikan_delay,
            Provider.ANILIST: get_anilist_config().request_delay_seconds,
        },
        policy=BackoffPolicy(
            max_retries=effective.max_retries,
            retry_margin_seconds=effective.retry_margin_seconds,
            ceiling_seconds=effective.backoff_ceiling_seconds,
        ),
    )


def build_controller(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    adapters: Iterable[ProviderAdapter] | None = None,
    throttle: ProviderThrottle | None = None,
    report_sink: ReportSink | None = None,
    config: EnrichmentConfig | None = None,
) -> EnrichmentController:
    effective = config or get_enrichment_config()
    return EnrichmentController(
        unit_of_work_factory=unit_of_work_factory or _default_unit_of_work_factory(),
        adapters=adapters if adapters is not None else build_provider_adapters(),
        throttle=throttle or build_throttle(effective),
        report_sink=report_sink or _default_report_sink(effective),
        match_threshold=effective.match_threshold,
        provider_priority=effective.provider_priority,
        disabled_fields=resolve_disabled_fields(effective),
    )


def enrich_catalog(
    *,
    force: bool = False,
    providers: tuple[Provider, ...] | None = None,
    limit: int | None = None,
    progress: ProgressCallback | None = None,
    controller: EnrichmentController | None = None,
) -> RunSummary | AlreadyRunning:
    """Run one enrichment pass over the catalog and block until it ends."""

    active = controller or build_controller()
    log.info(
        "Starting catalog enrichment: force=%s, providers=%s, limit=%s",
        force,
        ",".join(providers) if providers else "all",
        limit,
    )
    return active.run(RunOptions(force=force, providers=providers, limit=limit, progress=progress))


def import_records(
    path: Path,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    report_sink: ReportSink | None = None,
    config: EnrichmentConfig | None = None,
) -> ImportResult:
    """Reconcile a JSON Lines file of normalized records into the catalog.

    Records that match no entity create one. Every line is committed on its own;
    a bad line or a failed write is reported and skipped.
    """

    effective = config or get_enrichment_config()
    uow_factory = unit_of_work_factory or _default_unit_of_work_factory()
    sink = report_sink or _default_report_sink(effective)
    disabled = resolve_disabled_fields(effective)
    report = RunReport(run_id=path.stem, kind=ReportKind.IMPORT)
    result = ImportResult()

    for line_number, text in iter_record_lines(path):
        result.read += 1
        label = f"{path.name}:{line_number}"
        try:
            record = parse_record(text)
        except ValueError as exc:
            log.warning("Skipping %s: %s", label, exc)
            report.record_failed(label, exc)
            result.failed += 1
            continue

        with uow_factory() as uow:
            reconciler = Reconciler(
                uow.repositories.entities,
                threshold=effective.match_threshold,
                provider_priority=effective.provider_priority,
                disabled_fields=disabled,
            )
            try:
                outcome = reconciler.reconcile(record)
                uow.commit()
            except StoreWriteError as exc:
                uow.rollback()
                log.warning("Could not import %s: %s", label, exc)
                report.record_failed(record.title, exc, provider=record.provider)
                result.failed += 1
                continue

        merged = outcome.merge
        result.relations_updated += outcome.relations_updated
        if merged.created:
            result.created += 1
            report.record_created(merged.entity, merged.changes, provider=record.provider)
        elif merged.changes:
            result.updated += 1
            report.record_updated(merged.entity, merged.changes, provider=record.provider)
        else:
            result.unchanged += 1
            report.record_updated(merged.entity, [], provider=record.provider)

    result.relations_updated += propagate_relations(unit_of_work_factory=uow_factory)
    report.finish(JobState.COMPLETED)
    result.report_path = sink.write(report)
    log.info(
        "Finished import of %s: read=%s, created=%s, updated=%s, unchanged=%s, failed=%s",
        path,
        result.read,
        result.created,
        result.updated,
        result.unchanged,
        result.failed,
    )
    return result


def propagate_relations(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> int:
    uow_factory = unit_of_work_factory or _default_unit_of_work_factory()
    with uow_factory() as uow:
        updates = Reconciler(uow.repositories.entities).propagator.propagate_all()
        uow.commit()
    return updates


def edit_field(
    entity_id: int,
    name: str,
    raw_value: str,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Entity:
    """Operator edit: write the value and protect the field from automatic merges."""

    field = parse_protectable_name(name)
    value = parse_field_value(field, raw_value)
    uow_factory = unit_of_work_factory or _default_unit_of_work_factory()
    with uow_factory() as uow:
        reconciler = Reconciler(uow.repositories.entities)
        entity = uow.repositories.entities.get_entity(entity_id)
        if entity is None:
            raise ValueError(f"Unknown entity {entity_id}")
        reconciler.ledger.conditional_set(entity, field, value, force=True)
        reconciler.ledger.protect(entity, field)
        uow.commit()
    log.info("Operator set %s on %s", field, entity.label)
    return entity


_INTEGER_FIELDS = frozenset(
    {
        CatalogField.EPISODES,
        CatalogField.CHAPTERS,
        CatalogField.VOLUMES,
        CatalogField.MAL_RANK,
        CatalogField.MAL_POPULARITY,
        CatalogField.ANILIST_SCORE,
        CatalogField.ANILIST_POPULARITY,
    }
)
_LIST_FIELDS = frozenset(
    {
        CatalogField.GENRES,
        CatalogField.THEMES,
        CatalogField.DEMOGRAPHICS,
        CatalogField.AUTHORS,
        CatalogField.STUDIOS,
    }
)


def parse_field_value(name: ProtectableName, raw: str) -> FieldValue:
    """Convert command line text into the value type ``name`` stores."""

    if isinstance(name, RelationKind):
        return ExternalRef.parse(raw)
    if name is CatalogField.ALTERNATE_TITLES:
        return frozenset(split_alternate_titles(raw))
    if name in _LIST_FIELDS:
        return tuple(split_alternate_titles(raw))
    if name in _INTEGER_FIELDS:
        return int(raw)
    if name is CatalogField.MAL_SCORE:
        return float(raw)
    if not raw.strip():
        raise ValueError(f"Empty value for {name}")
    return raw.strip()
