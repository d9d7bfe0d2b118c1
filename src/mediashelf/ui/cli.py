from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from mediashelf.app import (
    build_controller,
    edit_field,
    enrich_catalog,
    import_records,
    propagate_relations,
)
from mediashelf.config import configure_logging
from mediashelf.domain.enrichment import AlreadyRunning
from mediashelf.domain.model import Provider

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from mediashelf.domain.enrichment import EnrichmentController, Progress

log = logging.getLogger(__name__)

_ACTIVE: dict[str, EnrichmentController] = {}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile the media catalog")
    subparsers = parser.add_subparsers(dest="command", required=True)

    enrich = subparsers.add_parser("enrich", help="Enrich catalog entities from providers")
    enrich.add_argument(
        "--force",
        action="store_true",
        help="Re-fetch already enriched entities and overwrite protected fields",
    )
    enrich.add_argument(
        "--provider",
        dest="providers",
        action="append",
        choices=[provider.value for provider in Provider],
        help="Restrict the run to this provider (repeatable)",
    )
    enrich.add_argument(
        "--limit",
        type=int,
        help="Maximum number of entities to process",
    )

    import_ = subparsers.add_parser("import", help="Import a JSON Lines file of records")
    import_.add_argument("path", type=Path, help="File with one normalized record per line")

    subparsers.add_parser("propagate", help="Fill inverse relations across the catalog")

    edit = subparsers.add_parser("edit", help="Set a field by hand and protect it")
    edit.add_argument("entity_id", type=int, help="Catalog entity id")
    edit.add_argument("field", type=str, help="Field or relation name")
    edit.add_argument("value", type=str, help="New value (lists are comma separated)")

    return parser.parse_args(list(argv))


def _log_progress(progress: Progress) -> None:
    eta = f"{progress.eta_ms / 1000:.0f}s" if progress.eta_ms is not None else "?"
    log.info("[%s/%s] %s (eta %s)", progress.current, progress.total, progress.item_label, eta)


def _validate(args: argparse.Namespace) -> None:
    if args.command == "enrich" and args.limit is not None and args.limit < 1:
        raise ValueError("--limit must be at least 1")
    if args.command == "import" and not args.path.is_file():
        raise ValueError(f"No such file: {args.path}")


def _run_enrichment(args: argparse.Namespace) -> None:
    providers = tuple(Provider(value) for value in args.providers) if args.providers else None
    controller = build_controller()
    _ACTIVE["controller"] = controller
    try:
        result = enrich_catalog(
            force=args.force,
            providers=providers,
            limit=args.limit,
            progress=_log_progress,
            controller=controller,
        )
    finally:
        _ACTIVE.pop("controller", None)

    if isinstance(result, AlreadyRunning):
        raise RuntimeError(f"Enrichment run {result.run_token} is already {result.state}")
    log.info(
        "Enrichment %s: processed=%s/%s, enriched=%s, errors=%s, relations=%s, report=%s",
        result.state,
        result.processed,
        result.total,
        result.enriched,
        result.errors,
        result.relations_updated,
        result.report_path,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "enrich":
            _run_enrichment(parsed_args)
        elif parsed_args.command == "import":
            result = import_records(parsed_args.path)
            log.info(
                "Import finished: created=%s, updated=%s, unchanged=%s, failed=%s, report=%s",
                result.created,
                result.updated,
                result.unchanged,
                result.failed,
                result.report_path,
            )
        elif parsed_args.command == "propagate":
            updates = propagate_relations()
            log.info("Relation propagation finished: updates=%s", updates)
        elif parsed_args.command == "edit":
            entity = edit_field(parsed_args.entity_id, parsed_args.field, parsed_args.value)
            log.info("Protected %s on %s", parsed_args.field, entity.label)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Cancel a running enrichment on the first Ctrl+C, exit otherwise."""
    controller = _ACTIVE.get("controller")
    if controller is not None and controller.state.is_active:
        log.info("Cancelling enrichment (Ctrl+C)")
        controller.cancel()
        return
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
