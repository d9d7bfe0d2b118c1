"""Background enrichment: job controller, provider throttle and run reports."""

from __future__ import annotations

from .controller import (
    AlreadyRunning,
    ControlResult,
    EnrichmentController,
    Progress,
    ProgressCallback,
    RunHandle,
    RunOptions,
    RunSummary,
)
from .report import ReportEntry, ReportKind, RunReport
from .throttle import BackoffPolicy, CallInterrupted, ProviderThrottle, parse_retry_after

__all__ = [
    "AlreadyRunning",
    "BackoffPolicy",
    "CallInterrupted",
    "ControlResult",
    "EnrichmentController",
    "Progress",
    "ProgressCallback",
    "ProviderThrottle",
    "ReportEntry",
    "ReportKind",
    "RunHandle",
    "RunOptions",
    "RunReport",
    "RunSummary",
    "parse_retry_after",
]
