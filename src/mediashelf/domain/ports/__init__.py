"""Domain ports (interfaces) for adapters."""

from __future__ import annotations

from .persistence import CandidateFilter, EntityStore
from .providers import ProviderAdapter
from .reporting import ReportSink
from .unit_of_work import CatalogRepositories, CatalogUnitOfWork

__all__ = [
    "CandidateFilter",
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "EntityStore",
    "ProviderAdapter",
    "ReportSink",
]
