"""SQLAlchemy adapter package for mediashelf."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    entity_field_table,
    entity_relation_table,
    entity_table,
    external_id_table,
    metadata,
)
from .repositories import SqlAlchemyEntityStore
from .unit_of_work import (
    StartupError,
    SqlAlchemyUnitOfWork,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyEntityStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "entity_field_table",
    "entity_relation_table",
    "entity_table",
    "external_id_table",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
