"""SQLAlchemy table metadata for the catalog store."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
)

from mediashelf.domain.model import (
    CatalogField,
    MediaType,
    ProtectableName,
    Provider,
    RelationKind,
    parse_protectable_name,
)
from mediashelf.domain.reconciliation.normalize import split_alternate_titles

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class TitleSetType(TypeDecorator[set[str]]):
    """Alternate titles stored as a sorted JSON array.

    Legacy rows may hold a delimited string; unreadable values load as empty.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: set[str] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(sorted(value), ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> set[str]:
        _ = dialect
        return set(split_alternate_titles(value))


class ProtectedFieldSetType(TypeDecorator[set[ProtectableName]]):
    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: set[ProtectableName] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(sorted(str(name) for name in value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> set[ProtectableName]:
        _ = dialect
        if not value:
            return set()
        try:
            loaded = json.loads(value)
        except json.JSONDecodeError:
            log.warning("Unreadable protected field set %r; treating as empty", value)
            return set()
        if not isinstance(loaded, list):
            return set()
        names: set[ProtectableName] = set()
        for item in cast("list[Any]", loaded):
            try:
                names.add(parse_protectable_name(str(item)))
            except ValueError:
                log.warning("Dropping unknown protected field %r", item)
        return names


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def _enum_values(enum_cls: type[Any]) -> list[str]:
    return [member.value for member in enum_cls]


def _enum(enum_cls: type[Any], name: str) -> Enum:
    return Enum(enum_cls, name=name, native_enum=False, values_callable=_enum_values, length=32)


entity_table = Table(
    "entity",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("primary_title", String, nullable=False),
    Column("alternate_titles", TitleSetType, nullable=True),
    Column("media_type", _enum(MediaType, "media_type"), nullable=True),
    Column("protected_fields", ProtectedFieldSetType, nullable=True),
    Column("vo_source", _enum(Provider, "vo_source"), nullable=True),
    Column("enriched_at", UTCDateTime, nullable=True),
    Column("update_available", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime, nullable=False, default=lambda: datetime.now(UTC)),
)

external_id_table = Table(
    "external_id",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("entity_id", Integer, ForeignKey("entity.id", ondelete="CASCADE"), nullable=False),
    Column("provider", _enum(Provider, "provider"), nullable=False),
    Column("value", String, nullable=False),
    UniqueConstraint("provider", "value"),
    UniqueConstraint("entity_id", "provider"),
)

entity_field_table = Table(
    "entity_field",
    metadata,
    Column("entity_id", Integer, ForeignKey("entity.id", ondelete="CASCADE"), nullable=False),
    Column("name", _enum(CatalogField, "catalog_field"), nullable=False),
    Column("value", JSON, nullable=False),
    PrimaryKeyConstraint("entity_id", "name"),
)

entity_relation_table = Table(
    "entity_relation",
    metadata,
    Column("entity_id", Integer, ForeignKey("entity.id", ondelete="CASCADE"), nullable=False),
    Column("kind", _enum(RelationKind, "relation_kind"), nullable=False),
    Column("provider", _enum(Provider, "relation_provider"), nullable=False),
    Column("value", String, nullable=False),
    PrimaryKeyConstraint("entity_id", "kind"),
    Index("ix_entity_relation_target", "provider", "value"),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine)
