"""Catalog domain model."""

from __future__ import annotations

from .entity import (
    Entity,
    ExternalRef,
    FieldValue,
    ProtectableName,
    Titles,
    assign_value,
    parse_protectable_name,
    read_value,
)
from .enums import (
    INVERSE_RELATION,
    PROVIDER_SPECIFIC_FIELDS,
    RECORD_KIND_BY_MEDIA_TYPE,
    SIGNAL_COUNT_FIELDS,
    SIGNAL_STATUS_FIELDS,
    CatalogField,
    JobState,
    MediaType,
    Provider,
    PublicationStatus,
    RecordKind,
    RelationKind,
)
from .records import (
    RECORD_CLASS_BY_KIND,
    GameRecord,
    NormalizedRecord,
    PrintRecord,
    ScreenRecord,
    record_class_for,
)

__all__ = [
    "INVERSE_RELATION",
    "PROVIDER_SPECIFIC_FIELDS",
    "RECORD_CLASS_BY_KIND",
    "RECORD_KIND_BY_MEDIA_TYPE",
    "SIGNAL_COUNT_FIELDS",
    "SIGNAL_STATUS_FIELDS",
    "CatalogField",
    "Entity",
    "ExternalRef",
    "FieldValue",
    "GameRecord",
    "JobState",
    "MediaType",
    "NormalizedRecord",
    "PrintRecord",
    "ProtectableName",
    "Provider",
    "PublicationStatus",
    "RecordKind",
    "RelationKind",
    "ScreenRecord",
    "Titles",
    "assign_value",
    "parse_protectable_name",
    "read_value",
    "record_class_for",
]
