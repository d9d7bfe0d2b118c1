"""Transaction boundary around the catalog store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from mediashelf.domain.ports.persistence import EntityStore


@dataclass(slots=True)
class CatalogRepositories:
    """Repositories one reconciliation pass works against."""

    entities: EntityStore


@runtime_checkable
class CatalogUnitOfWork(Protocol):
    """One catalog item (or one propagation pass) per unit of work.

    Leaving the context with an exception rolls back; nothing is committed
    implicitly.
    """

    @property
    def repositories(self) -> CatalogRepositories: ...

    def __enter__(self) -> CatalogUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
