"""Session lifecycle for the SQLite catalog.

``startup`` binds one engine per process and creates missing tables; every
``SqlAlchemyUnitOfWork`` then opens its own session from that engine. Units of
work are short-lived: one per imported line, one per enriched item.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, InterfaceError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from mediashelf.adapters.sqlalchemy.mappings import create_all_tables
from mediashelf.adapters.sqlalchemy.repositories import SqlAlchemyEntityStore
from mediashelf.config.storage import get_database_config
from mediashelf.domain.errors import StoreConnectionError, StoreWriteError
from mediashelf.domain.ports.unit_of_work import CatalogRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """The catalog engine is missing, already bound, or used outside a unit of work."""


@dataclass(slots=True)
class _Binding:
    engine: Engine
    sessions: sessionmaker[Session]


_binding: _Binding | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the catalog engine and create missing tables.

    Without ``engine`` or ``database_uri`` the configured database is used
    (``DATABASE_URI`` or the data directory). Rebinding needs ``force=True``.
    """

    global _binding  # noqa: PLW0603
    if _binding is not None and not force:
        raise StartupError("Catalog engine already bound; pass force=True to rebind")

    bound = engine or create_engine(database_uri or get_database_config().uri)
    create_all_tables(bound)
    _binding = _Binding(engine=bound, sessions=sessionmaker(bind=bound, expire_on_commit=False))
    log.debug("Catalog engine bound to %s", bound.url.render_as_string(hide_password=True))


def shutdown() -> None:
    global _binding  # noqa: PLW0603
    if _binding is not None:
        _binding.engine.dispose()
    _binding = None


def is_started() -> bool:
    return _binding is not None


def configured_engine() -> Engine | None:
    return _binding.engine if _binding is not None else None


class SqlAlchemyUnitOfWork:
    """One session, committed explicitly, rolled back when the block raises."""

    def __init__(self) -> None:
        if _binding is None:
            raise StartupError(
                "Catalog engine not bound; call "
                "mediashelf.adapters.sqlalchemy.unit_of_work.startup() first"
            )
        self._sessions = _binding.sessions
        self._session: Session | None = None
        self._repositories: CatalogRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._sessions()
        self._repositories = CatalogRepositories(entities=SqlAlchemyEntityStore(self._session))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self._open_session()
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def repositories(self) -> CatalogRepositories:
        if self._repositories is None:
            raise StartupError("Repositories are only available inside the unit of work")
        return self._repositories

    def commit(self) -> None:
        session = self._open_session()
        try:
            session.commit()
        except DBAPIError as exc:
            session.rollback()
            if exc.connection_invalidated or isinstance(exc, InterfaceError):
                raise StoreConnectionError("Store unavailable while committing") from exc
            raise StoreWriteError(f"Could not commit: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreWriteError(f"Could not commit: {exc}") from exc

    def rollback(self) -> None:
        self._open_session().rollback()

    def _open_session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session
