"""SQLAlchemy-backed unit of work for reconciliation state.

The adapter owns one process-wide engine. ``startup`` binds it (creating the
schema on first use) and every ``SqlAlchemyUnitOfWork`` opens a fresh session
from it, so one engine step can commit without touching the next.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from returnsync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from returnsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyAuditRepository,
    SqlAlchemyConfigRepository,
    SqlAlchemyListingMappingRepository,
    SqlAlchemySalesRepository,
    SqlAlchemyStockRepository,
)
from returnsync.config.storage import DatabaseConfig, get_database_config
from returnsync.domain.ports.unit_of_work import ReconciliationRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the database adapter is used before ``startup`` or started twice."""


class _Database:
    def __init__(self) -> None:
        self.engine: Engine | None = None
        self.sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        # Objects stay readable after commit; engine steps hand them to the next step.
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False) if engine is not None else None

    def open_session(self) -> Session:
        if self.sessions is None:
            raise StartupError("Database not initialised; call returnsync.adapters.sqlalchemy.startup() first.")
        return self.sessions()


_DATABASE = _Database()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the process-wide engine and create any missing tables."""

    if _DATABASE.engine is not None and not force:
        raise StartupError("Database already initialised. Pass force=True to rebind it.")
    if engine is None:
        config = DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
        engine = create_engine(config.uri, future=True, **config.engine_options())
    start_mappers()
    create_all_tables(engine)
    _DATABASE.bind(engine)
    log.info("Reconciliation state stored at %s", engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _DATABASE.engine


def is_started() -> bool:
    return _DATABASE.engine is not None


def shutdown() -> None:
    """Dispose the engine; the next unit of work needs another ``startup``."""

    if _DATABASE.engine is not None:
        _DATABASE.engine.dispose()
    _DATABASE.bind(None)


class SqlAlchemyUnitOfWork:
    """Session scope over every repository a reconciliation cycle touches.

    Leaving the block without ``commit`` discards the work; an exception
    inside the block rolls it back explicitly.
    """

    def __init__(self) -> None:
        self._session: Session | None = None
        self._repositories: ReconciliationRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = _DATABASE.open_session()
        self._repositories = ReconciliationRepositories(
            config=SqlAlchemyConfigRepository(self._session),
            audit=SqlAlchemyAuditRepository(self._session),
            stock=SqlAlchemyStockRepository(self._session),
            mappings=SqlAlchemyListingMappingRepository(self._session),
            sales=SqlAlchemySalesRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> ReconciliationRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from returnsync.domain.ports.unit_of_work import ReconciliationUnitOfWork

    _uow_check: ReconciliationUnitOfWork = SqlAlchemyUnitOfWork()
