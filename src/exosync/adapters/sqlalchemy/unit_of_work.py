"""Process-wide engine lifecycle and the unit of work used by sync passes.

``startup()`` must run once before any :class:`SqlAlchemySyncUnitOfWork` is
created; the composition root does this unless a unit of work factory is
injected.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from exosync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from exosync.adapters.sqlalchemy.repositories import (
    SqlAlchemyCandidateRepository,
    SqlAlchemySyncPassRepository,
)
from exosync.config.storage import get_database_config
from exosync.domain.ports.unit_of_work import SyncRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the database adapter is used before ``startup()`` or started twice."""


_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Create the engine, map the domain classes and make sure both tables exist."""

    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None and not force:
        raise StartupError("Database already started; pass force=True to replace it")

    if engine is None:
        engine = create_engine(database_uri or get_database_config().uri, future=True)
    start_mappers()
    create_all_tables(engine)
    _engine = engine
    _sessions = sessionmaker(bind=engine, expire_on_commit=False)
    log.debug(f"Database ready at {engine.url.render_as_string(hide_password=True)}")


def is_started() -> bool:
    return _engine is not None


def shutdown() -> None:
    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None


class SqlAlchemySyncUnitOfWork:
    """One session spanning the candidate and pass-log repositories.

    Leaving the ``with`` block on an exception rolls the session back; nothing
    is committed implicitly.
    """

    def __init__(self) -> None:
        if _sessions is None:
            raise StartupError("Database not started; call startup() first")
        self._sessions = _sessions
        self._session: Session | None = None
        self._repositories: SyncRepositories | None = None

    def __enter__(self) -> SqlAlchemySyncUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = self._sessions()
        self._repositories = SyncRepositories(
            candidates=SqlAlchemyCandidateRepository(self._session),
            passes=SqlAlchemySyncPassRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self.session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> SyncRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from exosync.domain.ports.unit_of_work import SyncUnitOfWork

    _uow_check: SyncUnitOfWork = SqlAlchemySyncUnitOfWork()
