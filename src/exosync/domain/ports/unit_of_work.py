"""Transaction boundary for a synchronization pass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from exosync.domain.ports.persistence import CandidateRepository, SyncPassRepository


@dataclass(slots=True)
class SyncRepositories:
    candidates: CandidateRepository
    passes: SyncPassRepository


@runtime_checkable
class SyncUnitOfWork(Protocol):
    """Candidate and pass-log repositories sharing one transaction.

    Exiting the context on an exception must roll back. Commits are explicit so
    each stored record can be committed on its own.
    """

    @property
    def repositories(self) -> SyncRepositories: ...

    def __enter__(self) -> SyncUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
