"""Ports for persisting candidate records and pass records."""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

from exosync.domain.model import CandidateRecord, SyncPass

TEntity = TypeVar("TEntity")


@runtime_checkable
class Repository(Protocol[TEntity]):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class CandidateRepository(Repository[CandidateRecord], Protocol):
    """Persistence contract for candidate records keyed by identity."""

    def get(self, identity: str) -> CandidateRecord | None: ...

    def existing_identities(self) -> set[str]: ...

    def names_in_group(self, group_base: str) -> list[str]:
        """Assigned names of records whose identity starts with ``group_base + "."``."""
        ...

    def assigned_names(self) -> list[str]: ...


@runtime_checkable
class SyncPassRepository(Repository[SyncPass], Protocol):
    """Append-only log of pass records."""

    def recent(self, limit: int) -> list[SyncPass]:
        """Return up to ``limit`` pass records, newest first."""
        ...
