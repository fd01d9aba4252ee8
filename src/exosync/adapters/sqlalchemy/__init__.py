"""SQLAlchemy adapter package for exosync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import SqlAlchemyCandidateRepository, SqlAlchemySyncPassRepository
from .unit_of_work import SqlAlchemySyncUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyCandidateRepository",
    "SqlAlchemySyncPassRepository",
    "SqlAlchemySyncUnitOfWork",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
