"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import String, func, select

from exosync.adapters.sqlalchemy.mappings import candidate_table, sync_pass_table
from exosync.domain.model import CandidateRecord, SyncPass

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class SqlAlchemyCandidateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CandidateRecord) -> None:
        self.session.add(entity)

    def get(self, identity: str) -> CandidateRecord | None:
        stmt = select(CandidateRecord).where(candidate_table.c.identity == identity)
        return self.session.execute(stmt).scalar_one_or_none()

    def existing_identities(self) -> set[str]:
        stmt = select(candidate_table.c.identity)
        return set(self.session.execute(stmt).scalars())

    def names_in_group(self, group_base: str) -> list[str]:
        prefix = f"{group_base}.".lower()
        stmt = (
            select(candidate_table.c.assigned_name)
            .where(
                func.lower(candidate_table.c.identity, type_=String).startswith(
                    prefix, autoescape=True
                )
            )
            .where(candidate_table.c.assigned_name.is_not(None))
        )
        return [cast(str, name) for name in self.session.execute(stmt).scalars()]

    def assigned_names(self) -> list[str]:
        stmt = select(candidate_table.c.assigned_name).where(
            candidate_table.c.assigned_name.is_not(None)
        )
        return [cast(str, name) for name in self.session.execute(stmt).scalars()]


class SqlAlchemySyncPassRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncPass) -> None:
        self.session.add(entity)

    def recent(self, limit: int) -> list[SyncPass]:
        stmt = select(SyncPass).order_by(sync_pass_table.c.started_at.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from exosync.domain.ports.persistence import CandidateRepository, SyncPassRepository

    _session_stub = cast("Session", object())
    _candidate_repo: CandidateRepository = SqlAlchemyCandidateRepository(_session_stub)
    _pass_repo: SyncPassRepository = SqlAlchemySyncPassRepository(_session_stub)
