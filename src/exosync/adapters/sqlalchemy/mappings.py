"""SQLAlchemy mapping metadata for the exosync domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    Index,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)

from exosync.domain.model import (
    CandidateRecord,
    Disposition,
    ErrorDetail,
    PassCounters,
    PassState,
    SyncPass,
    Verdict,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


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


class VerdictType(TypeDecorator[Verdict]):
    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: Verdict | None, dialect: Dialect
    ) -> dict[str, object] | None:
        _ = dialect
        return value.to_payload() if value is not None else None

    def process_result_value(self, value: Any, dialect: Dialect) -> Verdict | None:
        _ = dialect
        if not isinstance(value, dict):
            return None
        return Verdict.from_payload(cast(dict[str, object], value))


class PassCountersType(TypeDecorator[PassCounters]):
    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: PassCounters | None, dialect: Dialect
    ) -> dict[str, int] | None:
        _ = dialect
        return value.to_payload() if value is not None else None

    def process_result_value(self, value: Any, dialect: Dialect) -> PassCounters:
        _ = dialect
        if not isinstance(value, dict):
            return PassCounters()
        return PassCounters.from_payload(cast(dict[str, object], value))


class ErrorDetailListType(TypeDecorator[list[ErrorDetail]]):
    impl = JSON
    cache_ok = True

    def process_bind_param(
        self,
        value: list[ErrorDetail] | None,
        dialect: Dialect,
    ) -> list[dict[str, object]]:
        _ = dialect
        return [detail.to_payload() for detail in value or []]

    def process_result_value(self, value: Any, dialect: Dialect) -> list[ErrorDetail]:
        _ = dialect
        if not isinstance(value, list):
            return []
        items = cast(list[Any], value)
        return [ErrorDetail.from_payload(item) for item in items if isinstance(item, dict)]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

candidate_table = Table(
    "candidate",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("identity", String, nullable=False, unique=True),
    Column("status", Enum(Disposition, native_enum=False), nullable=False),
    Column("assigned_name", String, nullable=True, unique=True),
    Column("classified_by_automation", Boolean, nullable=False, default=False),
    Column("verdict", VerdictType, nullable=True),
    Column("confidence", Float, nullable=True),
    Column("physical_fields", JSON, nullable=False, default=dict),
    Column("sync_source", String, nullable=False),
    Column("sync_version", String, nullable=False),
    Column("synced_at", UTCDateTime, nullable=False),
)

Index("ix_candidate_status", candidate_table.c.status)

sync_pass_table = Table(
    "sync_pass",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("started_at", UTCDateTime, nullable=False),
    Column("finished_at", UTCDateTime, nullable=True),
    Column("duration_seconds", Float, nullable=True),
    Column("state", Enum(PassState, native_enum=False), nullable=False),
    Column("counters", PassCountersType, nullable=False),
    Column("error_details", ErrorDetailListType, nullable=False),
    Column("error", String, nullable=True),
)

Index("ix_sync_pass_started_at", sync_pass_table.c.started_at)


@cache
def start_mappers() -> orm.registry:
    """Map candidate records and pass records onto their tables; runs once per process."""

    log.debug("Mapping candidate and sync_pass tables")

    mapper_registry.map_imperatively(CandidateRecord, candidate_table)
    mapper_registry.map_imperatively(SyncPass, sync_pass_table)

    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create the candidate and sync_pass tables if they do not exist yet."""

    log.debug(f"Ensuring tables exist on {engine.url.render_as_string(hide_password=True)}")
    mapper_registry.metadata.create_all(engine)
