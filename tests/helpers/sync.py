"""Reusable fakes for synchronization tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Literal

from exosync.domain.model import CandidateRecord, Disposition, SyncPass
from exosync.domain.ports.classification import InferenceReply
from exosync.domain.ports.fetching import CatalogError, RecordNotFoundError, RemoteEntry
from exosync.domain.ports.unit_of_work import SyncRepositories

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping
    from types import TracebackType


def make_entry(identity: str, status: str | None) -> RemoteEntry:
    return RemoteEntry(identity=identity, status=Disposition.parse(status), raw_status=status)


def make_fields(identity: str, **extra: object) -> dict[str, object]:
    fields: dict[str, object] = {
        "kepoi_name": identity,
        "koi_period": 9.48,
        "koi_duration": 2.95,
        "koi_depth": 615.8,
        "koi_prad": 2.26,
        "koi_teq": 793.0,
        "koi_steff": 5455.0,
        "koi_kepmag": 15.347,
        "koi_comment": "not a model feature",
    }
    fields.update(extra)
    return fields


def make_record(
    identity: str,
    status: Disposition = Disposition.CONFIRMED,
    *,
    name: str | None = None,
) -> CandidateRecord:
    return CandidateRecord(
        identity=identity,
        status=status,
        assigned_name=name,
        physical_fields=make_fields(identity),
    )


class FakeCatalogSource:
    """In-memory catalog returning a fixed projection and full rows."""

    def __init__(
        self,
        entries: Iterable[tuple[str, str | None]] = (),
        *,
        records: Mapping[str, dict[str, object]] | None = None,
        projection_error: Exception | None = None,
        record_errors: Mapping[str, Exception] | None = None,
    ) -> None:
        self.entries = [make_entry(identity, status) for identity, status in entries]
        self.records = dict(records or {})
        for entry in self.entries:
            self.records.setdefault(entry.identity, make_fields(entry.identity))
        self.projection_error = projection_error
        self.record_errors = dict(record_errors or {})
        self.projection_calls = 0
        self.record_calls: list[str] = []

    def fetch_dispositions(self) -> list[RemoteEntry]:
        self.projection_calls += 1
        if self.projection_error is not None:
            raise self.projection_error
        return list(self.entries)

    def fetch_record(self, identity: str) -> dict[str, object]:
        self.record_calls.append(identity)
        if identity in self.record_errors:
            raise self.record_errors[identity]
        if identity not in self.records:
            raise RecordNotFoundError(identity)
        return dict(self.records[identity])


class FakeInferenceClient:
    """Replies per identity; an ``Exception`` value is raised instead of returned."""

    def __init__(
        self,
        replies: Mapping[str, InferenceReply | Exception] | None = None,
        *,
        default: InferenceReply | Exception | None = None,
        on_call: Callable[[str], None] | None = None,
    ) -> None:
        self.replies = dict(replies or {})
        self.default = default or InferenceReply(prediction="CANDIDATE", probability=0.5)
        self.on_call = on_call
        self.payloads: list[dict[str, object]] = []
        self.timeouts: list[float] = []

    def infer(
        self,
        payload: Mapping[str, object],
        *,
        timeout_seconds: float,
    ) -> InferenceReply:
        self.payloads.append(dict(payload))
        self.timeouts.append(timeout_seconds)
        identity = str(payload["kepoi_name"])
        if self.on_call is not None:
            self.on_call(identity)
        reply = self.replies.get(identity, self.default)
        if isinstance(reply, Exception):
            raise reply
        return reply


def reply(prediction: str, probability: float | None = None) -> InferenceReply:
    return InferenceReply(prediction=prediction, probability=probability)


class InMemoryCandidateRepository:
    def __init__(self, records: Iterable[CandidateRecord] = ()) -> None:
        self.records: dict[str, CandidateRecord] = {}
        self.pending: list[str] = []
        for record in records:
            self.records[record.identity] = record

    def add(self, entity: CandidateRecord) -> None:
        if entity.identity in self.records:
            raise ValueError(f"Duplicate identity {entity.identity}")
        if entity.assigned_name is not None and entity.assigned_name in self.assigned_names():
            raise ValueError(f"Duplicate name {entity.assigned_name}")
        self.records[entity.identity] = entity
        self.pending.append(entity.identity)

    def get(self, identity: str) -> CandidateRecord | None:
        return self.records.get(identity)

    def existing_identities(self) -> set[str]:
        return set(self.records)

    def names_in_group(self, group_base: str) -> list[str]:
        prefix = f"{group_base}.".lower()
        return [
            record.assigned_name
            for record in self.records.values()
            if record.assigned_name is not None and record.identity.lower().startswith(prefix)
        ]

    def assigned_names(self) -> list[str]:
        return [
            record.assigned_name
            for record in self.records.values()
            if record.assigned_name is not None
        ]


class InMemorySyncPassRepository:
    def __init__(self) -> None:
        self.passes: list[SyncPass] = []

    def add(self, entity: SyncPass) -> None:
        self.passes.append(entity)

    def recent(self, limit: int) -> list[SyncPass]:
        ordered = sorted(self.passes, key=lambda item: item.started_at, reverse=True)
        return ordered[:limit]


@dataclass
class FakeSyncUnitOfWork:
    """Unit of work over shared in-memory repositories."""

    candidates: InMemoryCandidateRepository = field(default_factory=InMemoryCandidateRepository)
    passes: InMemorySyncPassRepository = field(default_factory=InMemorySyncPassRepository)
    commits: int = 0
    rollbacks: int = 0

    @property
    def repositories(self) -> SyncRepositories:
        return SyncRepositories(candidates=self.candidates, passes=self.passes)

    def __enter__(self) -> FakeSyncUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.commits += 1
        self.candidates.pending.clear()

    def rollback(self) -> None:
        self.rollbacks += 1
        for identity in self.candidates.pending:
            self.candidates.records.pop(identity, None)
        self.candidates.pending.clear()


class SteppingClock:
    """Deterministic UTC clock advancing by ``step`` on every call."""

    def __init__(
        self,
        start: datetime | None = None,
        *,
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.current = start or datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = value + self.step
        return value


def catalog_error(message: str = "archive unavailable") -> CatalogError:
    return CatalogError(message)
