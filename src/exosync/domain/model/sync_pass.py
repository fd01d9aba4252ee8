"""Pass records: one per synchronization attempt, append-only once finished."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields
from typing import TYPE_CHECKING

from .enums import ErrorKind, PassState

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


class PassAlreadyFinishedError(RuntimeError):
    """Raised when a finished pass record is mutated."""


@dataclass(slots=True)
class PassCounters:
    fetched: int = 0
    new: int = 0
    confirmed: int = 0
    candidate: int = 0
    false_positive: int = 0
    dispatched: int = 0
    classified: int = 0
    gateway_confirmed: int = 0
    gateway_false_positive: int = 0
    other: int = 0
    fallback_names: int = 0
    errors: int = 0

    def to_payload(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> PassCounters:
        known = {item.name for item in fields(cls)}
        values = {
            key: int(value)
            for key, value in payload.items()
            if key in known and isinstance(value, int)
        }
        return cls(**values)


@dataclass(frozen=True, slots=True)
class ErrorDetail:
    identity: str | None
    kind: ErrorKind
    reason: str
    status_code: int | None = None
    duration_seconds: float | None = None

    def to_payload(self) -> dict[str, object]:
        return {
            "identity": self.identity,
            "kind": self.kind.value,
            "reason": self.reason,
            "status_code": self.status_code,
            "duration_seconds": self.duration_seconds,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> ErrorDetail:
        identity = payload.get("identity")
        status_code = payload.get("status_code")
        duration = payload.get("duration_seconds")
        return cls(
            identity=str(identity) if identity is not None else None,
            kind=ErrorKind(str(payload["kind"])),
            reason=str(payload.get("reason", "")),
            status_code=status_code if isinstance(status_code, int) else None,
            duration_seconds=float(duration) if isinstance(duration, int | float) else None,
        )


@dataclass(eq=False, kw_only=True)
class SyncPass:
    """Timing, counters and failures of one synchronization attempt."""

    started_at: datetime
    state: PassState = PassState.RUNNING
    finished_at: datetime | None = None
    duration_seconds: float | None = None
    counters: PassCounters = field(default_factory=PassCounters)
    error_details: list[ErrorDetail] = field(default_factory=list)
    error: str | None = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def begin(cls, started_at: datetime) -> SyncPass:
        return cls(started_at=started_at)

    @property
    def success(self) -> bool:
        return self.state is PassState.SUCCEEDED

    @property
    def is_finished(self) -> bool:
        return self.state is not PassState.RUNNING

    def add_error(self, detail: ErrorDetail) -> None:
        self._require_running()
        self.error_details.append(detail)

    def succeed(self, finished_at: datetime) -> None:
        self._finish(finished_at, PassState.SUCCEEDED)

    def fail(self, finished_at: datetime, message: str) -> None:
        self._require_running()
        self.error = message
        self.counters.errors += 1
        self.error_details.append(
            ErrorDetail(identity=None, kind=ErrorKind.SYNC_ERROR, reason=message)
        )
        self._finish(finished_at, PassState.FAILED)

    def _finish(self, finished_at: datetime, state: PassState) -> None:
        self._require_running()
        self.finished_at = finished_at
        self.duration_seconds = max((finished_at - self.started_at).total_seconds(), 0.0)
        self.state = state

    def _require_running(self) -> None:
        if self.is_finished:
            raise PassAlreadyFinishedError(f"Pass {self.id} already finished as {self.state}")
