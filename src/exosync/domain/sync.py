"""Synchronization passes: diff the catalog, dispatch each new record, log the pass.

Each new catalog row is first turned into a :class:`RecordOutcome` (what should
happen to it), the outcome is then applied to the store, and finally folded into
the pass counters by :func:`tally`. Records are handled strictly one after the
other, so a name allocated for one record is visible when the next is named.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from exosync.domain.classification import ClassificationResult, Outcome
from exosync.domain.differ import diff_catalog
from exosync.domain.model import (
    CandidateRecord,
    Disposition,
    ErrorDetail,
    ErrorKind,
    PassCounters,
    SyncPass,
)
from exosync.domain.naming import (
    AllocationKind,
    SystemSummary,
    allocate_name,
    summarize_systems,
)

if TYPE_CHECKING:
    from exosync.domain.classification import ClassificationGateway
    from exosync.domain.ports.fetching import CatalogSource, RemoteEntry
    from exosync.domain.ports.persistence import CandidateRepository
    from exosync.domain.ports.unit_of_work import SyncUnitOfWork

log = getLogger(__name__)

DEFAULT_SOURCE_TAG: Final[str] = "nasa_tap"
DEFAULT_STATISTICS_WINDOW: Final[int] = 50
REMOTE_NAME_FIELD: Final[str] = "kepler_name"


class SyncConflictError(RuntimeError):
    """Raised when a pass is requested while another one is running."""


class SyncAlreadyRunningError(SyncConflictError):
    def __init__(self) -> None:
        super().__init__("A synchronization is already in progress")


class OrchestratorState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RecordAction(StrEnum):
    STORE_DECIDED = "store_decided"
    STORE_CLASSIFIED = "store_classified"
    SKIP_OTHER = "skip_other"
    FAIL = "fail"


@dataclass(frozen=True, slots=True)
class RecordOutcome:
    """What a pass decided for one new catalog row."""

    identity: str
    action: RecordAction
    remote_status: Disposition | None
    status: Disposition | None = None
    fields: Mapping[str, object] | None = None
    classification: ClassificationResult | None = None
    error: ErrorDetail | None = None
    naming: AllocationKind | None = None

    @property
    def stores_record(self) -> bool:
        return self.action in {RecordAction.STORE_DECIDED, RecordAction.STORE_CLASSIFIED}

    def as_failure(self, kind: ErrorKind, reason: str) -> RecordOutcome:
        return replace(
            self,
            action=RecordAction.FAIL,
            error=ErrorDetail(identity=self.identity, kind=kind, reason=reason),
        )


def tally(counters: PassCounters, outcome: RecordOutcome) -> None:
    """Fold one record outcome into the pass counters."""

    if outcome.remote_status is Disposition.CANDIDATE:
        counters.candidate += 1
    if outcome.classification is not None:
        counters.dispatched += 1
        if not outcome.classification.failed:
            counters.classified += 1
    if outcome.naming is AllocationKind.FALLBACK:
        counters.fallback_names += 1

    if outcome.action is RecordAction.FAIL:
        counters.errors += 1
    elif outcome.action is RecordAction.SKIP_OTHER:
        counters.other += 1
    elif outcome.status is Disposition.CONFIRMED:
        counters.confirmed += 1
        if outcome.action is RecordAction.STORE_CLASSIFIED:
            counters.gateway_confirmed += 1
    elif outcome.status is Disposition.FALSE_POSITIVE:
        counters.false_positive += 1
        if outcome.action is RecordAction.STORE_CLASSIFIED:
            counters.gateway_false_positive += 1


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class SyncContext:
    """Collaborators of the orchestrator, built once at process start."""

    catalog: CatalogSource
    gateway: ClassificationGateway
    unit_of_work_factory: Callable[[], SyncUnitOfWork]
    clock: Callable[[], datetime] = _utcnow
    source_tag: str = DEFAULT_SOURCE_TAG


@dataclass(frozen=True, slots=True)
class SyncStatistics:
    """Aggregates over the most recent pass records."""

    total_passes: int
    successful_passes: int
    failed_passes: int
    last_pass: SyncPass | None
    total_new: int
    total_confirmed: int
    total_candidates: int
    total_false_positive: int
    average_duration_seconds: float

    @classmethod
    def from_passes(cls, passes: Sequence[SyncPass]) -> SyncStatistics:
        successful = sum(1 for item in passes if item.success)
        durations = [item.duration_seconds or 0.0 for item in passes]
        return cls(
            total_passes=len(passes),
            successful_passes=successful,
            failed_passes=len(passes) - successful,
            last_pass=passes[0] if passes else None,
            total_new=sum(item.counters.new for item in passes),
            total_confirmed=sum(item.counters.confirmed for item in passes),
            total_candidates=sum(item.counters.candidate for item in passes),
            total_false_positive=sum(item.counters.false_positive for item in passes),
            average_duration_seconds=sum(durations) / len(durations) if durations else 0.0,
        )


class SyncOrchestrator:
    """Runs synchronization passes, at most one at a time per process."""

    def __init__(self, context: SyncContext) -> None:
        self._context = context
        self._lock = threading.Lock()
        self._last_pass: SyncPass | None = None

    @property
    def context(self) -> SyncContext:
        return self._context

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    @property
    def last_pass(self) -> SyncPass | None:
        return self._last_pass

    @property
    def state(self) -> OrchestratorState:
        if self.is_running:
            return OrchestratorState.RUNNING
        if self._last_pass is None:
            return OrchestratorState.IDLE
        return OrchestratorState.SUCCEEDED if self._last_pass.success else OrchestratorState.FAILED

    def run_pass(self) -> SyncPass:
        """Run one complete pass and return its finished record.

        Raises :class:`SyncAlreadyRunningError` without side effects when another
        pass holds the guard. Catalog failures while diffing are recorded as a
        failed pass and re-raised; per-record failures never are.
        """

        if not self._lock.acquire(blocking=False):
            raise SyncAlreadyRunningError
        try:
            return self._run_locked()
        finally:
            self._lock.release()

    def recent_passes(self, limit: int) -> list[SyncPass]:
        with self._context.unit_of_work_factory() as uow:
            return uow.repositories.passes.recent(limit)

    def statistics(self, window: int = DEFAULT_STATISTICS_WINDOW) -> SyncStatistics:
        return SyncStatistics.from_passes(self.recent_passes(window))

    def find_candidate(self, identity: str) -> CandidateRecord | None:
        with self._context.unit_of_work_factory() as uow:
            return uow.repositories.candidates.get(identity.strip())

    def systems(self, search: str = "", limit: int = 50) -> list[SystemSummary]:
        with self._context.unit_of_work_factory() as uow:
            names = uow.repositories.candidates.assigned_names()
        return summarize_systems(names, search=search, limit=limit)

    def dispatch(self, entry: RemoteEntry) -> RecordOutcome:
        """Decide what to do with one new row; performs remote reads only."""

        status = entry.status
        if status is None:
            log.warning(f"Unknown status for {entry.identity}: {entry.raw_status!r}")
            return _failure(
                entry, ErrorKind.UNKNOWN_DISPOSITION, f"Unknown status: {entry.raw_status}"
            )

        if status.is_decided:
            fields = self._context.catalog.fetch_record(entry.identity)
            return RecordOutcome(
                identity=entry.identity,
                action=RecordAction.STORE_DECIDED,
                remote_status=status,
                status=status,
                fields=fields,
            )

        result = self._context.gateway.classify(entry.identity)
        return _outcome_from_classification(entry, result)

    def _run_locked(self) -> SyncPass:
        clock = self._context.clock
        sync_pass = SyncPass.begin(clock())
        log.info(f"Starting synchronization pass {sync_pass.id}")

        try:
            with self._context.unit_of_work_factory() as uow:
                diff = diff_catalog(
                    catalog=self._context.catalog,
                    repository=uow.repositories.candidates,
                )
                sync_pass.counters.fetched = diff.fetched
                sync_pass.counters.new = len(diff.new_records)
                for entry in diff.new_records:
                    self._process(entry, uow, sync_pass)
        except Exception as exc:
            sync_pass.fail(clock(), str(exc))
            log.exception(f"Synchronization pass {sync_pass.id} failed")
            self._record(sync_pass)
            raise

        sync_pass.succeed(clock())
        self._record(sync_pass)
        counters = sync_pass.counters
        log.info(
            f"Finished synchronization pass {sync_pass.id}: fetched={counters.fetched}, "
            f"new={counters.new}, confirmed={counters.confirmed}, "
            f"false_positive={counters.false_positive}, candidates={counters.candidate}, "
            f"other={counters.other}, errors={counters.errors}, "
            f"duration={sync_pass.duration_seconds:.1f}s"
        )
        return sync_pass

    def _process(self, entry: RemoteEntry, uow: SyncUnitOfWork, sync_pass: SyncPass) -> None:
        try:
            outcome = self.dispatch(entry)
        except Exception as exc:  # noqa: BLE001
            log.exception(f"Error while processing {entry.identity}")
            outcome = _failure(entry, ErrorKind.PROCESSING_ERROR, str(exc))

        if outcome.stores_record:
            try:
                outcome = replace(outcome, naming=self.apply(outcome, uow))
            except Exception as exc:  # noqa: BLE001
                uow.rollback()
                log.exception(f"Error while saving {entry.identity}")
                outcome = outcome.as_failure(ErrorKind.PROCESSING_ERROR, f"Save error: {exc}")

        tally(sync_pass.counters, outcome)
        if outcome.error is not None:
            sync_pass.add_error(outcome.error)

    def apply(self, outcome: RecordOutcome, uow: SyncUnitOfWork) -> AllocationKind | None:
        """Persist and commit a storable outcome, allocating a name when needed.

        Returns how the name was allocated, or ``None`` when no name was allocated.
        """

        repository = uow.repositories.candidates
        name, naming = self._name_for(outcome, repository)
        record = self._build_record(outcome, name)
        repository.add(record)
        uow.commit()
        if naming is AllocationKind.FALLBACK:
            log.warning(f"[{record.identity}] stored with fallback name {name}")
        log.info(
            f"[{record.identity}] saved as {record.status}"
            + (f" ({record.assigned_name})" if record.assigned_name else "")
        )
        return naming

    def _name_for(
        self,
        outcome: RecordOutcome,
        repository: CandidateRepository,
    ) -> tuple[str | None, AllocationKind | None]:
        if outcome.status is not Disposition.CONFIRMED:
            return None, None

        if outcome.action is RecordAction.STORE_DECIDED and outcome.fields is not None:
            remote = _remote_name(outcome.fields)
            if remote is not None:
                if remote not in repository.assigned_names():
                    return remote, None
                log.warning(
                    f"[{outcome.identity}] archive name {remote} is already assigned, "
                    "allocating another"
                )

        allocation = allocate_name(
            outcome.identity,
            repository=repository,
            clock=self._context.clock,
        )
        return allocation.name, allocation.kind

    def _build_record(self, outcome: RecordOutcome, name: str | None) -> CandidateRecord:
        if outcome.status is None or outcome.fields is None:
            raise ValueError(f"Outcome for {outcome.identity} has nothing to store")

        classified = outcome.action is RecordAction.STORE_CLASSIFIED
        verdict = outcome.classification.verdict if outcome.classification else None
        return CandidateRecord(
            identity=outcome.identity,
            status=outcome.status,
            physical_fields=dict(outcome.fields),
            assigned_name=name,
            classified_by_automation=classified,
            verdict=verdict if classified else None,
            sync_source=self._context.source_tag,
            synced_at=self._context.clock(),
        )

    def _record(self, sync_pass: SyncPass) -> None:
        self._last_pass = sync_pass
        try:
            with self._context.unit_of_work_factory() as uow:
                uow.repositories.passes.add(sync_pass)
                uow.commit()
        except Exception:  # noqa: BLE001
            log.exception(f"Could not save the record of pass {sync_pass.id}")


def _failure(entry: RemoteEntry, kind: ErrorKind, reason: str) -> RecordOutcome:
    return RecordOutcome(
        identity=entry.identity,
        action=RecordAction.FAIL,
        remote_status=entry.status,
        error=ErrorDetail(identity=entry.identity, kind=kind, reason=reason),
    )


def _outcome_from_classification(
    entry: RemoteEntry,
    result: ClassificationResult,
) -> RecordOutcome:
    base = RecordOutcome(
        identity=entry.identity,
        action=RecordAction.SKIP_OTHER,
        remote_status=entry.status,
        fields=result.fields,
        classification=result,
    )
    if result.outcome is Outcome.CONFIRMED:
        return replace(base, action=RecordAction.STORE_CLASSIFIED, status=Disposition.CONFIRMED)
    if result.outcome is Outcome.FALSE_POSITIVE:
        return replace(
            base,
            action=RecordAction.STORE_CLASSIFIED,
            status=Disposition.FALSE_POSITIVE,
        )
    if result.outcome is Outcome.OTHER:
        log.info(f"[{entry.identity}] unsupported prediction, left for a later pass")
        return base
    return replace(
        base,
        action=RecordAction.FAIL,
        error=ErrorDetail(
            identity=entry.identity,
            kind=ErrorKind.CLASSIFIER_ERROR,
            reason=result.error or "Classification failed",
            status_code=result.status_code,
            duration_seconds=result.duration_seconds,
        ),
    )


def _remote_name(fields: Mapping[str, object]) -> str | None:
    value = fields.get(REMOTE_NAME_FIELD)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
