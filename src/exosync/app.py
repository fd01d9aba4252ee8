"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from exosync.adapters.archive import TapCatalogSource
from exosync.adapters.classifier import HttpInferenceClient
from exosync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    is_started,
    startup,
)
from exosync.config import (
    get_archive_config,
    get_classifier_config,
    get_scheduler_config,
)
from exosync.domain.classification import ClassificationGateway
from exosync.domain.sync import (
    OrchestratorState,
    SyncContext,
    SyncOrchestrator,
    SyncStatistics,
)
from exosync.scheduling import SchedulerStatus, SyncScheduler

if TYPE_CHECKING:
    from datetime import datetime

    from exosync.config import ArchiveConfig, ClassifierConfig, SchedulerConfig
    from exosync.domain.model import CandidateRecord, SyncPass
    from exosync.domain.naming import SystemSummary
    from exosync.domain.ports.classification import InferenceClient
    from exosync.domain.ports.fetching import CatalogSource
    from exosync.domain.ports.unit_of_work import SyncUnitOfWork

UnitOfWorkFactory = Callable[[], "SyncUnitOfWork"]

STATUS_HISTORY_SIZE: Final[int] = 5
DEFAULT_LOG_LIMIT: Final[int] = 20
MAX_LOG_LIMIT: Final[int] = 100

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ServiceStatus:
    scheduler: SchedulerStatus
    state: OrchestratorState
    recent_passes: list[SyncPass]
    archive_url: str
    classifier_url: str


def clamp_log_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LOG_LIMIT
    return max(1, min(limit, MAX_LOG_LIMIT))


class SyncService:
    """Control surface over the orchestrator and its scheduler."""

    def __init__(
        self,
        *,
        orchestrator: SyncOrchestrator,
        scheduler: SyncScheduler,
        archive_url: str,
        classifier_url: str,
    ) -> None:
        self.orchestrator = orchestrator
        self.scheduler = scheduler
        self.archive_url = archive_url
        self.classifier_url = classifier_url

    def get_status(self) -> ServiceStatus:
        return ServiceStatus(
            scheduler=self.scheduler.status(),
            state=self.orchestrator.state,
            recent_passes=self.orchestrator.recent_passes(STATUS_HISTORY_SIZE),
            archive_url=self.archive_url,
            classifier_url=self.classifier_url,
        )

    def run_now(self) -> SyncPass:
        return self.scheduler.trigger_now()

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def restart(self) -> None:
        self.scheduler.restart()

    def configure(self, pattern: str, timezone: str) -> None:
        self.scheduler.configure(pattern, timezone)

    def validate_pattern(self, pattern: str, timezone: str) -> bool:
        return self.scheduler.validate_pattern(pattern, timezone)

    def get_logs(self, limit: int | None = DEFAULT_LOG_LIMIT) -> list[SyncPass]:
        return self.orchestrator.recent_passes(clamp_log_limit(limit))

    def get_stats(self) -> SyncStatistics:
        return self.orchestrator.statistics()

    def get_candidate(self, identity: str) -> CandidateRecord | None:
        return self.orchestrator.find_candidate(identity)

    def get_systems(self, search: str = "", limit: int | None = 50) -> list[SystemSummary]:
        return self.orchestrator.systems(search=search, limit=clamp_log_limit(limit))


def build_sync_service(
    *,
    catalog: CatalogSource | None = None,
    inference_client: InferenceClient | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    archive_config: ArchiveConfig | None = None,
    classifier_config: ClassifierConfig | None = None,
    scheduler_config: SchedulerConfig | None = None,
    clock: Callable[[], datetime] | None = None,
) -> SyncService:
    """Wire configuration, storage, adapters, orchestrator and scheduler."""

    effective_archive = archive_config or get_archive_config()
    effective_classifier = classifier_config or get_classifier_config()
    effective_scheduler = scheduler_config or get_scheduler_config()

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemySyncUnitOfWork

    effective_catalog = catalog or TapCatalogSource(config=effective_archive)
    effective_client = inference_client or HttpInferenceClient(config=effective_classifier)

    clock_kwargs = {"clock": clock} if clock is not None else {}
    gateway = ClassificationGateway(
        catalog=effective_catalog,
        client=effective_client,
        timeout_seconds=effective_classifier.timeout_seconds,
        **clock_kwargs,
    )
    context = SyncContext(
        catalog=effective_catalog,
        gateway=gateway,
        unit_of_work_factory=unit_of_work_factory,
        source_tag=effective_archive.source_tag,
        **clock_kwargs,
    )
    orchestrator = SyncOrchestrator(context)
    scheduler = SyncScheduler(orchestrator, config=effective_scheduler, **clock_kwargs)

    service = SyncService(
        orchestrator=orchestrator,
        scheduler=scheduler,
        archive_url=effective_archive.base_url,
        classifier_url=effective_classifier.infer_url,
    )
    log.info(
        f"Synchronization service ready: archive={service.archive_url}, "
        f"classifier={service.classifier_url}, schedule={effective_scheduler.cron_pattern} "
        f"({effective_scheduler.timezone})"
    )
    if effective_scheduler.auto_start:
        log.info("Auto-starting the synchronization scheduler")
        service.start()
    return service
