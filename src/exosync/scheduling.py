"""Cron-driven trigger for synchronization passes."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from exosync.config.errors import InvalidSchedulePatternError
from exosync.config.scheduler import DEFAULT_TIMEZONE, SchedulerConfig
from exosync.domain.sync import SyncConflictError

if TYPE_CHECKING:
    from apscheduler.schedulers.base import BaseScheduler

    from exosync.domain.model import SyncPass
    from exosync.domain.sync import SyncOrchestrator

log = getLogger(__name__)

JOB_ID: Final[str] = "exosync-sync-pass"

SchedulerFactory = Callable[..., "BaseScheduler"]


@dataclass(frozen=True, slots=True)
class SchedulerStatus:
    active: bool
    running: bool
    pattern: str
    timezone: str
    last_run_at: datetime | None
    next_run_at: datetime | None


def build_trigger(pattern: str, timezone: str) -> CronTrigger:
    """Parse a five-field crontab expression, raising on invalid input."""

    if not pattern or not pattern.strip():
        raise InvalidSchedulePatternError(pattern, timezone, "the cron pattern is required")
    try:
        return CronTrigger.from_crontab(pattern.strip(), timezone=timezone)
    except (ValueError, KeyError) as exc:
        raise InvalidSchedulePatternError(pattern, timezone, str(exc)) from exc


def validate_pattern(pattern: str, timezone: str = DEFAULT_TIMEZONE) -> bool:
    try:
        build_trigger(pattern, timezone)
    except InvalidSchedulePatternError:
        return False
    return True


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SyncScheduler:
    """Arms a recurring pass on a cron pattern; manual triggers share its guard.

    Scheduled and manual triggers both go through :meth:`SyncOrchestrator.run_pass`,
    so a trigger fired while a pass is running is rejected rather than queued.
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        *,
        config: SchedulerConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
        scheduler_factory: SchedulerFactory = BackgroundScheduler,
    ) -> None:
        effective = config or SchedulerConfig()
        build_trigger(effective.cron_pattern, effective.timezone)
        self._orchestrator = orchestrator
        self._pattern = effective.cron_pattern
        self._timezone = effective.timezone
        self._clock = clock
        self._scheduler_factory = scheduler_factory
        self._scheduler: BaseScheduler | None = None
        self._trigger: CronTrigger | None = None
        self._last_run_at: datetime | None = None
        self._transition_lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._scheduler is not None

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def timezone(self) -> str:
        return self._timezone

    @property
    def last_run_at(self) -> datetime | None:
        return self._last_run_at

    def next_run_at(self) -> datetime | None:
        trigger = self._trigger
        if trigger is None:
            return None
        return trigger.get_next_fire_time(None, self._clock())

    def start(self) -> None:
        with self._transition_lock:
            if self._scheduler is not None:
                log.warning("Synchronization scheduler is already active")
                return
            self._arm()

    def stop(self) -> None:
        with self._transition_lock:
            if self._scheduler is None:
                log.warning("Synchronization scheduler is not active")
                return
            self._disarm()

    def restart(self) -> None:
        with self._transition_lock:
            if self._scheduler is not None:
                self._disarm()
            self._arm()

    def configure(self, pattern: str, timezone: str = DEFAULT_TIMEZONE) -> None:
        """Replace the schedule; the current one is untouched if the new one is invalid."""

        build_trigger(pattern, timezone)
        log.info(f"Configuring synchronization schedule: {pattern} ({timezone})")
        with self._transition_lock:
            if self._scheduler is not None:
                self._disarm()
            self._pattern = pattern.strip()
            self._timezone = timezone
            self._arm()

    def _arm(self) -> None:
        # Callers hold _transition_lock.
        trigger = build_trigger(self._pattern, self._timezone)
        scheduler = self._scheduler_factory(timezone=self._timezone)
        scheduler.add_job(
            self._run_scheduled,
            trigger=trigger,
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        self._trigger = trigger
        log.info(
            f"Synchronization scheduler started ({self._pattern}, {self._timezone}), "
            f"next run at {self.next_run_at()}"
        )

    def _disarm(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self._trigger = None
        log.info("Synchronization scheduler stopped")

    @staticmethod
    def validate_pattern(pattern: str, timezone: str = DEFAULT_TIMEZONE) -> bool:
        return validate_pattern(pattern, timezone)

    def trigger_now(self) -> SyncPass:
        """Run a pass immediately, raising :class:`SyncConflictError` if one is running."""

        log.info("Executing immediate synchronization")
        return self._execute()

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            active=self.active,
            running=self._orchestrator.is_running,
            pattern=self._pattern,
            timezone=self._timezone,
            last_run_at=self._last_run_at,
            next_run_at=self.next_run_at(),
        )

    def _execute(self) -> SyncPass:
        previous = self._last_run_at
        self._last_run_at = self._clock()
        try:
            return self._orchestrator.run_pass()
        except SyncConflictError:
            self._last_run_at = previous
            raise

    def _run_scheduled(self) -> None:
        try:
            self._execute()
        except SyncConflictError:
            log.warning("Synchronization already in progress, skipping scheduled run")
        except Exception:  # noqa: BLE001
            log.exception("Scheduled synchronization failed")
