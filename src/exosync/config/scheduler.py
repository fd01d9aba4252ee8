"""Periodic synchronization defaults."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_flag, optional_env_var

DEFAULT_CRON_PATTERN = "0 * * * *"
DEFAULT_TIMEZONE = "Europe/Paris"


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    cron_pattern: str = DEFAULT_CRON_PATTERN
    timezone: str = DEFAULT_TIMEZONE
    auto_start: bool = False


def get_scheduler_config() -> SchedulerConfig:
    return SchedulerConfig(
        cron_pattern=optional_env_var("SYNC_CRON_PATTERN", DEFAULT_CRON_PATTERN),
        timezone=optional_env_var("SYNC_TIMEZONE", DEFAULT_TIMEZONE),
        auto_start=env_flag("AUTO_START_SYNC"),
    )
