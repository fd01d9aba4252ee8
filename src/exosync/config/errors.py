from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable."""


class InvalidSchedulePatternError(ConfigurationError):
    """A cron pattern or timezone the scheduler cannot build a trigger from."""

    def __init__(self, pattern: str, timezone: str, reason: str) -> None:
        self.pattern = pattern
        self.timezone = timezone
        super().__init__(f"Invalid schedule {pattern!r} ({timezone}): {reason}")
