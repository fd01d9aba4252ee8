"""NASA Exoplanet Archive (TAP) configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from exosync import __version__

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig
from .storage import StorageConfig, get_storage_config

ARCHIVE_BASE_URL = "https://exoplanetarchive.ipac.caltech.edu/TAP/sync"
ARCHIVE_TABLE = "cumulative"
SNAPSHOT_TIMEOUT_SECONDS = 60.0
RECORD_TIMEOUT_SECONDS = 30.0
RECORD_CACHE_TTL_SECONDS = 15 * 60.0
SYNC_SOURCE_TAG = "nasa_tap"


def _default_headers() -> dict[str, str]:
    return {"User-Agent": f"exosync/{__version__}"}


@dataclass(frozen=True)
class ArchiveConfig:
    """Holds the TAP endpoint and the two client profiles used against it.

    The snapshot profile is never cached: the diff must always be computed from a
    fresh, complete projection. Single-record queries may be served from a short
    lived cache so candidates whose classification failed are not downloaded again
    on every pass.
    """

    base_url: str = ARCHIVE_BASE_URL
    table: str = ARCHIVE_TABLE
    source_tag: str = SYNC_SOURCE_TAG
    snapshot: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(
            name="archive-snapshot",
            base_url=ARCHIVE_BASE_URL,
            timeout_seconds=SNAPSHOT_TIMEOUT_SECONDS,
            default_headers=_default_headers(),
        )
    )
    record: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(
            name="archive-record",
            base_url=ARCHIVE_BASE_URL,
            timeout_seconds=RECORD_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            default_headers=_default_headers(),
        )
    )


def get_archive_config(*, storage: StorageConfig | None = None) -> ArchiveConfig:
    base_url = optional_env_var("NASA_TAP_URL", ARCHIVE_BASE_URL)
    storage_config = storage or get_storage_config()
    record_cache = CacheConfig(
        sqlite_path=str(storage_config.record_cache_file),
        ttl_seconds=RECORD_CACHE_TTL_SECONDS,
    )
    defaults = ArchiveConfig()
    return ArchiveConfig(
        base_url=base_url,
        snapshot=replace(defaults.snapshot, base_url=base_url),
        record=replace(defaults.record, base_url=base_url, cache=record_cache),
    )
