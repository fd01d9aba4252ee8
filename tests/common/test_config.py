from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003

import pytest

from exosync.config import (
    ConfigurationError,
    configure_logging,
    env_flag,
    get_archive_config,
    get_classifier_config,
    get_database_config,
    get_scheduler_config,
    get_storage_config,
    optional_env_var,
)
from exosync.config.archive import ARCHIVE_BASE_URL
from exosync.config.storage import DATABASE_FILENAME, RECORD_CACHE_FILENAME


def test_optional_env_var_falls_back_on_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  ")

    assert optional_env_var("EXAMPLE_VAR", "fallback") == "fallback"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("1", True), ("Yes", True), ("false", False), ("off", False)],
)
def test_env_flag_parses_booleans(
    monkeypatch: pytest.MonkeyPatch,
    raw: str,
    expected: bool,
) -> None:
    monkeypatch.setenv("AUTO_START_SYNC", raw)

    assert env_flag("AUTO_START_SYNC") is expected


def test_env_flag_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTO_START_SYNC", "sometimes")

    with pytest.raises(ConfigurationError):
        env_flag("AUTO_START_SYNC")


def test_scheduler_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SYNC_CRON_PATTERN", "SYNC_TIMEZONE", "AUTO_START_SYNC"):
        monkeypatch.delenv(name, raising=False)

    config = get_scheduler_config()

    assert config.cron_pattern == "0 * * * *"
    assert config.timezone == "Europe/Paris"
    assert not config.auto_start


def test_scheduler_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYNC_CRON_PATTERN", "*/30 * * * *")
    monkeypatch.setenv("SYNC_TIMEZONE", "UTC")
    monkeypatch.setenv("AUTO_START_SYNC", "true")

    config = get_scheduler_config()

    assert (config.cron_pattern, config.timezone, config.auto_start) == (
        "*/30 * * * *",
        "UTC",
        True,
    )


def test_classifier_config_reads_endpoint(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BACKEND_INFER_URL", "http://ml.internal:8000/infer")

    config = get_classifier_config()

    assert config.infer_url == "http://ml.internal:8000/infer"
    assert config.timeout_seconds == 10.0


def test_archive_config_caches_only_single_record_queries(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.delenv("NASA_TAP_URL", raising=False)
    monkeypatch.setenv("EXOSYNC_DATA_DIR", str(tmp_path / "data"))

    config = get_archive_config()

    assert config.base_url == ARCHIVE_BASE_URL
    assert config.table == "cumulative"
    assert config.snapshot.cache is None
    assert config.snapshot.timeout_seconds == 60.0
    assert config.record.cache is not None
    assert config.record.cache.sqlite_path == str(
        (tmp_path / "data" / RECORD_CACHE_FILENAME).resolve()
    )
    assert config.snapshot.default_headers is not None
    assert config.snapshot.default_headers["User-Agent"].startswith("exosync/")


def test_archive_config_honours_url_override(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.setenv("NASA_TAP_URL", "https://mirror.test/TAP/sync")
    monkeypatch.setenv("EXOSYNC_DATA_DIR", str(tmp_path))

    config = get_archive_config()

    assert config.base_url == "https://mirror.test/TAP/sync"
    assert config.record.base_url == "https://mirror.test/TAP/sync"


def test_storage_prefers_explicit_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("EXOSYNC_DATA_DIR", str(tmp_path / "custom"))

    storage = get_storage_config()

    assert storage.root == (tmp_path / "custom").resolve()


def test_database_uri_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_config().uri == "sqlite:///override.db"


def test_database_uri_defaults_to_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("EXOSYNC_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_config().uri

    expected_path = (tmp_path / "data-dir" / DATABASE_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_configure_logging_reads_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []
    monkeypatch.setenv("EXOSYNC_LOG_LEVEL", "debug")
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    for name in ("httpx", "httpcore", "hishel", "apscheduler"):
        monkeypatch.setattr(logging.getLogger(name), "level", logging.NOTSET)

    configure_logging()

    assert calls[0]["level"] == "DEBUG"
    assert logging.getLogger("httpx").level == logging.WARNING
