from __future__ import annotations

from datetime import UTC, datetime

import pytest

from exosync.app import SyncService, build_sync_service
from exosync.config import ArchiveConfig, ClassifierConfig, SchedulerConfig
from exosync.domain.model import SyncPass
from exosync.domain.ports.fetching import CatalogError
from exosync.domain.sync import SyncAlreadyRunningError
from exosync.ui import cli as cli_module
from tests.helpers.sync import (
    FakeCatalogSource,
    FakeInferenceClient,
    FakeSyncUnitOfWork,
    reply,
)

STARTED = datetime(2025, 3, 1, 12, tzinfo=UTC)


def _service(catalog: FakeCatalogSource | None = None) -> SyncService:
    uow = FakeSyncUnitOfWork()
    return build_sync_service(
        catalog=catalog or FakeCatalogSource([("B2.01", "CONFIRMED"), ("A1.01", "CANDIDATE")]),
        inference_client=FakeInferenceClient({"A1.01": reply("CONFIRMED", 0.9)}),
        unit_of_work_factory=lambda: uow,
        archive_config=ArchiveConfig(),
        classifier_config=ClassifierConfig(),
        scheduler_config=SchedulerConfig(),
    )


@pytest.fixture
def service(monkeypatch: pytest.MonkeyPatch) -> SyncService:
    instance = _service()
    monkeypatch.setattr(cli_module, "build_sync_service", lambda: instance)
    return instance


def test_run_prints_pass_summary(
    service: SyncService,
    capsys: pytest.CaptureFixture[str],
) -> None:
    cli_module.main(["run"])

    output = capsys.readouterr().out
    assert "succeeded" in output
    assert "fetched=2 new=2 confirmed=2" in output
    assert len(service.get_logs()) == 1


def test_logs_and_stats_read_the_pass_log(
    service: SyncService,
    capsys: pytest.CaptureFixture[str],
) -> None:
    service.run_now()
    service.run_now()
    capsys.readouterr()

    cli_module.main(["logs", "--limit", "1"])
    logs_output = capsys.readouterr().out
    cli_module.main(["stats"])
    stats_output = capsys.readouterr().out

    assert len(logs_output.strip().splitlines()) == 1
    assert "new=0" in logs_output
    assert "passes:            2" in stats_output


def test_status_prints_schedule_and_endpoints(
    service: SyncService,
    capsys: pytest.CaptureFixture[str],
) -> None:
    cli_module.main(["status"])

    output = capsys.readouterr().out
    assert "0 * * * * (Europe/Paris)" in output
    assert service.archive_url in output
    assert "stopped" in output


def test_validate_cron_accepts_valid_pattern(capsys: pytest.CaptureFixture[str]) -> None:
    cli_module.main(["validate-cron", "*/10 * * * *", "--timezone", "UTC"])

    assert capsys.readouterr().out.startswith("Valid: */10 * * * * (UTC)")


def test_validate_cron_rejects_invalid_pattern(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["validate-cron", "every monday"])

    assert excinfo.value.code == 2
    assert "Invalid" in capsys.readouterr().err


def test_invalid_log_limit_exits_with_usage_error(service: SyncService) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["logs", "--limit", "0"])

    assert excinfo.value.code == 2


def test_missing_command_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main([])

    assert excinfo.value.code == 2


def test_conflict_exits_with_dedicated_code(monkeypatch: pytest.MonkeyPatch) -> None:
    instance = _service()

    def busy() -> SyncPass:
        raise SyncAlreadyRunningError

    monkeypatch.setattr(instance, "run_now", busy)
    monkeypatch.setattr(cli_module, "build_sync_service", lambda: instance)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["run"])

    assert excinfo.value.code == 3


def test_failed_pass_exits_with_failure_code(monkeypatch: pytest.MonkeyPatch) -> None:
    instance = _service(FakeCatalogSource(projection_error=CatalogError("archive unavailable")))
    monkeypatch.setattr(cli_module, "build_sync_service", lambda: instance)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["run"])

    assert excinfo.value.code == 1


def test_format_pass_includes_error_message() -> None:
    sync_pass = SyncPass.begin(STARTED)
    sync_pass.fail(STARTED, "archive unavailable")

    line = cli_module.format_pass(sync_pass)

    assert "failed" in line
    assert "error='archive unavailable'" in line


def test_show_prints_a_stored_record(
    service: SyncService,
    capsys: pytest.CaptureFixture[str],
) -> None:
    service.run_now()
    capsys.readouterr()

    cli_module.main(["show", "A1.01"])

    output = capsys.readouterr().out
    assert "identity:   A1.01" in output
    assert "name:       Kepler-2 b" in output
    assert "automated:  yes" in output


def test_show_unknown_record_exits_with_failure_code(
    service: SyncService,
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["show", "Z9.01"])

    assert excinfo.value.code == 1
    assert "No stored record for Z9.01" in capsys.readouterr().err


def test_systems_lists_named_systems(
    service: SyncService,
    capsys: pytest.CaptureFixture[str],
) -> None:
    service.run_now()
    capsys.readouterr()

    cli_module.main(["systems", "--search", "kepler-1"])

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    assert lines[0].startswith("Kepler-1")
    assert lines[0].endswith("1 planets: Kepler-1 b")
