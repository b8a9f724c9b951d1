from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from returnsync import __version__
from returnsync.app import SeedResult
from returnsync.domain.model import MatchStatus, SecondaryListingMapping
from returnsync.domain.reconciliation import CycleResult
from returnsync.ui import cli


class _Scheduler:
    def __init__(self, result: CycleResult) -> None:
        self.result = result
        self.reset_hours: list[float | None] = []

    async def run_cycle_now(self, reset_hours: float | None = None) -> CycleResult:
        self.reset_hours.append(reset_hours)
        return self.result

    def get_status(self) -> Any:
        class _Status:
            @staticmethod
            def as_dict() -> dict[str, object]:
                return {"active": False, "enabled": True}

        return _Status()


class _Runtime:
    def __init__(self, result: CycleResult) -> None:
        self.scheduler = _Scheduler(result)
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def quiet_bootstrap(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    monkeypatch.setattr(cli, "configure_logging", lambda: None)


def _install_runtime(monkeypatch: pytest.MonkeyPatch, result: CycleResult) -> _Runtime:
    runtime = _Runtime(result)
    monkeypatch.setattr(cli, "build_runtime", lambda: runtime)
    return runtime


def _output(capsys: pytest.CaptureFixture[str]) -> Any:
    return json.loads(capsys.readouterr().out)


def test_run_prints_cycle_result(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    runtime = _install_runtime(monkeypatch, CycleResult(run_id="r1", detected=2, processed=2))

    cli.main(["run", "--reset-hours", "6"])

    assert runtime.scheduler.reset_hours == [6.0]
    assert runtime.closed
    output = _output(capsys)
    assert output["run_id"] == "r1"
    assert output["processed"] == 2


def test_run_with_errors_exits_nonzero(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_runtime(monkeypatch, CycleResult(run_id="r1", errors=1))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run"])

    assert excinfo.value.code == 1


def test_reset_hours_must_be_positive() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["run", "--reset-hours", "-3"])

    assert excinfo.value.code == 2


def test_status_prints_scheduler_status(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _install_runtime(monkeypatch, CycleResult(run_id=None))

    cli.main(["status"])

    assert _output(capsys) == {"active": False, "enabled": True}


def test_seed_passes_csv_path(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    seen: list[Path] = []

    def fake_seed(path: Path) -> SeedResult:
        seen.append(path)
        return SeedResult(added=3, skipped=1)

    monkeypatch.setattr(cli, "seed_stock_from_csv", fake_seed)

    cli.main(["seed", "stock.csv"])

    assert seen == [Path("stock.csv")]
    assert _output(capsys) == {"added": 3, "skipped": 1}


def test_seed_value_error_exits_with_usage_code(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_seed(_: Path) -> SeedResult:
        raise ValueError("line 3: quantity must be an integer")

    monkeypatch.setattr(cli, "seed_stock_from_csv", fake_seed)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["seed", "stock.csv"])

    assert excinfo.value.code == 2


def test_retry_commands(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr(cli, "list_pending_retries", lambda: ["PO-1"])
    monkeypatch.setattr(cli, "clear_pending_retries", lambda: 1)

    cli.main(["retry", "list"])
    assert _output(capsys) == ["PO-1"]

    cli.main(["retry", "clear"])
    assert _output(capsys) == {"cleared": 1}


def test_mapping_set(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    calls: list[dict[str, object]] = []

    def fake_mapping(
        source_product_id: str,
        secondary_listing_id: str,
        *,
        source_option: str = "",
        secondary_listing_name: str | None = None,
    ) -> SecondaryListingMapping:
        calls.append(
            {
                "source_product_id": source_product_id,
                "secondary_listing_id": secondary_listing_id,
                "source_option": source_option,
                "secondary_listing_name": secondary_listing_name,
            }
        )
        return SecondaryListingMapping(
            source_product_id=source_product_id,
            source_option=source_option,
            secondary_listing_id=secondary_listing_id,
            status=MatchStatus.MANUAL,
        )

    monkeypatch.setattr(cli, "set_manual_mapping", fake_mapping)

    cli.main(["mapping", "set", "OP-1", "B-9", "--option", "베이지", "--name", "니트"])

    assert calls == [
        {
            "source_product_id": "OP-1",
            "secondary_listing_id": "B-9",
            "source_option": "베이지",
            "secondary_listing_name": "니트",
        }
    ]
    assert _output(capsys) == {
        "source_product_id": "OP-1",
        "source_option": "베이지",
        "secondary_listing_id": "B-9",
        "status": "manual",
    }


def test_unexpected_failure_exits_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken() -> list[str]:
        raise RuntimeError("database locked")

    monkeypatch.setattr(cli, "list_pending_retries", broken)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["retry", "list"])

    assert excinfo.value.code == 1


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip().endswith(__version__)
