from __future__ import annotations

import logging
from datetime import date, timedelta
from pathlib import Path

import pytest
from requests.structures import CaseInsensitiveDict

from yahoo_history import cli
from yahoo_history.cancellation import CancellationToken
from yahoo_history.cli import (
    apply_cli_overrides,
    build_parser,
    collect_symbols,
    csv_file_name,
)
from yahoo_history.config import Settings
from yahoo_history.domain.models import DividendTick
from yahoo_history.errors import RemoteServiceError, SymbolValidationError


class FakeHistory:
    """Records how the CLI drives the history client."""

    instances: list[FakeHistory] = []
    outcome: object = None

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.cancel_token = CancellationToken()
        self.calls: list[tuple] = []
        self.closed = False
        FakeHistory.instances.append(self)

    def __enter__(self) -> FakeHistory:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.closed = True

    def period_since(self, duration: timedelta) -> FakeHistory:
        self.calls.append(("period_since", duration))
        return self

    def period_between(self, tz: str, start: date, end: date | None = None) -> FakeHistory:
        self.calls.append(("period_between", tz, start, end))
        return self

    def get_ticks(self, symbols: list[str], kind: str, frequency: str) -> CaseInsensitiveDict:
        self.calls.append(("get_ticks", symbols, kind, frequency))
        if isinstance(FakeHistory.outcome, Exception):
            raise FakeHistory.outcome
        return FakeHistory.outcome


@pytest.fixture
def fake_history(monkeypatch: pytest.MonkeyPatch) -> type[FakeHistory]:
    FakeHistory.instances = []
    FakeHistory.outcome = CaseInsensitiveDict()
    monkeypatch.setattr("yahoo_history.config.load_dotenv", lambda *args, **kwargs: None)
    monkeypatch.setattr(cli, "YahooHistory", FakeHistory)
    monkeypatch.setattr(
        cli, "setup_logger", lambda *args, **kwargs: logging.getLogger("yahoo_history.cli")
    )
    for key in ("LOG_LEVEL", "YAHOO_MAX_WORKERS", "YAHOO_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    return FakeHistory


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["AAPL"])

    assert args.symbols == ["AAPL"]
    assert args.events == "history"
    assert args.frequency == "d"
    assert args.tz == "America/New_York"
    assert args.start is None and args.days is None


def test_cli_overrides_produce_expected_settings() -> None:
    args = build_parser().parse_args(
        [
            "AAPL",
            "--log-level",
            "debug",
            "--ignore-empty-rows",
            "--timeout",
            "5",
            "--max-workers",
            "2",
        ]
    )

    settings = apply_cli_overrides(Settings(), args)

    assert settings.log_level == "DEBUG"
    assert settings.ignore_empty_rows is True
    assert settings.timeout == 5
    assert settings.max_workers == 2


@pytest.mark.parametrize(
    ("argv", "message"),
    [
        (["AAPL", "--days", "5", "--start", "2024-01-01"], "only one of --days or --start"),
        (["AAPL", "--days", "0"], "--days must be positive"),
        (["AAPL", "--end", "2024-01-01"], "--end requires --start"),
    ],
)
def test_cli_rejects_conflicting_range_flags(argv: list[str], message: str) -> None:
    args = build_parser().parse_args(argv)

    with pytest.raises(ValueError, match=message):
        apply_cli_overrides(Settings(), args)


def test_collect_symbols_splits_commas() -> None:
    assert collect_symbols(["AAPL,msft", "GOOG"]) == ["AAPL", "msft", "GOOG"]


def test_main_writes_one_csv_per_found_symbol(fake_history, tmp_path: Path) -> None:
    fake_history.outcome = CaseInsensitiveDict(
        {
            "ko": [DividendTick(date=date(2023, 2, 10), dividend=0.23)],
            "NOPE": None,
        }
    )

    exit_code = cli.main(
        [
            "ko,NOPE",
            "--events",
            "div",
            "--start",
            "2023-01-01",
            "--end",
            "2023-12-31",
            "--tz",
            "UTC",
            "--output-dir",
            str(tmp_path),
        ]
    )

    assert exit_code == 0
    [history] = fake_history.instances
    assert history.calls == [
        ("period_between", "UTC", date(2023, 1, 1), date(2023, 12, 31)),
        ("get_ticks", ["ko", "NOPE"], "div", "d"),
    ]
    assert history.closed
    written = (tmp_path / "KO.csv").read_text().splitlines()
    assert written[0] == "date,dividend"
    assert written[1].startswith("2023-02-10")
    assert not (tmp_path / "NOPE.csv").exists()


def test_main_uses_trailing_days(fake_history) -> None:
    assert cli.main(["SPY", "--days", "30", "--frequency", "wk"]) == 0

    [history] = fake_history.instances
    assert history.calls[0] == ("period_since", timedelta(days=30))
    assert history.calls[1] == ("get_ticks", ["SPY"], "history", "wk")


def test_main_returns_one_on_data_errors(fake_history) -> None:
    fake_history.outcome = RemoteServiceError("status 500", status_code=500)

    assert cli.main(["SPY"]) == 1


def test_main_returns_two_on_input_errors(fake_history) -> None:
    fake_history.outcome = SymbolValidationError('Duplicate symbol(s): "SPY", "spy".')

    assert cli.main(["SPY", "spy"]) == 2


def test_main_returns_two_on_configuration_errors(fake_history, monkeypatch) -> None:
    monkeypatch.setenv("YAHOO_MAX_WORKERS", "-1")

    assert cli.main(["SPY"]) == 2
    assert fake_history.instances == []


@pytest.mark.parametrize(
    ("symbol", "file_name"),
    [
        ("brk-b", "BRK-B.csv"),
        ("^gspc", "^GSPC.csv"),
        ("eurusd=x", "EURUSD=X.csv"),
        ("../evil", "_EVIL.csv"),
        ("a/b\\c", "A_B_C.csv"),
        ("..", "_.csv"),
    ],
)
def test_csv_file_name_stays_inside_output_dir(symbol: str, file_name: str) -> None:
    assert csv_file_name(symbol) == file_name


def test_main_never_writes_outside_output_dir(fake_history, tmp_path: Path) -> None:
    output_dir = tmp_path / "out"
    fake_history.outcome = CaseInsensitiveDict(
        {"../escape": [DividendTick(date=date(2023, 2, 10), dividend=0.23)]}
    )

    assert cli.main(["../escape", "--events", "div", "--output-dir", str(output_dir)]) == 0

    assert [path.name for path in output_dir.iterdir()] == ["_ESCAPE.csv"]
    assert not (tmp_path / "ESCAPE.csv").exists()
