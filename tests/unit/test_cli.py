"""
Unit tests for tri_scan/cli.py
"""

import pytest

from tri_scan import cli
from tri_scan.exceptions import InvalidInput, TriScanError

RPC = "https://base.example.org"


class StubRunner:
    """Stands in for ScanRunner; behaviour is set per test."""

    outcome = 0
    seen = []

    def __init__(self, settings):
        StubRunner.seen.append(settings)

    def run(self):
        if isinstance(StubRunner.outcome, BaseException):
            raise StubRunner.outcome
        return StubRunner.outcome


@pytest.fixture
def stub_runner(monkeypatch):
    StubRunner.outcome = 0
    StubRunner.seen = []
    monkeypatch.setattr(cli, "ScanRunner", StubRunner)
    monkeypatch.setattr(cli.logging_config, "setup", lambda level=None: None)
    monkeypatch.setattr("tri_scan.config.load_dotenv", lambda: False)
    monkeypatch.delenv("BASE_RPC_URL", raising=False)
    return StubRunner


class TestParser:
    """Test flag parsing into settings overrides."""

    def test_unset_flags_are_dropped(self):
        args = cli.build_parser().parse_args(["--rpc", RPC, "--top", "5"])
        assert cli.overrides_from_args(args) == {"rpc_url": RPC, "top_n": 5}

    def test_lists_and_switches(self):
        args = cli.build_parser().parse_args(
            [
                "--subset", "usdc, WETH,aero",
                "--dexes", "aerodrome",
                "--fee-tiers", "100,500",
                "--verbose",
                "--unknown-gas", "known_first",
                "--config", "configs/base.yaml",
            ]
        )
        overrides = cli.overrides_from_args(args)

        assert overrides["token_subset"] == ["usdc", "WETH", "aero"]
        assert overrides["dexes"] == ["aerodrome"]
        assert overrides["fee_tiers"] == [100, 500]
        assert overrides["verbose"] is True
        assert overrides["unknown_gas_policy"] == "known_first"
        assert "config" not in overrides
        assert "self_test" not in overrides

    def test_bad_fee_tiers(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--fee-tiers", "500,abc"])


class TestMain:
    """Test exit codes."""

    def test_success(self, stub_runner):
        assert cli.main(["--rpc", RPC, "--amount", "250", "--self-test"]) == 0
        settings = stub_runner.seen[0]
        assert settings.amount == "250"
        assert settings.self_test is True

    def test_missing_rpc(self, stub_runner, capsys):
        assert cli.main([]) == 1
        assert "BASE_RPC_URL" in capsys.readouterr().err
        assert stub_runner.seen == []

    def test_invalid_amount(self, stub_runner, capsys):
        assert cli.main(["--rpc", RPC, "--amount", "1.2.3"]) == 1
        assert "amount" in capsys.readouterr().err

    def test_runner_errors(self, stub_runner):
        for error in (InvalidInput("bad triangle"), TriScanError("rpc unreachable")):
            stub_runner.outcome = error
            assert cli.main(["--rpc", RPC]) == 1

    def test_interrupted(self, stub_runner):
        stub_runner.outcome = KeyboardInterrupt()
        assert cli.main(["--rpc", RPC]) == 130

    def test_runner_exit_code_passes_through(self, stub_runner):
        stub_runner.outcome = 1
        assert cli.main(["--rpc", RPC, "--self-test"]) == 1
