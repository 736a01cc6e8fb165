"""End-to-end experiment runs with the chain and bundlers stubbed out."""

import itertools
from unittest.mock import MagicMock

import pytest

from config import BenchmarkConfig, SetupError
from core.harness import TrialOperation, wall_clock_ms
from core.monitor import Inclusion
from scenarios import exp_biconomy_sdk, exp_bundler_comparison


class FakeNetwork:
    def __init__(self, config: BenchmarkConfig) -> None:
        self.config = config
        self.bundlers = {}
        self.checked = []

    def check_rpc(self) -> int:
        return 8453

    def get_web3(self):
        return MagicMock()

    def available_bundlers(self, names):
        return [name for name in names if name in self.config.bundler_urls]

    def get_bundler(self, name):
        return self.bundlers.setdefault(name, MagicMock(name=name))

    def check_bundler(self, name):
        self.checked.append(name)
        return self.get_bundler(name)


def included(user_op_hash: str) -> Inclusion:
    return Inclusion(user_op_hash, "0xtx" + user_op_hash[-1], 1, wall_clock_ms() + 2000)


@pytest.fixture
def config(tmp_path) -> BenchmarkConfig:
    return BenchmarkConfig(
        rpc_url="http://127.0.0.1:8545",
        private_key="0xabc",
        iterations=2,
        output_dir=str(tmp_path / "output"),
        bundler_urls={"biconomy": "https://b.example", "pimlico": "https://p.example"},
    )


def test_bundler_comparison_run(config, monkeypatch) -> None:
    counter = itertools.count()

    def build_operation(network, account, bundler_name, config):
        def submit(payload):
            if bundler_name == "pimlico":
                raise RuntimeError("pimlico rejected the operation")
            return f"0xop{next(counter)}"
        return TrialOperation(submit=submit, wait_for_inclusion=included)

    monkeypatch.setattr(exp_bundler_comparison, "ConnectionManager", FakeNetwork)
    monkeypatch.setattr(exp_bundler_comparison, "create_smart_account", MagicMock())
    monkeypatch.setattr(exp_bundler_comparison, "build_operation", build_operation)

    trial_sets, aggregates = exp_bundler_comparison.run(config)

    assert list(trial_sets) == ["biconomy", "pimlico"]
    assert list(aggregates) == ["biconomy"]

    detail = config.output_path("latency_results.csv")
    with open(detail, encoding="utf-8") as f:
        lines = f.read().splitlines()
    assert lines[0].startswith("Bundler,UserOp Hash,")
    assert len(lines) == 1 + 4
    assert lines[3] == "pimlico,Failed,Error,Error,Error,N/A"

    with open(config.output_path("average_latency_results.csv"), encoding="utf-8") as f:
        summary = f.read().splitlines()
    assert len(summary) == 2
    assert summary[1].startswith("biconomy,")


def test_bundler_comparison_without_bundlers(config, monkeypatch) -> None:
    config.bundler_urls = {}
    monkeypatch.setattr(exp_bundler_comparison, "ConnectionManager", FakeNetwork)
    monkeypatch.setattr(exp_bundler_comparison, "create_smart_account", MagicMock())

    with pytest.raises(SetupError):
        exp_bundler_comparison.run(config)


def test_unsupported_bundler_aborts_before_trials(config, monkeypatch) -> None:
    class StrictNetwork(FakeNetwork):
        def check_bundler(self, name):
            if name == "pimlico":
                raise SetupError("Bundler pimlico does not support EntryPoint")
            return super().check_bundler(name)

    build_operation = MagicMock()
    monkeypatch.setattr(exp_bundler_comparison, "ConnectionManager", StrictNetwork)
    monkeypatch.setattr(exp_bundler_comparison, "create_smart_account", MagicMock())
    monkeypatch.setattr(exp_bundler_comparison, "build_operation", build_operation)

    with pytest.raises(SetupError):
        exp_bundler_comparison.run(config)
    build_operation.assert_not_called()


def test_setup_failure_aborts_before_trials(config, monkeypatch) -> None:
    build_operation = MagicMock()
    monkeypatch.setattr(exp_bundler_comparison, "ConnectionManager", FakeNetwork)
    monkeypatch.setattr(
        exp_bundler_comparison,
        "create_smart_account",
        MagicMock(side_effect=SetupError("Could not resolve smart account address")),
    )
    monkeypatch.setattr(exp_bundler_comparison, "build_operation", build_operation)

    with pytest.raises(SetupError):
        exp_bundler_comparison.run(config)
    build_operation.assert_not_called()


def test_invalid_config_aborts(config) -> None:
    config.rpc_url = ""
    with pytest.raises(SetupError):
        exp_biconomy_sdk.run(config)


def test_biconomy_sdk_run(config, monkeypatch) -> None:
    injector = MagicMock()
    injector.send_transaction.side_effect = ["0xop1", RuntimeError("AA10 sender already constructed")]
    monitor = MagicMock()
    monitor.wait_for_inclusion.side_effect = included

    monkeypatch.setattr(exp_biconomy_sdk, "ConnectionManager", FakeNetwork)
    monkeypatch.setattr(exp_biconomy_sdk, "create_smart_account", MagicMock())
    monkeypatch.setattr(exp_biconomy_sdk, "UserOperationInjector", MagicMock(return_value=injector))
    monkeypatch.setattr(exp_biconomy_sdk, "InclusionMonitor", MagicMock(return_value=monitor))

    trial_sets, aggregates = exp_biconomy_sdk.run(config)

    assert list(trial_sets) == ["biconomySDK"]
    assert aggregates["biconomySDK"].success_count == 1

    with open(config.output_path("biconomy_sdk_latency_results.csv"), encoding="utf-8") as f:
        lines = f.read().splitlines()
    assert lines[0].startswith("UserOp Hash,")
    assert lines[1].startswith("0xop1,")
    assert lines[1].endswith(",0xtx1")
    assert lines[2] == "Failed,Error,Error,Error,N/A"

    with open(
        config.output_path("biconomy_sdk_average_latency_results.csv"), encoding="utf-8"
    ) as f:
        summary = f.read().splitlines()
    assert summary[1].startswith("biconomySDK,")
