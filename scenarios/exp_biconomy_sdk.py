"""
Biconomy SDK latency experiment.
Single bundler; submission is timed end-to-end like the SDK's
`sendTransaction` (build, estimate, sign and send).

Usage: `python run_biconomy_sdk.py`
"""
import typing as t

from config_sdk import (
    SDK_AVG_OUTPUT_FILE,
    SDK_BUNDLER,
    SDK_OUTPUT_FILE,
    SDK_TARGET_NAME,
    TRANSFER_VALUE_RANGE,
    BenchmarkConfig,
)
from core.harness import AggregateResult, LatencyHarness, TrialOperation, TrialSet, aggregate_all
from core.identity import create_smart_account
from core.injector import UserOperationInjector
from core.monitor import InclusionMonitor
from core.network import ConnectionManager
from core.report import save_results


def run(
    config: t.Optional[BenchmarkConfig] = None,
) -> t.Tuple[t.Dict[str, TrialSet], t.Dict[str, AggregateResult]]:
    print("=== Biconomy SDK Latency Benchmark ===")
    if config is None:
        config = BenchmarkConfig.from_env()
    config.validate()

    network = ConnectionManager(config)
    network.check_rpc()
    web3 = network.get_web3()
    account = create_smart_account(web3, config.private_key, config.entry_point)
    bundler = network.check_bundler(SDK_BUNDLER)

    injector = UserOperationInjector(
        web3,
        account,
        bundler,
        config.entry_point,
        config.max_priority_fee_gwei,
        TRANSFER_VALUE_RANGE,
    )
    monitor = InclusionMonitor(web3, bundler)
    operation = TrialOperation(
        submit=injector.send_transaction,
        wait_for_inclusion=monitor.wait_for_inclusion,
    )

    harness = LatencyHarness(config.iterations)
    trial_sets = {SDK_TARGET_NAME: harness.run(SDK_TARGET_NAME, operation)}
    aggregates = aggregate_all(trial_sets.values())

    save_results(
        config.output_path(SDK_OUTPUT_FILE),
        config.output_path(SDK_AVG_OUTPUT_FILE),
        trial_sets,
        aggregates,
        include_target=False,
    )
    print("Benchmark completed.")
    return trial_sets, aggregates


if __name__ == "__main__":
    run()
