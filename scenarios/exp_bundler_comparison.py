"""
Bundler comparison experiment.
Same smart account, same operation, measured against each bundler in turn.

Usage: `python run_bundler_comparison.py`
"""
import typing as t

from config_comparison import (
    COMPARISON_AVG_OUTPUT_FILE,
    COMPARISON_OUTPUT_FILE,
    COMPARISON_TARGETS,
    TRANSFER_VALUE_RANGE,
    BenchmarkConfig,
    SetupError,
)
from core.harness import AggregateResult, LatencyHarness, TrialOperation, TrialSet, aggregate_all
from core.identity import SmartAccount, create_smart_account
from core.injector import UserOperationInjector
from core.monitor import InclusionMonitor
from core.network import ConnectionManager
from core.report import save_results


def build_operation(
    network: ConnectionManager,
    account: SmartAccount,
    bundler_name: str,
    config: BenchmarkConfig,
) -> TrialOperation:
    """
    Preparation and signing stay outside the timed submission.
    """
    web3 = network.get_web3()
    bundler = network.get_bundler(bundler_name)
    injector = UserOperationInjector(
        web3,
        account,
        bundler,
        config.entry_point,
        config.max_priority_fee_gwei,
        TRANSFER_VALUE_RANGE,
    )
    monitor = InclusionMonitor(web3, bundler)
    return TrialOperation(
        prepare=injector.prepare,
        submit=injector.send,
        wait_for_inclusion=monitor.wait_for_inclusion,
    )


def run(
    config: t.Optional[BenchmarkConfig] = None,
) -> t.Tuple[t.Dict[str, TrialSet], t.Dict[str, AggregateResult]]:
    print("=== Bundler Latency Comparison ===")
    if config is None:
        config = BenchmarkConfig.from_env()
    config.validate()

    # 1. Connect & build account (failures here abort the run)
    print("\n1. Connecting...")
    network = ConnectionManager(config)
    network.check_rpc()
    account = create_smart_account(network.get_web3(), config.private_key, config.entry_point)

    targets = network.available_bundlers(COMPARISON_TARGETS)
    if not targets:
        raise SetupError("No bundler endpoints configured")
    for name in targets:
        network.check_bundler(name)
    operations = {
        name: build_operation(network, account, name, config) for name in targets
    }

    # 2. Trials, one bundler after another
    print(f"\n2. Running {config.iterations} UserOps against {', '.join(targets)}...")
    harness = LatencyHarness(config.iterations)
    trial_sets = harness.run_targets(operations)
    aggregates = aggregate_all(trial_sets.values())

    # 3. Report
    save_results(
        config.output_path(COMPARISON_OUTPUT_FILE),
        config.output_path(COMPARISON_AVG_OUTPUT_FILE),
        trial_sets,
        aggregates,
        include_target=True,
    )
    print("Benchmark completed.")
    return trial_sets, aggregates


if __name__ == "__main__":
    run()
