"""
Latency harness for the bundler benchmark.
Sequential prepare -> submit -> confirm trials with per-phase timing.
"""
import statistics
import time
import typing as t
from dataclasses import dataclass, field
from enum import Enum

from tqdm import tqdm

from .monitor import Inclusion


class ErrorKind(Enum):
    SUBMISSION = "submission"
    CONFIRMATION = "confirmation"


@dataclass
class TrialSuccess:
    index: int
    target: str
    user_op_hash: str
    submission_latency_ms: int
    total_latency_ms: int
    on_chain_time_ms: int
    tx_hash: str

    @property
    def on_chain_latency_ms(self) -> int:
        # Block clock vs local clock: may be negative, kept as measured
        return self.total_latency_ms - self.submission_latency_ms


@dataclass
class TrialFailure:
    index: int
    target: str
    kind: ErrorKind
    message: str


TrialResult = t.Union[TrialSuccess, TrialFailure]


@dataclass
class TrialSet:
    """
    Trials of one target in execution order.
    """
    target: str
    trials: t.List[TrialResult] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.trials)

    def __iter__(self) -> t.Iterator[TrialResult]:
        return iter(self.trials)

    def successes(self) -> t.List[TrialSuccess]:
        return [r for r in self.trials if isinstance(r, TrialSuccess)]

    def failures(self) -> t.List[TrialFailure]:
        return [r for r in self.trials if isinstance(r, TrialFailure)]


@dataclass
class AggregateResult:
    target: str
    trial_count: int
    success_count: int
    avg_submission_latency_ms: float
    avg_on_chain_latency_ms: float
    avg_total_latency_ms: float


@dataclass
class TrialOperation:
    """
    The collaborators one trial is made of.

    prepare: optional untimed setup, its return value is passed to submit.
    submit: sends the operation and returns its handle (user op hash).
    wait_for_inclusion: blocks until the handle is included on-chain.
    """
    submit: t.Callable[[t.Any], str]
    wait_for_inclusion: t.Callable[[str], Inclusion]
    prepare: t.Optional[t.Callable[[], t.Any]] = None


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class LatencyHarness:
    """
    Runs N sequential trials per target and records typed results.

    Usage:
        harness = LatencyHarness(iterations=100)
        trial_sets = harness.run_targets({"pimlico": operation})
        aggregates = aggregate_all(trial_sets.values())
    """

    def __init__(
        self,
        iterations: int,
        clock: t.Optional[t.Callable[[], int]] = None,
        progress: bool = True,
    ) -> None:
        """
        Args:
            iterations: Trials per target.
            clock: Wall clock in integer milliseconds.
            progress: Show a tqdm progress bar per target.
        """
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        self.iterations = iterations
        self.clock = clock or wall_clock_ms
        self.progress = progress

    def run_trial(self, index: int, target: str, operation: TrialOperation) -> TrialResult:
        """
        Execute one trial. Never raises for collaborator failures.
        """
        number = index + 1
        tqdm.write(f"[Harness] Submitting UserOp #{number}")

        try:
            payload = operation.prepare() if operation.prepare is not None else None
            start = self.clock()
            submission_start = self.clock()
            user_op_hash = operation.submit(payload)
            submission_end = self.clock()
        except Exception as e:
            tqdm.write(f"[Harness] Error submitting UserOp #{number}: {e}")
            return TrialFailure(index, target, ErrorKind.SUBMISSION, str(e))

        submission_latency = submission_end - submission_start
        tqdm.write(
            f"[Harness] UserOp submitted: {user_op_hash} "
            f"(Submission Latency: {submission_latency} ms)"
        )

        try:
            inclusion = operation.wait_for_inclusion(user_op_hash)
            on_chain_time = inclusion.block_timestamp_ms
            total_latency = on_chain_time - start
            result = TrialSuccess(
                index=index,
                target=target,
                user_op_hash=user_op_hash,
                submission_latency_ms=submission_latency,
                total_latency_ms=total_latency,
                on_chain_time_ms=on_chain_time,
                tx_hash=inclusion.tx_hash,
            )
        except Exception as e:
            tqdm.write(f"[Harness] Error confirming UserOp #{number}: {e}")
            return TrialFailure(index, target, ErrorKind.CONFIRMATION, str(e))

        tqdm.write(
            f"[Harness] UserOp included on-chain. Total Latency: {total_latency} ms "
            f"(Submission: {submission_latency} ms, Inclusion: {result.on_chain_latency_ms} ms, "
            f"Tx Hash: {inclusion.tx_hash})"
        )
        return result

    def run(self, target: str, operation: TrialOperation) -> TrialSet:
        """
        Run all trials for one target, strictly one after another.
        """
        print(f"\n[Harness] Testing bundler: {target}")
        trial_set = TrialSet(target)
        for index in tqdm(
            range(self.iterations), desc=target, unit="op", disable=not self.progress
        ):
            trial_set.trials.append(self.run_trial(index, target, operation))
        return trial_set

    def run_targets(self, targets: t.Mapping[str, TrialOperation]) -> t.Dict[str, TrialSet]:
        """
        Run each target in mapping order; results keyed by target name.
        """
        return {name: self.run(name, operation) for name, operation in targets.items()}


def aggregate(trial_set: TrialSet) -> t.Optional[AggregateResult]:
    """
    Means over successful trials only; None when there are none.
    """
    successes = trial_set.successes()
    if not successes:
        return None
    return AggregateResult(
        target=trial_set.target,
        trial_count=len(trial_set),
        success_count=len(successes),
        avg_submission_latency_ms=statistics.mean(
            float(r.submission_latency_ms) for r in successes
        ),
        avg_on_chain_latency_ms=statistics.mean(
            float(r.on_chain_latency_ms) for r in successes
        ),
        avg_total_latency_ms=statistics.mean(float(r.total_latency_ms) for r in successes),
    )


def aggregate_all(trial_sets: t.Iterable[TrialSet]) -> t.Dict[str, AggregateResult]:
    """
    Aggregate every target independently, skipping targets without successes.
    """
    results: t.Dict[str, AggregateResult] = {}
    for trial_set in trial_sets:
        result = aggregate(trial_set)
        if result is not None:
            results[trial_set.target] = result
    return results
