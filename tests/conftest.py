"""Shared pytest fixtures for the bundler latency benchmark."""

import typing as t

import pytest

from core.harness import TrialOperation
from core.monitor import Inclusion


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ScriptedOperation:
    """
    Plays back one step per trial.

    Each step is (submit, confirm): `submit` is the submission time in ms or an
    exception to raise, `confirm` is the block timestamp offset from the
    acknowledgment in ms or an exception to raise.
    """

    def __init__(self, clock: FakeClock, steps: t.List[t.Tuple[t.Any, t.Any]]) -> None:
        self.clock = clock
        self.steps = list(steps)
        self.calls: t.List[str] = []
        self._current = -1

    def submit(self, payload: t.Any) -> str:
        self._current += 1
        submit, _ = self.steps[self._current]
        self.calls.append(f"submit{self._current}")
        if isinstance(submit, Exception):
            raise submit
        self.clock.advance(submit)
        return f"0xop{self._current}"

    def wait_for_inclusion(self, user_op_hash: str) -> Inclusion:
        _, confirm = self.steps[self._current]
        self.calls.append(f"wait{self._current}")
        if isinstance(confirm, Exception):
            raise confirm
        return Inclusion(
            user_op_hash=user_op_hash,
            tx_hash=f"0xtx{self._current}",
            block_number=100 + self._current,
            block_timestamp_ms=self.clock.now + confirm,
        )

    def as_operation(self) -> TrialOperation:
        return TrialOperation(submit=self.submit, wait_for_inclusion=self.wait_for_inclusion)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scripted(clock: FakeClock) -> t.Callable[[t.List[t.Tuple[t.Any, t.Any]]], ScriptedOperation]:
    def factory(steps: t.List[t.Tuple[t.Any, t.Any]]) -> ScriptedOperation:
        return ScriptedOperation(clock, steps)
    return factory
