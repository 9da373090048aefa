from __future__ import annotations

import asyncio

import pytest

from tgsearch.orchestrators.search.constants import BreakerState
from tgsearch.orchestrators.search.errors import BreakerOpenError
from tgsearch.orchestrators.search.rate_governor import CircuitBreaker, RateGovernor


class ManualClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class CountingOp:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.fail:
            raise RuntimeError("FLOOD_WAIT")
        return "ok"


async def _trip(breaker: CircuitBreaker, times: int) -> None:
    failing = CountingOp(fail=True)
    for _ in range(times):
        with pytest.raises(RuntimeError):
            await breaker.guard(failing)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def breaker(clock) -> CircuitBreaker:
    return CircuitBreaker(failure_threshold=3, reset_timeout=60, clock=clock)


@pytest.mark.asyncio
async def test_opens_after_threshold_consecutive_failures(breaker):
    await _trip(breaker, 2)
    assert breaker.state == BreakerState.CLOSED

    await _trip(breaker, 1)
    assert breaker.state == BreakerState.OPEN
    assert breaker.failures == 3


@pytest.mark.asyncio
async def test_open_breaker_fails_fast_without_calling(breaker, clock):
    await _trip(breaker, 3)
    op = CountingOp()
    clock.now += 10

    with pytest.raises(BreakerOpenError) as excinfo:
        await breaker.guard(op)

    assert op.calls == 0
    assert excinfo.value.retry_in == pytest.approx(50)
    assert "Circuit breaker is OPEN" in str(excinfo.value)
    # Fast failures do not count as remote failures.
    assert breaker.failures == 3


@pytest.mark.asyncio
async def test_success_resets_failure_count(breaker):
    await _trip(breaker, 2)
    assert await breaker.guard(CountingOp()) == "ok"
    assert breaker.failures == 0

    await _trip(breaker, 2)
    assert breaker.state == BreakerState.CLOSED


@pytest.mark.asyncio
async def test_half_open_trial_success_closes(breaker, clock):
    await _trip(breaker, 3)
    clock.now += 60

    assert await breaker.guard(CountingOp()) == "ok"
    assert breaker.state == BreakerState.CLOSED
    assert breaker.failures == 0


@pytest.mark.asyncio
async def test_half_open_trial_failure_reopens_and_restarts_cooldown(breaker, clock):
    await _trip(breaker, 3)
    clock.now += 61

    await _trip(breaker, 1)
    assert breaker.state == BreakerState.OPEN

    op = CountingOp()
    with pytest.raises(BreakerOpenError) as excinfo:
        await breaker.guard(op)
    assert op.calls == 0
    assert excinfo.value.retry_in == pytest.approx(60)


@pytest.mark.asyncio
async def test_half_open_admits_a_single_trial(breaker, clock):
    await _trip(breaker, 3)
    clock.now += 60
    gate = asyncio.Event()

    async def slow() -> str:
        await gate.wait()
        return "trial"

    trial = asyncio.create_task(breaker.guard(slow))
    await asyncio.sleep(0)
    assert breaker.state == BreakerState.HALF_OPEN

    second = CountingOp()
    with pytest.raises(BreakerOpenError):
        await breaker.guard(second)
    assert second.calls == 0

    gate.set()
    assert await trial == "trial"
    assert breaker.state == BreakerState.CLOSED


@pytest.mark.asyncio
async def test_success_admitted_before_trip_keeps_breaker_open(breaker):
    gate = asyncio.Event()

    async def slow() -> str:
        await gate.wait()
        return "late"

    in_flight = asyncio.create_task(breaker.guard(slow))
    await asyncio.sleep(0)
    await _trip(breaker, 3)
    assert breaker.state == BreakerState.OPEN

    gate.set()
    assert await in_flight == "late"
    assert breaker.state == BreakerState.OPEN

    op = CountingOp()
    with pytest.raises(BreakerOpenError):
        await breaker.guard(op)
    assert op.calls == 0


@pytest.mark.asyncio
async def test_failure_admitted_before_trip_leaves_trial_alone(breaker, clock):
    release_stale = asyncio.Event()
    release_trial = asyncio.Event()

    async def stale_failure() -> str:
        await release_stale.wait()
        raise RuntimeError("FLOOD_WAIT")

    async def trial_op() -> str:
        await release_trial.wait()
        return "trial"

    stale = asyncio.create_task(breaker.guard(stale_failure))
    await asyncio.sleep(0)
    await _trip(breaker, 3)
    clock.now += 60

    trial = asyncio.create_task(breaker.guard(trial_op))
    await asyncio.sleep(0)
    assert breaker.state == BreakerState.HALF_OPEN

    release_stale.set()
    with pytest.raises(RuntimeError):
        await stale
    assert breaker.state == BreakerState.HALF_OPEN

    second = CountingOp()
    with pytest.raises(BreakerOpenError):
        await breaker.guard(second)
    assert second.calls == 0

    release_trial.set()
    assert await trial == "trial"
    assert breaker.state == BreakerState.CLOSED
    assert breaker.failures == 0


@pytest.mark.asyncio
async def test_governor_guarded_execute_skips_throttle_when_open(clock):
    breaker = CircuitBreaker(failure_threshold=1, reset_timeout=60, clock=clock)
    governor = RateGovernor(global_rate=1000, per_source_rate=1000, breaker=breaker)

    with pytest.raises(RuntimeError):
        await governor.guarded_execute("a", CountingOp(fail=True))

    op = CountingOp()
    with pytest.raises(BreakerOpenError):
        await governor.guarded_execute("b", op)
    assert op.calls == 0
