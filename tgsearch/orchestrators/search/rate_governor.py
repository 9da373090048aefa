"""Rate governor: global and per-source token buckets, a concurrency gate, and a circuit breaker.

Every remote call acquires one global token, then one token from its source's
bucket, then a slot in the concurrency gate. Waits suspend the caller; calls
are never dropped. The breaker wraps calls and fails fast while open.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tgsearch.orchestrators.search.constants import BreakerState
from tgsearch.orchestrators.search.errors import BreakerOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class TokenBucket:
    """Continuously refilling token bucket. Waiters are served in FIFO order."""

    def __init__(
        self,
        rate: float,
        capacity: float | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        self._rate = rate
        self._capacity = capacity if capacity is not None else max(rate, 1.0)
        self._tokens = self._capacity
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()
        # Held while waiting so later callers queue behind the current one.
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._updated = now

    async def acquire(self) -> None:
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return
                await self._sleep((1 - self._tokens) / self._rate)


@dataclass(frozen=True)
class _Admission:
    generation: int
    trial: bool


class CircuitBreaker:
    """Closed -> open after `failure_threshold` consecutive failures.

    Open -> half-open once `reset_timeout` seconds have elapsed; the half-open
    state admits a single trial call. Success closes the breaker, failure
    reopens it and restarts the cool-down.

    Every transition starts a new generation. An outcome only counts against
    the generation it was admitted in, so calls that were already in flight
    when the breaker tripped cannot close or reopen it.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._failure_threshold = max(1, failure_threshold)
        self._reset_timeout = reset_timeout
        self._clock = clock
        self._state = BreakerState.CLOSED
        self._generation = 0
        self._failures = 0
        self._next_attempt = 0.0
        self._trial_in_flight = False
        self._lock = asyncio.Lock()

    @property
    def state(self) -> BreakerState:
        return self._state

    @property
    def failures(self) -> int:
        return self._failures

    def _transition(self, state: BreakerState) -> None:
        self._state = state
        self._generation += 1
        self._trial_in_flight = False

    async def _admit(self) -> _Admission:
        async with self._lock:
            if self._state == BreakerState.CLOSED:
                return _Admission(self._generation, trial=False)
            now = self._clock()
            if self._state == BreakerState.OPEN:
                if now < self._next_attempt:
                    raise BreakerOpenError(self._next_attempt - now)
                self._transition(BreakerState.HALF_OPEN)
            if self._trial_in_flight:
                raise BreakerOpenError(0.0)
            self._trial_in_flight = True
            return _Admission(self._generation, trial=True)

    async def _on_success(self, admission: _Admission) -> None:
        async with self._lock:
            if admission.generation != self._generation:
                return
            if admission.trial:
                logger.info("Circuit breaker closed after successful trial")
                self._transition(BreakerState.CLOSED)
            self._failures = 0

    async def _on_failure(self, admission: _Admission) -> None:
        async with self._lock:
            if admission.generation != self._generation:
                return
            self._failures += 1
            if admission.trial or self._failures >= self._failure_threshold:
                self._transition(BreakerState.OPEN)
                self._next_attempt = self._clock() + self._reset_timeout
                logger.error(
                    "Circuit breaker opened for Telegram API: failures=%s threshold=%s reset_in=%.0fs",
                    self._failures,
                    self._failure_threshold,
                    self._reset_timeout,
                )

    async def guard(self, operation: Callable[[], Awaitable[T]]) -> T:
        admission = await self._admit()
        try:
            result = await operation()
        except Exception:
            await self._on_failure(admission)
            raise
        await self._on_success(admission)
        return result


class RateGovernor:
    """Throttles and bounds remote calls for one search invocation."""

    def __init__(
        self,
        max_concurrency: int = 20,
        global_rate: float = 30.0,
        per_source_rate: float = 1.0,
        breaker: CircuitBreaker | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._per_source_rate = per_source_rate
        self._global = TokenBucket(global_rate, clock=clock, sleep=sleep)
        self._source_buckets: dict[str, TokenBucket] = {}
        self._gate = asyncio.Semaphore(max(1, max_concurrency))
        self.breaker = breaker or CircuitBreaker(clock=clock)

    def _source_bucket(self, source_key: str) -> TokenBucket:
        bucket = self._source_buckets.get(source_key)
        if bucket is None:
            bucket = TokenBucket(
                self._per_source_rate, clock=self._clock, sleep=self._sleep
            )
            self._source_buckets[source_key] = bucket
        return bucket

    async def execute(
        self, source_key: str, operation: Callable[[], Awaitable[T]]
    ) -> T:
        await self._global.acquire()
        await self._source_bucket(source_key).acquire()
        async with self._gate:
            return await operation()

    async def guard(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await self.breaker.guard(operation)

    async def guarded_execute(
        self, source_key: str, operation: Callable[[], Awaitable[T]]
    ) -> T:
        """Breaker-protected and throttled: guard(execute(source, operation))."""
        return await self.guard(lambda: self.execute(source_key, operation))
