"""Message search orchestrator: fan one query out across many conversations.

Pipeline:
  1. Validate options (no source is contacted on invalid input)
  2. Source set: explicit ids, or discovery
  3. One rate governor + circuit breaker per invocation
  4. Staggered dispatch of single-source searches
  5. Fault-tolerant join: every search settles, failures stay isolated
  6. Aggregate: full merge, partial merge, or all-failed error
"""

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from tgsearch.contracts.search_v1 import SearchQuery, SearchResponse
from tgsearch.core.config import Config, config
from tgsearch.core.logger import logger
from tgsearch.observability import traceable
from tgsearch.orchestrators.search.aggregator import ResultAggregator
from tgsearch.orchestrators.search.constants import (
    NO_SOURCES_ERROR,
    all_sources_failed_error,
)
from tgsearch.orchestrators.search.discovery import DiscoveryOptions, SourceDiscovery
from tgsearch.orchestrators.search.interface import MessagingPlatform
from tgsearch.orchestrators.search.models import SourceSearchOutcome
from tgsearch.orchestrators.search.rate_governor import CircuitBreaker, RateGovernor
from tgsearch.orchestrators.search.source_search import SingleSourceSearch


@dataclass(frozen=True)
class GovernorSettings:
    """Throttle and breaker tuning shared by every invocation."""

    global_rate: float = 30.0
    per_source_rate: float = 1.0
    breaker_failure_threshold: int = 5
    breaker_reset_seconds: float = 60.0

    @classmethod
    def from_config(cls, cfg: Config) -> "GovernorSettings":
        return cls(
            global_rate=cfg.global_rps,
            per_source_rate=cfg.per_source_rps,
            breaker_failure_threshold=cfg.breaker_failure_threshold,
            breaker_reset_seconds=cfg.breaker_reset_seconds,
        )


def format_validation_error(error: ValidationError) -> str:
    """One-line, caller-facing summary of option validation failures."""
    parts: list[str] = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid search parameters: " + "; ".join(parts)


class MessageSearchOrchestrator:
    """Multi-source message search over one explicitly owned platform connection."""

    def __init__(
        self,
        platform: MessagingPlatform,
        settings: GovernorSettings | None = None,
        discovery_page_size: int | None = None,
    ):
        self._platform = platform
        self._settings = settings or GovernorSettings.from_config(config)
        self._discovery = SourceDiscovery(
            platform, discovery_page_size or config.discovery_page_size
        )

    def _new_governor(self, concurrency_limit: int) -> RateGovernor:
        breaker = CircuitBreaker(
            failure_threshold=self._settings.breaker_failure_threshold,
            reset_timeout=self._settings.breaker_reset_seconds,
        )
        return RateGovernor(
            max_concurrency=concurrency_limit,
            global_rate=self._settings.global_rate,
            per_source_rate=self._settings.per_source_rate,
            breaker=breaker,
        )

    async def _resolve_sources(self, query: SearchQuery) -> tuple[list[str], bool]:
        if query.source_ids:
            return list(query.source_ids), False
        discovered = await self._discovery.discover(DiscoveryOptions.from_query(query))
        return [s.id for s in discovered], True

    async def _staggered(
        self,
        searcher: SingleSourceSearch,
        index: int,
        source_id: str,
        query: SearchQuery,
    ) -> SourceSearchOutcome:
        delay = index * query.inter_request_delay_ms / 1000
        if delay > 0:
            await asyncio.sleep(delay)
        return await searcher.search_one(source_id, query)

    @traceable(name="message_search", run_type="chain")
    async def search(self, params: SearchQuery | Mapping[str, Any]) -> SearchResponse:
        """Run one search. Always returns a response; never raises."""
        try:
            query = (
                params
                if isinstance(params, SearchQuery)
                else SearchQuery.model_validate(dict(params))
            )
        except ValidationError as e:
            message = format_validation_error(e)
            logger.warning(message)
            return SearchResponse.failure(message)

        t0 = time.monotonic()
        try:
            return await self._execute(query, t0)
        except Exception as e:
            logger.log_operation_error(
                "search_messages",
                e,
                {
                    "query": query.query,
                    "group_ids": query.source_ids,
                    "execution_ms": round((time.monotonic() - t0) * 1000, 1),
                },
            )
            return SearchResponse.failure(str(e).strip() or type(e).__name__)

    async def _execute(self, query: SearchQuery, t0: float) -> SearchResponse:
        source_ids, discovered = await self._resolve_sources(query)
        if not source_ids:
            logger.warning("Discovery returned no sources for %r", query.query)
            return SearchResponse.failure(NO_SOURCES_ERROR)

        logger.search_started(query.query, len(source_ids), discovered)

        governor = self._new_governor(query.concurrency_limit)
        searcher = SingleSourceSearch(self._platform, governor)

        settled = await asyncio.gather(
            *(
                self._staggered(searcher, i, sid, query)
                for i, sid in enumerate(source_ids)
            ),
            return_exceptions=True,
        )

        successes: list[SourceSearchOutcome] = []
        failures: list[SourceSearchOutcome] = []
        for source_id, result in zip(source_ids, settled):
            if isinstance(result, BaseException):
                outcome = SourceSearchOutcome.fail(
                    source_id, str(result) or type(result).__name__, 0.0
                )
            else:
                outcome = result
            (successes if outcome.success else failures).append(outcome)
            logger.source_result(
                outcome.source_id,
                outcome.success,
                len(outcome.results),
                outcome.execution_ms,
                error_reason=outcome.error or None,
            )

        if not successes:
            response = SearchResponse.failure(all_sources_failed_error(len(source_ids)))
        elif failures:
            response = ResultAggregator.merge_partial(
                successes, failures, query.limit, query.sort_by
            )
        else:
            response = ResultAggregator.merge(successes, query.limit, query.sort_by)

        logger.search_finished(
            query.query,
            len(response.results),
            response.total_found,
            len(failures),
            round((time.monotonic() - t0) * 1000, 1),
        )
        return response
