"""Result aggregation: merge per-source outcomes into one sorted, limited response."""

import logging
from collections.abc import Sequence
from datetime import datetime

from tgsearch.contracts.search_v1 import (
    FailedGroup,
    MessageResult,
    SearchResponse,
    SortOrder,
)
from tgsearch.orchestrators.search.models import SourceSearchOutcome
from tgsearch.orchestrators.search.scoring import sort_by_relevance

logger = logging.getLogger(__name__)


def _timestamp(result: MessageResult) -> float:
    return datetime.fromisoformat(result.date).timestamp()


def sort_results(results: list[MessageResult], sort_by: SortOrder) -> list[MessageResult]:
    """Stable sort; equal keys keep source-arrival order."""
    if sort_by == SortOrder.DATE_DESC:
        return sorted(results, key=_timestamp, reverse=True)
    if sort_by == SortOrder.DATE_ASC:
        return sorted(results, key=_timestamp)
    return sort_by_relevance(results)


class ResultAggregator:
    """Combines successful source outcomes; builds the partial-failure envelope."""

    @staticmethod
    def merge(
        outcomes: Sequence[SourceSearchOutcome],
        limit: int,
        sort_by: SortOrder = SortOrder.RELEVANCE,
    ) -> SearchResponse:
        merged: list[MessageResult] = []
        total_found = 0
        has_more = False

        for outcome in outcomes:
            if not outcome.success:
                continue
            total_found += outcome.total_found
            has_more = has_more or outcome.has_more
            merged.extend(outcome.results)

        ordered = sort_results(merged, sort_by)
        limited = ordered[:limit]
        if len(ordered) > limit:
            has_more = True

        logger.info(
            "Aggregate: %s source(s) -> %s merged -> %s returned | sort=%s total=%s",
            sum(1 for o in outcomes if o.success),
            len(merged),
            len(limited),
            sort_by,
            total_found,
        )

        return SearchResponse(
            success=True,
            results=limited,
            total_found=total_found,
            has_more=has_more,
            sorted_by=sort_by,
        )

    @classmethod
    def merge_partial(
        cls,
        successes: Sequence[SourceSearchOutcome],
        failures: Sequence[SourceSearchOutcome],
        limit: int,
        sort_by: SortOrder = SortOrder.RELEVANCE,
    ) -> SearchResponse:
        combined = cls.merge(successes, limit, sort_by)
        return combined.model_copy(
            update={
                "partial": True,
                "failed_groups": [
                    FailedGroup(group_id=f.source_id, error=f.error or "Unknown error")
                    for f in failures
                ],
            }
        )
