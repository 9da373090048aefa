"""Per-source search outcome passed from single-source search to the aggregator."""

from dataclasses import dataclass, field

from tgsearch.contracts.search_v1 import MessageResult


@dataclass
class SourceSearchOutcome:
    """Success (results, total_found, has_more) or failure (error) for one source."""

    source_id: str
    success: bool
    results: list[MessageResult] = field(default_factory=list)
    total_found: int = 0
    has_more: bool = False
    error: str = ""
    execution_ms: float = 0.0

    @classmethod
    def ok(
        cls,
        source_id: str,
        results: list[MessageResult],
        total_found: int,
        has_more: bool,
        execution_ms: float,
    ) -> "SourceSearchOutcome":
        return cls(
            source_id=source_id,
            success=True,
            results=results,
            total_found=total_found,
            has_more=has_more,
            execution_ms=execution_ms,
        )

    @classmethod
    def fail(cls, source_id: str, error: str, execution_ms: float) -> "SourceSearchOutcome":
        return cls(
            source_id=source_id,
            success=False,
            error=error or "Search failed",
            execution_ms=execution_ms,
        )
