"""Observability: LangSmith tracing (optional, env-controlled)."""

from tgsearch.observability.langsmith import (
    flush,
    traceable,
)

__all__ = ["traceable", "flush"]
