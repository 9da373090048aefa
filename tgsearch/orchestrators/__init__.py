"""Orchestrators: multi-step search pipelines."""

from tgsearch.contracts.search_v1 import MessageResult
from tgsearch.orchestrators.search import (
    MessageSearchOrchestrator,
    MessagingPlatform,
    SearchResponse,
)

__all__ = [
    "MessageResult",
    "MessageSearchOrchestrator",
    "MessagingPlatform",
    "SearchResponse",
]
