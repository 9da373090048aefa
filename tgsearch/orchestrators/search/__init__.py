"""Message search: multi-source orchestration over one messaging platform."""

from tgsearch.contracts.search_v1 import MessageResult, SearchResponse
from tgsearch.orchestrators.search.interface import MessagingPlatform
from tgsearch.orchestrators.search.orchestrator import (
    GovernorSettings,
    MessageSearchOrchestrator,
)

__all__ = [
    "GovernorSettings",
    "MessageResult",
    "MessageSearchOrchestrator",
    "MessagingPlatform",
    "SearchResponse",
]
