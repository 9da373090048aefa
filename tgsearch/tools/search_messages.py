"""search_messages tool: the hosted entry point to the message search orchestrator."""

from typing import Any

from tgsearch.contracts.search_v1 import SearchQuery, SearchResponse
from tgsearch.core.logger import logger
from tgsearch.orchestrators.search import MessageSearchOrchestrator
from tgsearch.tools.base import Tool, ToolResult

DESCRIPTION = (
    "Search Telegram groups and channels the authenticated user belongs to. "
    "Automatically discovers and searches across the user's groups (up to 50 by "
    "default), or only the groups listed in sourceIds. Supports date filters "
    "and sorting by relevance or date. Each result includes group context "
    "(groupId, groupTitle, groupType) and a relevanceScore in [0, 1]. When some "
    "groups fail, results from the rest are returned with partial=true and "
    "failedGroups listing the failures."
)


class SearchMessagesTool(Tool):
    name = "search_messages"
    description = DESCRIPTION

    def __init__(self, orchestrator: MessageSearchOrchestrator):
        self._orchestrator = orchestrator

    @property
    def input_schema(self) -> dict[str, Any]:
        schema = SearchQuery.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return schema

    async def execute(self, **kwargs: Any) -> ToolResult:
        try:
            response = await self._orchestrator.search(kwargs)
        except Exception as e:
            logger.error("search_messages failed: %s", e, exc_info=True)
            response = SearchResponse.failure(str(e) or type(e).__name__)

        payload = response.to_json()
        if not response.success:
            return ToolResult.fail(payload, error=response.error or "")
        return ToolResult.ok(payload)
