from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from tgsearch.core.config import config
from tgsearch.orchestrators.search import MessageSearchOrchestrator
from tgsearch.services.telegram_session import TelegramSession


@pytest_asyncio.fixture
async def orchestrator() -> AsyncIterator[MessageSearchOrchestrator]:
    """Live orchestrator over the configured Telegram account."""
    if config.validate() or not config.telegram_session:
        pytest.skip("Telegram credentials and TELEGRAM_SESSION are required")
    async with TelegramSession() as session:
        yield MessageSearchOrchestrator(session.platform())
