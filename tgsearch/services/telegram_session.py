"""Telegram session: an explicitly owned client connection with open/close."""

from telethon import TelegramClient
from telethon.sessions import StringSession

from tgsearch.core.config import Config, config
from tgsearch.core.logger import logger
from tgsearch.orchestrators.search.backends.telegram import TelethonPlatform


class NotAuthorizedError(RuntimeError):
    """The stored string session is missing or no longer authorized."""


class TelegramSession:
    """Owns one TelegramClient for the lifetime of the hosting process.

    Use as ``async with TelegramSession() as session:`` or call ``open()`` and
    ``close()`` explicitly.
    """

    def __init__(self, cfg: Config = config):
        self._config = cfg
        self._client: TelegramClient | None = None

    @property
    def client(self) -> TelegramClient:
        if self._client is None:
            raise RuntimeError("Telegram session is not open")
        return self._client

    @property
    def is_open(self) -> bool:
        return self._client is not None and self._client.is_connected()

    def platform(self) -> TelethonPlatform:
        return TelethonPlatform(self.client)

    async def open(self) -> TelegramClient:
        if self.is_open:
            return self.client

        client = TelegramClient(
            StringSession(self._config.telegram_session),
            self._config.telegram_api_id,
            self._config.telegram_api_hash,
            connection_retries=self._config.telegram_connection_retries,
        )
        await client.connect()
        if not await client.is_user_authorized():
            await client.disconnect()
            raise NotAuthorizedError(
                "Not authorized. Run the login first: python -m tgsearch.main auth"
            )
        self._client = client
        logger.info("Connected to Telegram")
        return client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.disconnect()
            self._client = None
            logger.info("Disconnected from Telegram")

    async def __aenter__(self) -> "TelegramSession":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
