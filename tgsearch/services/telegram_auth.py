"""Interactive Telegram login. Run: python -m tgsearch.main auth"""

import asyncio

from telethon import TelegramClient
from telethon.sessions import StringSession

from tgsearch.core.config import config


async def _login() -> str:
    client = TelegramClient(
        StringSession(config.telegram_session),
        config.telegram_api_id,
        config.telegram_api_hash,
        connection_retries=config.telegram_connection_retries,
    )
    # Prompts for the login code (and 2FA password) on the terminal.
    await client.start(phone=config.telegram_phone)
    try:
        me = await client.get_me()
        name = " ".join(p for p in (me.first_name, me.last_name) if p) or me.username
        print(f"Logged in as {name}")
        return client.session.save()
    finally:
        await client.disconnect()


def run_telegram_auth() -> int:
    errors = config.validate()
    if errors:
        for err in errors:
            print(err)
        print("Add them to .env (API id/hash from https://my.telegram.org > API development tools).")
        return 1

    try:
        session = asyncio.run(_login())
    except Exception as e:
        print(f"Login failed: {e}")
        return 1

    print("\nAdd this line to your .env:")
    print(f"TELEGRAM_SESSION={session}")
    print("You can now start the server: python -m tgsearch.main serve")
    return 0
