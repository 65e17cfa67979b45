from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

from aiogram import types

from relaybot.bot import RelayBot
from relaybot.db.manager import DatabaseManager

ADMIN_ID = 42
STAFF_CHAT_ID = -1001234
BOT_USER_ID = 999


class FakeBot:
    """Records every call the handlers make to the Telegram client."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.fail: set[str] = set()
        self.next_message_id = 5000
        self.webhook_url = ''
        self.session = SimpleNamespace(close=AsyncMock())

    def _record(self, method: str, **kwargs) -> SimpleNamespace:
        if method in self.fail:
            raise RuntimeError(f'{method} failed')
        self.calls.append((method, kwargs))
        self.next_message_id += 1
        return SimpleNamespace(message_id=self.next_message_id)

    def sent(self, method: str) -> list[dict]:
        return [kwargs for name, kwargs in self.calls if name == method]

    async def send_message(self, chat_id, text, **kwargs):
        return self._record('send_message', chat_id=chat_id, text=text, **kwargs)

    async def forward_message(self, chat_id, from_chat_id, message_id, **kwargs):
        return self._record('forward_message', chat_id=chat_id, from_chat_id=from_chat_id, message_id=message_id)

    async def copy_message(self, chat_id, from_chat_id, message_id, **kwargs):
        return self._record('copy_message', chat_id=chat_id, from_chat_id=from_chat_id, message_id=message_id)

    async def delete_message(self, chat_id, message_id, **kwargs):
        self._record('delete_message', chat_id=chat_id, message_id=message_id)
        return True

    async def answer_callback_query(self, callback_query_id, text=None, **kwargs):
        self._record('answer_callback_query', callback_query_id=callback_query_id, text=text)
        return True

    async def set_my_commands(self, commands, **kwargs):
        self._record('set_my_commands', commands=commands)
        return True

    async def get_me(self):
        if 'get_me' in self.fail:
            raise RuntimeError('Unauthorized')
        return SimpleNamespace(id=BOT_USER_ID, username='relay_test_bot')

    async def get_webhook_info(self):
        return SimpleNamespace(url=self.webhook_url, last_error_date=None, last_error_message=None)

    async def set_webhook(self, url, **kwargs):
        self._record('set_webhook', url=url, **kwargs)
        self.webhook_url = url
        return True


def make_user(user_id: int, *, is_bot: bool = False, username: str | None = None) -> types.User:
    return types.User(id=user_id, is_bot=is_bot, first_name=f'user{user_id}', username=username)


def make_message(
    message_id: int,
    *,
    chat_id: int,
    user_id: int,
    text: str | None = None,
    chat_type: str = 'private',
    reply_to: types.Message | None = None,
    is_bot: bool = False,
    username: str | None = None,
    **extra,
) -> types.Message:
    entities = None
    if text and text.startswith('/'):
        command = text.split()[0]
        entities = [types.MessageEntity(type='bot_command', offset=0, length=len(command))]
    return types.Message(
        message_id=message_id,
        date=datetime.now(timezone.utc),
        chat=types.Chat(id=chat_id, type=chat_type),
        from_user=make_user(user_id, is_bot=is_bot, username=username),
        text=text,
        entities=entities,
        reply_to_message=reply_to,
        **extra,
    )


def make_prompt(text: str, *, message_id: int = 70) -> types.Message:
    """A forced-reply prompt as sent by the bot to the admin."""
    return make_message(message_id, chat_id=ADMIN_ID, user_id=BOT_USER_ID, text=text, is_bot=True)


def make_callback(data: str, *, user_id: int = ADMIN_ID, menu_id: int = 80) -> types.CallbackQuery:
    menu = make_message(menu_id, chat_id=user_id, user_id=BOT_USER_ID, text='change settings', is_bot=True)
    return types.CallbackQuery(
        id=f'cb-{data}',
        from_user=make_user(user_id),
        chat_instance='instance',
        data=data,
        message=menu,
    )


class RelayBotTestCase(unittest.IsolatedAsyncioTestCase):
    """A RelayBot on a fake Telegram client and a temporary database."""

    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db = DatabaseManager(db_path=str(Path(self._tmp.name) / 'relaybot.db'), pool_size=2)
        await self.db.init()
        self.fake_bot = FakeBot()
        self.relay = RelayBot(bot=self.fake_bot, db=self.db, admin_id=ADMIN_ID, worker_count=2)

    async def asyncTearDown(self) -> None:
        await self.db.close()
        self._tmp.cleanup()

    async def process(self, **update_fields) -> None:
        await self.relay.dispatcher.process(types.Update(update_id=1, **update_fields))
