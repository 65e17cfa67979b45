"""
Update dispatching for the Relay Bot.

Updates received by the webhook are queued and drained by a fixed pool of
worker tasks. Each worker takes one update at a time and routes it to the
callback handler, the command router or the message handler.
"""

import asyncio
from typing import List
from loguru import logger
from aiogram import types

from relaybot.utils.messaging import is_command, is_membership_change


class UpdateDispatcher:
    """Queue of inbound updates consumed by a pool of workers."""

    def __init__(self, relay_bot, worker_count: int = 2):
        self.relay_bot = relay_bot
        self.worker_count = worker_count
        self.queue: asyncio.Queue = asyncio.Queue()
        self.workers: List[asyncio.Task] = []

    def enqueue(self, update: types.Update) -> None:
        self.queue.put_nowait(update)

    def start(self) -> None:
        """Spawn the worker tasks."""
        if self.workers:
            return
        for n in range(self.worker_count):
            self.workers.append(asyncio.create_task(self._worker(n), name=f"update-worker-{n}"))
        logger.info(f"Started {self.worker_count} update workers")

    async def stop(self) -> None:
        """Cancel the worker tasks."""
        for task in self.workers:
            task.cancel()
        await asyncio.gather(*self.workers, return_exceptions=True)
        self.workers.clear()
        logger.info("Stopped update workers")

    async def _worker(self, n: int) -> None:
        while True:
            update = await self.queue.get()
            try:
                await self.process(update)
            finally:
                self.queue.task_done()

    @staticmethod
    def should_skip(update: types.Update) -> bool:
        """True for updates the bot never acts on."""
        message = update.message
        if message is not None:
            if message.from_user is None or message.from_user.is_bot:
                return True
            if is_membership_change(message):
                return True

        callback = update.callback_query
        if callback is not None and callback.from_user.is_bot:
            return True

        return message is None and callback is None

    async def process(self, update: types.Update) -> None:
        """Route a single update. Errors are logged and the update is dropped."""
        if self.should_skip(update):
            return

        try:
            if update.callback_query is not None:
                await self.relay_bot.handle_callback(update.callback_query)
            elif is_command(update.message):
                await self.relay_bot.router.dispatch(self.relay_bot, update.message)
            else:
                await self.relay_bot.message_handler.handle(update.message)
        except Exception as e:
            logger.error(f"Failed to process update {update.update_id}: {e}")
