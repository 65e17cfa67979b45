"""
Main bot class implementing the message relay functionality.

This module contains the RelayBot class that wires the Telegram client, the
database, the command router and the update dispatcher together, and
installs the webhook on startup.
"""

from loguru import logger
from aiogram import Bot, types

from relaybot.config import Config
from relaybot.db.manager import DatabaseManager, SettingsNotFoundError
from relaybot.dispatch import UpdateDispatcher
from relaybot.handlers.callbacks import settings_callback
from relaybot.handlers.commands import register_command_handlers
from relaybot.handlers.messages import ForwardTargetCache, MessageHandler
from relaybot.router import CommandRouter
from relaybot.utils.messaging import MessageProcessor

ALLOWED_UPDATES = ["message", "callback_query"]


class RelayBot:
    """Main bot class relaying user messages to the staff chat and back."""

    def __init__(self, bot=None, db=None, admin_id=None, worker_count=None):
        """Initialize the bot components and dependencies."""
        # Core components
        self.bot = bot or Bot(token=Config.BOT_TOKEN)
        self.db = db or DatabaseManager()
        self.admin_id = admin_id if admin_id is not None else Config.ADMIN_ID

        # Command registration happens once, before any update is processed
        self.router = CommandRouter()
        self.bot_commands = register_command_handlers(self.router)

        # Specialized handlers
        self.forward_target = ForwardTargetCache()
        self.message_processor = MessageProcessor(self.bot)
        self.message_handler = MessageHandler(
            bot=self.bot,
            db=self.db,
            message_processor=self.message_processor,
            forward_target=self.forward_target,
            admin_id=self.admin_id,
        )
        self.dispatcher = UpdateDispatcher(self, worker_count or Config.WORKER_COUNT)

    async def start(self):
        """Authorize, prepare storage, publish commands and start the workers."""
        logger.info("Initializing bot components")

        me = await self.bot.get_me()
        logger.info(f"Authorized as @{me.username} ({me.id})")

        await self.db.init()
        await self._load_forward_target()

        try:
            await self.bot.set_my_commands(self.bot_commands)
        except Exception as e:
            logger.error(f"Failed to publish bot commands: {e}")

        await self.ensure_webhook(Config.webhook_url())

        self.dispatcher.start()

    async def _load_forward_target(self):
        try:
            settings = await self.db.get_settings()
        except SettingsNotFoundError:
            logger.warning("need set settings")
            return
        self.forward_target.update(settings.forward_to_chat_id)

    async def ensure_webhook(self, url: str) -> bool:
        """
        Install the webhook unless one is already set.

        Returns:
            bool: True if a webhook is in place afterwards
        """
        try:
            info = await self.bot.get_webhook_info()
            if info.last_error_date:
                logger.info(f"Telegram callback failed: {info.last_error_message}")
            if info.url:
                return True

            await self.bot.set_webhook(
                url=url,
                max_connections=Config.WEBHOOK_MAX_CONNECTIONS,
                allowed_updates=ALLOWED_UPDATES,
            )
            logger.info("Set webhook success")
            return True
        except Exception as e:
            logger.error(f"SetWebhook failed: {e}")
            return False

    async def handle_callback(self, callback: types.CallbackQuery):
        await settings_callback(callback, self.bot, self.admin_id)

    async def close(self):
        """Stop the workers and release connections."""
        await self.dispatcher.stop()
        await self.db.close()
        await self.bot.session.close()
