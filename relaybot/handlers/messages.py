"""
Message handling functionality for the Relay Bot.

This module decides what happens to a plain (non-command) message: an admin
answering a settings prompt, a private message to relay to the staff chat,
or a staff reply to route back to the original sender.
"""

from typing import Optional
from loguru import logger
from aiogram import Bot, types

from relaybot.db.manager import DatabaseManager, MessageNotFoundError
from relaybot.db.models import ForwardedMessage, Settings
from relaybot.utils.keyboards import KeyboardFactory, PROMPT_FIELDS
from relaybot.utils.messaging import (
    MessageProcessor,
    display_name,
    is_group,
    is_private,
)


class ForwardTargetCache:
    """Last known staff chat id; 0 means forwarding is disabled."""

    def __init__(self, chat_id: int = 0):
        self.chat_id = chat_id

    def update(self, chat_id: int) -> None:
        if chat_id != self.chat_id:
            logger.info(f"Forward target changed from {self.chat_id} to {chat_id}")
        self.chat_id = chat_id

    @property
    def enabled(self) -> bool:
        return self.chat_id != 0


class MessageHandler:
    """Handles relaying of user messages and staff replies."""

    def __init__(
        self,
        bot: Bot,
        db: DatabaseManager,
        message_processor: MessageProcessor,
        forward_target: ForwardTargetCache,
        admin_id: int,
    ):
        """Initialize the message handler with required dependencies."""
        self.bot = bot
        self.db = db
        self.message_processor = message_processor
        self.forward_target = forward_target
        self.admin_id = admin_id

    async def handle(self, message: types.Message) -> None:
        """Process a plain message."""
        if await self.handle_settings_reply(message):
            return

        if is_private(message):
            if self.forward_target.enabled:
                await self.forward(message)
        elif is_group(message) and message.reply_to_message is not None:
            await self.reply(message)

    def _settings_field(self, message: types.Message) -> Optional[str]:
        """Settings attribute the admin is answering a prompt for, if any."""
        if message.from_user is None or message.from_user.id != self.admin_id:
            return None
        # Prompts are only sent to the admin's private chat
        if not is_private(message):
            return None

        prompt = message.reply_to_message
        if prompt is None or prompt.from_user is None or not prompt.from_user.is_bot:
            return None

        return PROMPT_FIELDS.get(prompt.text or "")

    async def handle_settings_reply(self, message: types.Message) -> bool:
        """
        Apply the admin's answer to a settings prompt.

        Returns:
            bool: True if the message was a settings answer and is consumed
        """
        field = self._settings_field(message)
        if field is None:
            return False

        try:
            settings = await self.db.get_settings()
        except LookupError:
            settings = Settings()

        value = message.text or ""
        if field == "forward_to_chat_id":
            try:
                settings.forward_to_chat_id = int(value.strip())
            except ValueError as e:
                logger.error(f"Invalid forward chat id {value!r}: {e}")
        else:
            setattr(settings, field, value)

        try:
            await self.db.save_settings(settings)
        except Exception as e:
            logger.error(f"Failed to save settings: {e}")
            reply_text = f"update failed\n error:{e}\n{settings}"
        else:
            self.forward_target.update(settings.forward_to_chat_id)
            reply_text = f"update success\n{settings}"

        await self.message_processor.notify(
            message.chat.id,
            reply_text,
            reply_markup=KeyboardFactory.settings_menu(),
        )
        return True

    async def forward(self, message: types.Message) -> bool:
        """
        Relay a private user message to the staff chat.

        Returns:
            bool: True if the message reached the staff chat
        """
        record = ForwardedMessage(
            username=display_name(message.from_user),
            user_id=message.from_user.id,
            chat_id=message.chat.id,
            message_id=message.message_id,
            time=message.date,
        )
        try:
            record_id = await self.db.create_message(record)
        except Exception as e:
            logger.error(f"Failed to store message {message.message_id} from chat {message.chat.id}: {e}")
            await self.message_processor.notify(message.chat.id, "forward failed...try again?")
            return False

        try:
            settings = await self.db.get_settings()
        except Exception as e:
            logger.error(f"Failed to load settings before forwarding: {e}")
            return False

        self.forward_target.update(settings.forward_to_chat_id)
        if not self.forward_target.enabled:
            logger.warning(f"Forwarding disabled, message {record_id} stays unread")
            return False

        try:
            forward_id = await self.message_processor.relay(message, self.forward_target.chat_id)
        except Exception as e:
            logger.error(
                f"Failed to forward message {message.message_id} from chat {message.chat.id} "
                f"to {self.forward_target.chat_id}: {e}"
            )
            return False

        record.mark_forwarded(forward_id)
        try:
            await self.db.update_message_status(record_id, record)
        except Exception as e:
            logger.error(f"Failed to mark message {record_id} as forwarded: {e}")

        if settings.thanks:
            await self.message_processor.notify(
                message.chat.id,
                settings.thanks,
                reply_to=message.message_id,
            )
        return True

    async def reply(self, message: types.Message) -> bool:
        """
        Route a staff reply back to the sender of the relayed message.

        Returns:
            bool: True if the reply was delivered
        """
        relayed_id = message.reply_to_message.message_id
        try:
            origin = await self.db.get_message(relayed_id)
        except MessageNotFoundError:
            logger.info(f"No source message for relayed message {relayed_id} in chat {message.chat.id}")
            await self.message_processor.notify(message.chat.id, "can not find source message")
            return False
        except Exception as e:
            logger.error(f"Failed to look up relayed message {relayed_id}: {e}")
            await self.message_processor.notify(message.chat.id, "reply message failed")
            return False

        try:
            await self.message_processor.deliver_reply(message, origin.chat_id)
        except Exception as e:
            logger.error(f"Failed to deliver reply to chat {origin.chat_id}: {e}")
            await self.message_processor.notify(message.chat.id, "reply message failed")
            return False

        logger.info(f"Delivered reply from chat {message.chat.id} to {origin.username} ({origin.chat_id})")
        return True
