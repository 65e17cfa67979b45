"""
Messaging utilities for the Relay Bot.

This module provides message inspection helpers and the delivery side of
the relay: forwarding user messages to the staff chat and sending staff
replies back to users.
"""

from typing import Optional
from loguru import logger
from aiogram import Bot
from aiogram import types
from aiogram.types import ReplyParameters

GROUP_CHAT_TYPES = ("group", "supergroup")


def is_command(message: types.Message) -> bool:
    """True when the message starts with a bot command entity."""
    if not message.text or not message.entities:
        return False
    entity = message.entities[0]
    return entity.type == "bot_command" and entity.offset == 0


def command_name(message: types.Message) -> str:
    """Return the command of ``message`` without the slash and bot mention."""
    if not is_command(message):
        return ""
    entity = message.entities[0]
    command = message.text[1:entity.length]
    return command.split("@", 1)[0]


def is_private(message: types.Message) -> bool:
    return message.chat.type == "private"


def is_group(message: types.Message) -> bool:
    return message.chat.type in GROUP_CHAT_TYPES


def is_membership_change(message: types.Message) -> bool:
    return bool(message.new_chat_members) or message.left_chat_member is not None


def display_name(user: types.User) -> str:
    """Username of a sender, falling back to first name and then to the id."""
    if user.username:
        return user.username
    if user.first_name:
        return user.first_name
    return f"@{user.id}"


class MessageProcessor:
    """Handles message delivery between users and the staff chat."""

    def __init__(self, bot: Bot):
        """Initialize with required dependencies."""
        self.bot = bot

    async def relay(self, message: types.Message, chat_id: int) -> int:
        """
        Forward a user message to the staff chat.

        Args:
            message: The user's message
            chat_id: The staff chat to forward to

        Returns:
            int: The message id of the forwarded copy
        """
        sent = await self.bot.forward_message(
            chat_id=chat_id,
            from_chat_id=message.chat.id,
            message_id=message.message_id,
        )
        logger.info(f"Relayed message {message.message_id} from chat {message.chat.id} to {chat_id} as {sent.message_id}")
        return sent.message_id

    async def deliver_reply(self, message: types.Message, chat_id: int) -> None:
        """Send a staff reply to the user's chat."""
        text = message.text or message.caption
        if text:
            await self.bot.send_message(chat_id=chat_id, text=text)
        else:
            # Stickers, voice notes and other media without a caption
            await self.bot.copy_message(
                chat_id=chat_id,
                from_chat_id=message.chat.id,
                message_id=message.message_id,
            )

    async def notify(self, chat_id: int, text: str, reply_to: Optional[int] = None, **kwargs) -> bool:
        """
        Send a short notice, logging instead of raising on failure.

        Returns:
            bool: True if the notice was sent
        """
        if reply_to is not None:
            kwargs["reply_parameters"] = ReplyParameters(message_id=reply_to)
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, **kwargs)
            return True
        except Exception as e:
            logger.error(f"Failed to send notice to {chat_id}: {e}")
            return False
