"""
Callback query handlers for the Relay Bot.

This module implements the inline buttons of the settings menu. Each button
replaces the menu with a forced-reply prompt; the admin's answer to that
prompt is picked up by the message handler.
"""

from loguru import logger
from aiogram import types

from relaybot.utils.keyboards import KeyboardFactory, SETTINGS_DONE, SETTINGS_PROMPTS


async def _delete_menu(bot, callback: types.CallbackQuery) -> None:
    if callback.message is None:
        return
    try:
        await bot.delete_message(
            chat_id=callback.message.chat.id,
            message_id=callback.message.message_id,
        )
    except Exception as e:
        logger.error(f"Failed to delete settings menu: {e}")


async def settings_callback(callback: types.CallbackQuery, bot, owner_id: int) -> None:
    """Handle change_* callbacks of the settings menu."""
    if callback.from_user.id != owner_id:
        return

    data = (callback.data or "").lstrip("/")
    if not data.startswith("change_"):
        return

    if data == SETTINGS_DONE:
        await _delete_menu(bot, callback)
        await bot.answer_callback_query(callback.id, text="done")
        return

    prompt = SETTINGS_PROMPTS.get(data)
    if prompt is None:
        logger.warning(f"Unknown settings button: {data}")
        return

    await _delete_menu(bot, callback)
    try:
        await bot.send_message(
            chat_id=callback.from_user.id,
            text=prompt,
            reply_markup=KeyboardFactory.force_reply(),
        )
    except Exception as e:
        logger.error(f"Failed to send settings prompt: {e}")

    await bot.answer_callback_query(callback.id, text="update request received")
