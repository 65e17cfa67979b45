"""
Keyboard creation utilities for the Relay Bot.

This module provides factories for the settings menu and the forced-reply
prompts used while the admin edits a setting.
"""

from aiogram.utils.keyboard import InlineKeyboardBuilder
from aiogram.types import ForceReply, InlineKeyboardMarkup

# Button data of the settings menu and the prompt each one sends.
# The prompt texts double as markers: the admin's reply to a prompt is
# recognised by the text of the message being replied to.
SETTINGS_PROMPTS = {
    "change_welcome_words": "change welcome words:",
    "change_bot_info": "change bot info:",
    "change_thanks": "change thanks words:",
    "change_forward_to_chat_id": "change forward to chat id:",
}
SETTINGS_DONE = "change_done"

# Marker text -> Settings attribute it edits
PROMPT_FIELDS = {
    "change welcome words:": "welcome_words",
    "change bot info:": "bot_info",
    "change thanks words:": "thanks",
    "change forward to chat id:": "forward_to_chat_id",
}


class KeyboardFactory:
    """Factory class for creating keyboards."""

    @staticmethod
    def settings_menu() -> InlineKeyboardMarkup:
        """
        Create the settings menu keyboard.

        Returns:
            InlineKeyboardMarkup: One button per editable setting plus "done"
        """
        kb = InlineKeyboardBuilder()
        kb.button(text="change welcome words", callback_data="change_welcome_words")
        kb.button(text="change bot info", callback_data="change_bot_info")
        kb.button(text="change thanks words", callback_data="change_thanks")
        kb.button(text="change forward to chat id", callback_data="change_forward_to_chat_id")
        kb.button(text="done", callback_data=SETTINGS_DONE)
        kb.adjust(1)  # One button per row
        return kb.as_markup()

    @staticmethod
    def force_reply() -> ForceReply:
        return ForceReply(force_reply=True, selective=True)
