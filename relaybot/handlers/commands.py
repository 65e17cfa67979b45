"""
Command handlers for the Relay Bot.

Every handler receives the RelayBot instance and the command message and
performs its own sends.
"""

from typing import List
from loguru import logger
from aiogram import types
from aiogram.types import BotCommand

from relaybot.db.manager import SettingsNotFoundError
from relaybot.db.models import Settings
from relaybot.router import CommandRouter
from relaybot.utils.keyboards import KeyboardFactory


async def cmd_start(relay_bot, message: types.Message) -> None:
    """Greet the user with the bot description and welcome words."""
    try:
        settings = await relay_bot.db.get_settings()
    except SettingsNotFoundError:
        await relay_bot.bot.send_message(
            chat_id=message.chat.id,
            text="please configure the bot with /settings first",
        )
        return

    for text in (settings.bot_info, settings.welcome_words):
        if text:
            await relay_bot.bot.send_message(chat_id=message.chat.id, text=text)


async def cmd_settings(relay_bot, message: types.Message) -> None:
    """Show the settings menu to the admin."""
    if message.from_user.id != relay_bot.admin_id:
        return

    try:
        settings = await relay_bot.db.get_settings()
    except SettingsNotFoundError:
        settings = Settings()

    await relay_bot.bot.send_message(
        chat_id=message.chat.id,
        text=f"change settings\n{settings}",
        reply_markup=KeyboardFactory.settings_menu(),
    )


async def cmd_getchatid(relay_bot, message: types.Message) -> None:
    """Tell the admin the id of the current chat."""
    if message.from_user.id != relay_bot.admin_id:
        return

    await relay_bot.bot.send_message(chat_id=message.chat.id, text=str(message.chat.id))


async def cmd_help(relay_bot, message: types.Message) -> None:
    try:
        description = (await relay_bot.db.get_settings()).bot_info
    except SettingsNotFoundError:
        description = ""

    lines = [description] if description else []
    lines.extend(f"/{command.command} {command.description}" for command in BOT_COMMANDS)
    await relay_bot.bot.send_message(chat_id=message.chat.id, text="\n".join(lines))


BOT_COMMANDS: List[BotCommand] = [
    BotCommand(command="start", description="start use bot"),
    BotCommand(command="settings", description="admin change settings"),
    BotCommand(command="getchatid", description="get chat id"),
    BotCommand(command="help", description="show help"),
]

COMMAND_HANDLERS = {
    "start": cmd_start,
    "settings": cmd_settings,
    "getchatid": cmd_getchatid,
    "help": cmd_help,
}


def register_command_handlers(router: CommandRouter) -> List[BotCommand]:
    """
    Register all command handlers with the router.

    Returns:
        List[BotCommand]: the command list to publish with set_my_commands
    """
    for command in BOT_COMMANDS:
        router.register(command.command, COMMAND_HANDLERS[command.command])

    logger.info(f"Registered commands: {', '.join(router.commands())}")
    return BOT_COMMANDS
