"""
Command routing for the Relay Bot.

Maps command names to handler coroutines. The table is filled once while the
bot is being built and is only read afterwards.
"""

from typing import Awaitable, Callable, Dict, List
from aiogram import types

from relaybot.utils.messaging import command_name

CommandHandler = Callable[..., Awaitable[None]]


class RouterError(Exception):
    """Base class for command routing errors."""


class DuplicateCommandError(RouterError):
    """Raised when a command name is registered twice."""


class UnknownCommandError(RouterError):
    def __init__(self, command: str):
        super().__init__(f"no handler for command /{command}")
        self.command = command


class CommandError(RouterError):
    def __init__(self, command: str, error: Exception):
        super().__init__(f"error occurred when running cmd: {command}: error is: {error}")
        self.command = command


class CommandRouter:
    """Registry of bot commands."""

    def __init__(self):
        self._handlers: Dict[str, CommandHandler] = {}

    def register(self, name: str, handler: CommandHandler) -> None:
        if name in self._handlers:
            raise DuplicateCommandError(f"handler for command /{name} already exists")
        self._handlers[name] = handler

    def commands(self) -> List[str]:
        return list(self._handlers)

    async def dispatch(self, context, message: types.Message) -> None:
        """
        Run the handler registered for the command in ``message``.

        Raises:
            UnknownCommandError: no handler is registered for the command
            CommandError: the handler failed
        """
        command = command_name(message)
        handler = self._handlers.get(command)
        if handler is None:
            raise UnknownCommandError(command)

        try:
            await handler(context, message)
        except Exception as e:
            raise CommandError(command, e) from e
