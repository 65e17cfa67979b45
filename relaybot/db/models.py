"""
Database schema and record models for the Relay Bot.

This module defines the SQL schemas for all tables used by the application
together with the dataclasses the rest of the bot works with.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

# Settings table holds a single row (id = 1) with the bot settings
SETTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS settings (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    welcome_words TEXT NOT NULL DEFAULT '',
    thanks TEXT NOT NULL DEFAULT '',
    forward_to_chat_id INTEGER NOT NULL DEFAULT 0,
    bot_info TEXT NOT NULL DEFAULT ''
)
"""

# Messages table is the ledger of user messages relayed to the staff chat
MESSAGES_TABLE = """
CREATE TABLE IF NOT EXISTS messages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT,
    user_id INTEGER,
    chat_id INTEGER NOT NULL,
    message_id INTEGER NOT NULL,
    time TEXT,
    timestamp INTEGER NOT NULL,
    status TEXT NOT NULL DEFAULT 'unread',
    forward_id INTEGER NOT NULL DEFAULT 0
)
"""

MESSAGES_FORWARD_ID_INDEX = """
CREATE INDEX IF NOT EXISTS idx_messages_forward_id ON messages (forward_id)
"""

MESSAGES_SWEEP_INDEX = """
CREATE INDEX IF NOT EXISTS idx_messages_status_timestamp ON messages (status, timestamp)
"""

# Combine all table definitions into a single list for easy access
DB_SCHEMA = [
    SETTINGS_TABLE,
    MESSAGES_TABLE,
    MESSAGES_FORWARD_ID_INDEX,
    MESSAGES_SWEEP_INDEX,
]

# Settings attributes and the columns they are stored in
SETTINGS_FIELDS = ("bot_info", "welcome_words", "thanks", "forward_to_chat_id")


class MessageStatus(str, Enum):
    UNREAD = "unread"
    FORWARDED = "forwarded"


@dataclass
class Settings:
    """The bot settings edited by the admin."""

    welcome_words: str = ""
    thanks: str = ""
    forward_to_chat_id: int = 0
    bot_info: str = ""

    def __str__(self) -> str:
        return (
            f"bot info: {self.bot_info}\n"
            f"welcome words: {self.welcome_words}\n"
            f"thanks words: {self.thanks}\n"
            f"forward to: {self.forward_to_chat_id}"
        )

    def diff(self, other: "Settings") -> dict:
        """Return the fields of this object that differ from ``other``."""
        return {
            name: getattr(self, name)
            for name in SETTINGS_FIELDS
            if getattr(self, name) != getattr(other, name)
        }


@dataclass
class ForwardedMessage:
    """A user message relayed to the staff chat."""

    username: str
    user_id: int
    chat_id: int
    message_id: int
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: MessageStatus = MessageStatus.UNREAD
    forward_id: int = 0
    id: Optional[int] = None

    @property
    def timestamp(self) -> int:
        return int(self.time.timestamp())

    def mark_forwarded(self, forward_id: int) -> None:
        if not forward_id:
            raise ValueError("forwarded message requires a non-zero forward id")
        self.forward_id = forward_id
        self.status = MessageStatus.FORWARDED

    @classmethod
    def from_row(cls, row) -> "ForwardedMessage":
        return cls(
            id=row["id"],
            username=row["username"],
            user_id=row["user_id"],
            chat_id=row["chat_id"],
            message_id=row["message_id"],
            time=datetime.fromtimestamp(row["timestamp"], tz=timezone.utc),
            status=MessageStatus(row["status"]),
            forward_id=row["forward_id"],
        )
