"""
Database management for the Relay Bot.

This module provides the persistence layer: the singleton settings record
and the ledger of relayed messages, on top of a small pool of reusable
aiosqlite connections.
"""

import os
import asyncio
import aiosqlite
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from loguru import logger

from relaybot.config import Config
from relaybot.db.models import (
    DB_SCHEMA,
    ForwardedMessage,
    MessageStatus,
    Settings,
)

# Forwarded records older than this are purged by the housekeeping sweep
FORWARD_RETENTION = timedelta(days=3)


class SettingsNotFoundError(LookupError):
    """Raised when the settings record has not been created yet."""


class MessageNotFoundError(LookupError):
    """Raised when no ledger record matches a relayed message id."""


class DatabaseManager:
    """Manages database operations with connection pooling."""

    def __init__(self, db_path=None, pool_size=None):
        """Initialize the database manager."""
        self.db_path = db_path or Config.DB_PATH
        self.pool_size = pool_size or Config.DB_POOLSIZE
        self.connection_pool = []
        self.pool_lock = asyncio.Lock()

        # Ensure the directory exists
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    async def init(self):
        """Create the schema if it does not exist yet."""
        conn = await self._get_connection()
        try:
            for table_sql in DB_SCHEMA:
                await conn.execute(table_sql)
        finally:
            await self._release_connection(conn)

        logger.info(f"Initialized database at {self.db_path} with pool size {self.pool_size}")

    async def _create_connection(self):
        """Create a new database connection."""
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        conn.row_factory = aiosqlite.Row
        return conn

    async def _get_connection(self):
        """Get a connection from the pool or create a new one if needed."""
        async with self.pool_lock:
            if self.connection_pool:
                return self.connection_pool.pop()
        return await self._create_connection()

    async def _release_connection(self, conn):
        """Return a connection to the pool."""
        async with self.pool_lock:
            if len(self.connection_pool) < self.pool_size:
                self.connection_pool.append(conn)
                return
        await conn.close()

    async def _execute(self, query, params=None, fetch_one=False, fetch_all=False):
        """Execute a query; write statements return the cursor's (lastrowid, rowcount)."""
        conn = await self._get_connection()
        try:
            cursor = await conn.execute(query, params or ())
            try:
                if fetch_one:
                    return await cursor.fetchone()
                if fetch_all:
                    return await cursor.fetchall()
                return cursor.lastrowid, cursor.rowcount
            finally:
                await cursor.close()
        except Exception as e:
            logger.error(f"Database error: {e} in query: {query} with params {params}")
            raise
        finally:
            await self._release_connection(conn)

    # Settings

    async def get_settings(self) -> Settings:
        """Load the settings record."""
        row = await self._execute(
            "SELECT welcome_words, thanks, forward_to_chat_id, bot_info FROM settings WHERE id = 1",
            fetch_one=True,
        )
        if row is None:
            raise SettingsNotFoundError("settings not found")
        return Settings(
            welcome_words=row["welcome_words"],
            thanks=row["thanks"],
            forward_to_chat_id=row["forward_to_chat_id"],
            bot_info=row["bot_info"],
        )

    async def save_settings(self, settings: Settings) -> List[str]:
        """
        Persist the settings record.

        The record is created on the first save. Afterwards only the columns
        whose values changed are written.

        Returns:
            List[str]: names of the fields that were written
        """
        try:
            current = await self.get_settings()
        except SettingsNotFoundError:
            await self._execute(
                "INSERT INTO settings (id, welcome_words, thanks, forward_to_chat_id, bot_info) "
                "VALUES (1, ?, ?, ?, ?)",
                (settings.welcome_words, settings.thanks, settings.forward_to_chat_id, settings.bot_info),
            )
            logger.info("Created settings record")
            return ["bot_info", "welcome_words", "thanks", "forward_to_chat_id"]

        changes = settings.diff(current)
        if not changes:
            return []

        # Column names come from SETTINGS_FIELDS, never from user input
        assignments = ", ".join(f"{name} = ?" for name in changes)
        await self._execute(
            f"UPDATE settings SET {assignments} WHERE id = 1",
            tuple(changes.values()),
        )
        logger.info(f"Updated settings fields: {', '.join(changes)}")
        return list(changes)

    # Message ledger

    async def create_message(self, message: ForwardedMessage) -> int:
        """Insert a new ledger record and return its id."""
        record_id, _ = await self._execute(
            """
            INSERT INTO messages
            (username, user_id, chat_id, message_id, time, timestamp, status, forward_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message.username,
                message.user_id,
                message.chat_id,
                message.message_id,
                message.time.isoformat(),
                message.timestamp,
                message.status.value,
                message.forward_id,
            ),
        )
        message.id = record_id
        return record_id

    async def get_message(self, forward_id: int) -> ForwardedMessage:
        """Find the ledger record of the message relayed as ``forward_id``."""
        # Unread records all carry forward_id 0
        if not forward_id:
            raise MessageNotFoundError("no message relayed as 0")

        row = await self._execute(
            "SELECT * FROM messages WHERE forward_id = ? LIMIT 1",
            (forward_id,),
            fetch_one=True,
        )
        if row is None:
            raise MessageNotFoundError(f"no message relayed as {forward_id}")
        return ForwardedMessage.from_row(row)

    async def update_message_status(self, record_id: int, message: ForwardedMessage):
        """Write the status and relay id of a ledger record."""
        if message.status == MessageStatus.FORWARDED and not message.forward_id:
            raise ValueError("forwarded message requires a non-zero forward id")

        await self._execute(
            "UPDATE messages SET forward_id = ?, status = ? WHERE id = ?",
            (message.forward_id, message.status.value, record_id),
        )

    async def list_messages(self, status: Optional[MessageStatus] = None) -> List[ForwardedMessage]:
        """Return ledger records, optionally filtered by status."""
        if status is None:
            rows = await self._execute("SELECT * FROM messages ORDER BY id", fetch_all=True)
        else:
            rows = await self._execute(
                "SELECT * FROM messages WHERE status = ? ORDER BY id",
                (status.value,),
                fetch_all=True,
            )
        return [ForwardedMessage.from_row(row) for row in (rows or [])]

    async def delete_old_forward_messages(self, now: Optional[datetime] = None) -> int:
        """
        Purge forwarded records older than the retention window.

        Unread records are never purged, whatever their age.

        Returns:
            int: number of deleted records
        """
        now = now or datetime.now(timezone.utc)
        threshold = int((now - FORWARD_RETENTION).timestamp())

        _, deleted = await self._execute(
            "DELETE FROM messages WHERE status = ? AND timestamp < ?",
            (MessageStatus.FORWARDED.value, threshold),
        )
        if deleted:
            logger.info(f"Deleted {deleted} forwarded messages older than {FORWARD_RETENTION.days} days")
        return deleted

    async def close(self):
        """Close all database connections."""
        async with self.pool_lock:
            for conn in self.connection_pool:
                await conn.close()
            self.connection_pool.clear()
