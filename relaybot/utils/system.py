"""
System utilities for the Relay Bot.

This module provides the process lock that keeps a second instance from
serving the same webhook and database.
"""

import os
import fcntl
import psutil
from loguru import logger
from typing import Optional

from relaybot.config import Config


class LockManager:
    """
    Manages a PID lock file so that only one bot process runs per deployment.
    """

    def __init__(self, lock_file: Optional[str] = None):
        """Initialize with optional custom lock file path."""
        self.lock_file = lock_file or Config.LOCK_FILE
        self.lock_fd = None
        self.pid = os.getpid()

    def _read_owner(self) -> Optional[int]:
        try:
            with open(self.lock_file, 'r') as f:
                return int(f.read().strip())
        except (ValueError, FileNotFoundError):
            return None

    async def acquire_lock(self) -> bool:
        """
        Acquire an exclusive lock on the lock file.

        Returns:
            bool: True if lock acquired, False if a live process holds it.
        """
        if os.path.exists(self.lock_file):
            owner = self._read_owner()
            if owner is not None and owner != self.pid and psutil.pid_exists(owner):
                logger.warning(f"Lock {self.lock_file} is held by running PID {owner}")
                return False
            logger.info(f"Removing stale lock file {self.lock_file} (PID {owner})")
            os.remove(self.lock_file)

        try:
            self.lock_fd = open(self.lock_file, 'w')
            fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            self.lock_fd.write(str(self.pid))
            self.lock_fd.flush()
        except OSError as e:
            logger.error(f"Failed to acquire lock: {e}")
            if self.lock_fd:
                self.lock_fd.close()
                self.lock_fd = None
            return False

        logger.debug(f"Acquired lock for PID {self.pid}")
        return True

    async def release_lock(self) -> bool:
        """
        Release the lock and remove the lock file.

        Returns:
            bool: True if successfully released, False on error.
        """
        try:
            if self.lock_fd:
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                self.lock_fd.close()
                self.lock_fd = None
                if os.path.exists(self.lock_file):
                    os.remove(self.lock_file)
        except OSError as e:
            logger.error(f"Failed to release lock: {e}")
            return False

        logger.debug(f"Released lock for PID {self.pid}")
        return True
