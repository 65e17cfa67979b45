"""
Configuration management for the Relay Bot.

This module provides a centralized configuration management system
that loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv
from dataclasses import dataclass

# Load environment variables from .env file if it exists
load_dotenv()


@dataclass
class Config:
    """Configuration settings for the application"""

    # Bot configuration
    BOT_TOKEN = os.getenv("BOT_TOKEN")
    ADMIN_ID = int(os.getenv("BOT_ADMIN", "0") or "0")
    DOMAIN = os.getenv("DOMAIN", "")

    # HTTP server
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8080"))
    WEBHOOK_MAX_CONNECTIONS = int(os.getenv("WEBHOOK_MAX_CONNECTIONS", "20"))

    # Database configuration
    BASE_DIR = Path(os.getenv("BASE_DIR", os.getcwd()))
    DATA_DIR = os.getenv("DATA_DIR", os.path.join(BASE_DIR, "data"))
    DB_PATH = os.getenv("DB_PATH", os.path.join(DATA_DIR, "relaybot.db"))
    DB_POOLSIZE = int(os.getenv("DB_POOLSIZE", "5"))

    # Update processing
    WORKER_COUNT = int(os.getenv("WORKER_COUNT", "2"))

    # Logging configuration
    DEBUG_MODE = os.getenv("DEBUG_MODE", "False").lower() in ("true", "1", "yes")
    LOG_FILE = os.getenv("LOG_FILE", os.path.join(BASE_DIR, "relaybot.log"))
    LOG_ROTATION = os.getenv("LOG_ROTATION", "1 MB")
    LOG_COMPRESSION = os.getenv("LOG_COMPRESSION", "zip")

    # Process management
    LOCK_FILE = os.getenv("LOCK_FILE", os.path.join(BASE_DIR, "relaybot.lock"))

    @classmethod
    def webhook_url(cls) -> str:
        return f"https://{cls.DOMAIN}/{cls.BOT_TOKEN}"

    @classmethod
    def validate(cls) -> bool:
        """Validate that all required configuration values are present"""
        if not cls.BOT_TOKEN:
            print("Missing BOT_TOKEN environment variable")
            return False

        if cls.ADMIN_ID <= 0:
            print("Missing or invalid BOT_ADMIN environment variable")
            return False

        if not cls.DOMAIN:
            print("Missing DOMAIN environment variable")
            return False

        if cls.WORKER_COUNT <= 0:
            print("WORKER_COUNT must be positive")
            return False

        # Ensure data directory exists
        os.makedirs(os.path.dirname(cls.DB_PATH) or cls.DATA_DIR, exist_ok=True)

        return True
