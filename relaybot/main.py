"""
Relay Bot - Main Entry Point

This is the main entry point for the relay bot application.
It handles logging setup, startup, serving the webhook and shutdown.
"""

import sys
import asyncio
import uvicorn
from loguru import logger

from relaybot.config import Config
from relaybot.bot import RelayBot
from relaybot.web import create_app
from relaybot.utils.system import LockManager


def setup_logging():
    """Configure logging based on environment"""
    log_level = "DEBUG" if Config.DEBUG_MODE else "INFO"
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=log_level)
    logger.add(
        Config.LOG_FILE,
        level=log_level,
        rotation=Config.LOG_ROTATION,
        compression=Config.LOG_COMPRESSION,
        backtrace=Config.DEBUG_MODE,
        diagnose=Config.DEBUG_MODE
    )


async def startup(lock_manager):
    """Initialize and start the bot"""
    logger.info("Starting Relay Bot")

    # Check if the config is valid
    if not Config.validate():
        logger.error("Invalid configuration. Please check your environment variables.")
        return None

    try:
        # Acquire process lock to ensure only one instance runs
        if not await lock_manager.acquire_lock():
            logger.error("Another instance is already running")
            return None

        bot = RelayBot()
        try:
            await bot.start()
        except Exception:
            await bot.close()
            raise
        return bot
    except Exception as e:
        logger.exception(f"Failed to start bot: {e}")
        return None


async def shutdown(lock_manager, bot=None):
    """Clean shutdown of the application"""
    logger.info("Shutting down Relay Bot")
    try:
        if bot is not None:
            await bot.close()
        await lock_manager.release_lock()
        logger.info("Shutdown complete")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


async def serve(bot):
    """Serve the webhook until the server is stopped"""
    app = create_app(bot, Config.BOT_TOKEN)
    config = uvicorn.Config(app, host=Config.HOST, port=Config.PORT, log_config=None)
    server = uvicorn.Server(config)
    await server.serve()


async def main():
    """Main application entry point"""
    setup_logging()
    lock_manager = LockManager()

    bot = await startup(lock_manager)
    if bot is None:
        await shutdown(lock_manager)
        return 1

    try:
        await serve(bot)
    except Exception as e:
        logger.exception(f"Unhandled exception: {e}")
        return 1
    finally:
        await shutdown(lock_manager, bot)

    return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
