"""
HTTP surface of the Relay Bot: the Telegram webhook and the housekeeping
endpoint called by an external scheduler.
"""

import json
from fastapi import FastAPI, Request, Response
from loguru import logger
from pydantic import ValidationError
from aiogram import types


def parse_update(body: bytes, bot=None) -> types.Update:
    """Decode a webhook body; malformed payloads become an empty update."""
    try:
        payload = json.loads(body or b"{}")
        return types.Update.model_validate(payload, context={"bot": bot})
    except (ValueError, TypeError, ValidationError):
        return types.Update(update_id=0)


def create_app(relay_bot, token: str) -> FastAPI:
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.post(f"/{token}")
    async def webhook(request: Request):
        update = parse_update(await request.body(), relay_bot.bot)
        relay_bot.dispatcher.enqueue(update)
        return Response(status_code=200)

    @app.get("/cron/clearmessages")
    async def clear_messages():
        try:
            await relay_bot.db.delete_old_forward_messages()
        except Exception as e:
            logger.error(f"Failed to delete old forwarded messages: {e}")
            return "failed"
        return "OK"

    return app
