import json
from fastapi import Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.chat.api.dto import CancelResponse
from app.chat.service.relay import ChatRelay
from app.core.errors import BadRequestError
from app.core.logger import get_logger

logger = get_logger("ChatHandler")

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",  # for Nginx
}


class ChatHandler:
    """Handler for the chat relay endpoints."""

    def __init__(self, relay: ChatRelay):
        self.relay = relay

    async def stream(self, request: Request) -> StreamingResponse:
        """
        Relay one chat request as a plain-text byte stream.

        Configuration is checked before the body is even parsed, so an
        unconfigured server answers every request the same way.
        """
        self.relay.ensure_configured()
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("[chat] invalid payload: body is not JSON")
            raise BadRequestError("request body must be JSON") from e

        relay_stream = await self.relay.open(payload)
        return StreamingResponse(
            relay_stream.body(),
            media_type="text/plain; charset=utf-8",
            headers=STREAM_HEADERS,
            background=BackgroundTask(relay_stream.aclose),
        )

    async def cancel(self, conversation_id: str) -> CancelResponse:
        cancelled = self.relay.cancel(conversation_id)
        logger.info(f"[chat] cancel requested | conversation_id={conversation_id} active={cancelled}")
        return CancelResponse(conversation_id=conversation_id, cancelled=cancelled)
