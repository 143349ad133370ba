from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from app.chat.api.dto import CancelResponse
from app.chat.api.handler import ChatHandler
from app.chat.service.relay import ChatRelay
from app.llm.service.provider.gemini import GeminiProvider

chat_router = APIRouter(prefix="/api/chat", tags=["Chat"])


def get_chat_relay(request: Request) -> ChatRelay:
    """Dependency to get the chat relay from app.state."""
    relay = getattr(request.app.state, "chat_relay", None)
    if relay is None:
        relay = ChatRelay(GeminiProvider())
        request.app.state.chat_relay = relay
    return relay


def get_chat_handler(relay: ChatRelay = Depends(get_chat_relay)) -> ChatHandler:
    return ChatHandler(relay)


@chat_router.post("", response_class=StreamingResponse)
async def chat_stream_api(request: Request, handler: ChatHandler = Depends(get_chat_handler)):
    """
    Streaming chat endpoint.
    Success is a raw text/plain stream of model deltas; failures before the
    first byte are JSON errors.
    """
    return await handler.stream(request)


@chat_router.post("/{conversation_id}/cancel", response_model=CancelResponse)
async def cancel_chat_stream(conversation_id: str, handler: ChatHandler = Depends(get_chat_handler)):
    """Stop the conversation's in-flight stream, if any."""
    return await handler.cancel(conversation_id)
