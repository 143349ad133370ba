import asyncio
from typing import Any, AsyncGenerator, Optional

from pydantic import ValidationError

from app.chat.api.dto import ChatRelayRequest
from app.chat.service.prompt_composer import build_payload
from app.chat.service.session_service import SessionState, StreamSession, StreamSessionRegistry
from app.core.errors import BadRequestError, StreamError, UnconfiguredError
from app.core.logger import get_logger
from app.llm.service.provider.gemini import GeminiProvider, GeminiStream

logger = get_logger("ChatRelay")

# Fragments buffered between the upstream pump and the response body
CHANNEL_SIZE = 32

_END = object()


class _Failure:
    def __init__(self, exc: BaseException):
        self.exc = exc


class RelayStream:
    """
    Byte stream of one relay invocation.

    A pump task reads fragments from the upstream response into a bounded
    channel; `body()` drains the channel and yields UTF-8 bytes. Cancelling
    the session stops the pump, closes the upstream response and aborts the
    body with `StreamError` before the next fragment is forwarded.
    """

    def __init__(
        self,
        upstream: GeminiStream,
        session: StreamSession,
        registry: StreamSessionRegistry,
        channel_size: int = CHANNEL_SIZE,
    ):
        self.upstream = upstream
        self.session = session
        self._registry = registry
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=channel_size)

    async def _pump(self) -> None:
        try:
            async for text in self.upstream.fragments():
                if self.session.cancelled:
                    break
                await self._queue.put(text)
            await self._queue.put(_END)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._queue.put(_Failure(e))
        finally:
            await self.upstream.aclose()

    async def aclose(self) -> None:
        """Release the upstream response and the session slot. Safe to call repeatedly."""
        if not self.session.finished:
            self.session.finish(SessionState.CANCELLED)
        await self.upstream.aclose()
        self._registry.release(self.session)

    def _wake(self, _task: asyncio.Task) -> None:
        # A full channel means the body is draining and checks the token itself
        if not self._queue.full():
            self._queue.put_nowait(_END)

    async def body(self) -> AsyncGenerator[bytes, None]:
        session = self.session
        session.state = SessionState.STREAMING
        logger.info(f"[chat] stream start | session_id={session.session_id}")

        producer = asyncio.create_task(self._pump())
        producer.add_done_callback(self._wake)
        session.on_cancel(producer.cancel)
        outcome = SessionState.CANCELLED
        try:
            while True:
                item = await self._queue.get()
                if session.cancelled:
                    # A clean close would read as a complete answer
                    raise StreamError("stream cancelled")
                if item is _END:
                    outcome = SessionState.CLOSED
                    break
                if isinstance(item, _Failure):
                    outcome = SessionState.ERRORED
                    logger.error(
                        f"[chat] stream error | session_id={session.session_id} "
                        f"error={type(item.exc).__name__}: {item.exc} bytes={session.bytes_sent}"
                    )
                    raise StreamError("upstream stream failed") from item.exc
                payload = item.encode("utf-8")
                session.record(item, payload)
                yield payload
        finally:
            session.finish(outcome)
            if not producer.done():
                producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)
            await self.aclose()
            if outcome is SessionState.CLOSED:
                logger.info(
                    f"[chat] stream end | duration_ms={session.elapsed_ms()} bytes={session.bytes_sent}"
                )
            elif outcome is SessionState.CANCELLED:
                logger.info(
                    f"[chat] stream cancelled | duration_ms={session.elapsed_ms()} bytes={session.bytes_sent}"
                )


class ChatRelay:
    """Bridges one chat request to a Gemini streaming completion."""

    def __init__(
        self,
        provider: GeminiProvider,
        sessions: Optional[StreamSessionRegistry] = None,
        channel_size: int = CHANNEL_SIZE,
    ):
        self.provider = provider
        self.sessions = sessions if sessions is not None else StreamSessionRegistry()
        self.channel_size = channel_size

    def ensure_configured(self) -> None:
        if not self.provider.is_enabled():
            logger.error("[chat] GEMINI_API_KEY is not set")
            raise UnconfiguredError("server not configured")

    @staticmethod
    def parse_request(payload: Any) -> ChatRelayRequest:
        if not isinstance(payload, dict):
            logger.error("[chat] invalid payload: body is not an object")
            raise BadRequestError("request body must be a JSON object")
        if not isinstance(payload.get("messages"), list):
            logger.error("[chat] invalid payload: messages missing")
            raise BadRequestError("messages must be an array")
        try:
            request = ChatRelayRequest.model_validate(payload)
        except ValidationError as e:
            logger.error(f"[chat] invalid payload: {e.error_count()} validation error(s)")
            raise BadRequestError("messages must be an array of {role, content} objects") from e
        if not request.messages:
            logger.error("[chat] invalid payload: messages empty")
            raise BadRequestError("messages must not be empty")
        return request

    async def open(self, payload: Any) -> RelayStream:
        """
        Validate the request and open the upstream stream.

        Raises a RelayError before any byte is produced when the service is
        not configured, the payload is malformed or the provider refuses the
        request.
        """
        self.ensure_configured()
        request = self.parse_request(payload)
        logger.info(
            f"[chat] request start | model={self.provider.model} "
            f"messages_count={len(request.messages)} has_system_prompt={bool(request.system_prompt)}"
        )

        session = self.sessions.start(request.conversation_id)
        try:
            upstream = await self.provider.open_stream(build_payload(request.messages, request.system_prompt))
        except BaseException as e:
            session.finish(SessionState.ERRORED)
            self.sessions.release(session)
            logger.error(f"[chat] handler error | {type(e).__name__}: {e}")
            raise
        session.state = SessionState.UPSTREAM_OPENED
        return RelayStream(upstream, session, self.sessions, self.channel_size)

    def cancel(self, conversation_id: str) -> bool:
        return self.sessions.cancel(conversation_id)
