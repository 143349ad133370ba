"""
Client side of the chat relay.

`ChatConversation` keeps one conversation's history and drives each turn:
optional web search, prompt composition, one streamed POST to /api/chat and
incremental decoding of the response into a transient display buffer. The
buffer only becomes an assistant turn once the stream has finished cleanly.
"""

import asyncio
import codecs
from typing import Callable, List, Optional, Protocol, Tuple

import httpx

from app.agents.prompt import PROJECT_GUIDE_SYSTEM_PROMPT
from app.chat.entity.chat import ChatMessage
from app.chat.models.chat_model import (
    TurnOutcome,
    TurnStatus,
    UserInput,
    WebAugmentedMessage,
    parse_user_input,
)
from app.chat.service.prompt_composer import CONTEXT_RESULT_LIMIT, compose_instruction
from app.core.logger import get_logger
from app.search.entity.search import SearchFailure, SearchOutcome

logger = get_logger("ChatConsumer")

SEARCH_FAILED_NOTICE = "Web search failed. Please try again in a moment."
RELAY_FAILED_NOTICE = "Couldn't get an answer right now. Please try again in a moment."

CHAT_PATH = "/api/chat"
SEARCH_PATH = "/api/search"


class Searcher(Protocol):
    async def search(self, query: str) -> SearchOutcome:
        ...


class RemoteSearchClient:
    """Runs `/web` searches through the service's /api/search endpoint."""

    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    async def search(self, query: str) -> SearchOutcome:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=30.0, transport=self._transport) as client:
                res = await client.post(SEARCH_PATH, json={"query": query}, headers={"Cache-Control": "no-store"})
            if not res.is_success:
                logger.error(f"[chat-ui] search endpoint error | status={res.status_code}")
                return SearchOutcome.failure(SearchFailure.HTTP_ERROR)
            return SearchOutcome.model_validate(res.json())
        except Exception as e:
            logger.error(f"[chat-ui] search endpoint exception | {type(e).__name__}: {e}")
            return SearchOutcome.failure(SearchFailure.EXCEPTION)


class _ActiveTurn:
    """Cancellation handle of the turn currently streaming."""

    def __init__(self):
        self.task: Optional[asyncio.Task] = None
        self.cancelled = False

    @property
    def done(self) -> bool:
        return self.task is None or self.task.done()

    def cancel(self) -> None:
        self.cancelled = True
        if self.task is not None:
            self.task.cancel()


class ChatConversation:
    def __init__(
        self,
        base_url: str,
        search_client: Optional[Searcher] = None,
        system_prompt: Optional[str] = PROJECT_GUIDE_SYSTEM_PROMPT,
        conversation_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_fragment: Optional[Callable[[str], None]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.search_client = search_client
        self.system_prompt = system_prompt
        self.conversation_id = conversation_id
        self.on_fragment = on_fragment
        self.streaming_text = ""
        self._transport = transport
        self._history: List[ChatMessage] = []
        self._active: Optional[_ActiveTurn] = None

    @property
    def history(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._history)

    @property
    def is_streaming(self) -> bool:
        return self._active is not None and not self._active.done

    async def send(self, raw: str) -> TurnOutcome:
        """
        Run one turn.

        The user turn is appended before anything is sent. A previous turn
        still streaming is cancelled first. The assistant turn is committed
        only when the stream completes; cancellation and failures leave the
        history without it.
        """
        user_input = parse_user_input(raw)
        if user_input is None:
            raise ValueError("message must not be empty")

        await self.cancel()

        self._history.append(ChatMessage.user(user_input.content))
        history = list(self._history)
        self.streaming_text = ""
        logger.info(
            f"[chat-ui] send start | length={len(user_input.content)} "
            f"history_count={len(history)} web={isinstance(user_input, WebAugmentedMessage)}"
        )

        turn = _ActiveTurn()
        turn.task = asyncio.create_task(self._run_turn(user_input, history, turn))
        self._active = turn
        try:
            return await turn.task
        except asyncio.CancelledError:
            if turn.cancelled:
                logger.info("[chat-ui] send cancelled")
                return TurnOutcome(status=TurnStatus.CANCELLED)
            raise
        finally:
            if self._active is turn:
                self._active = None
                self.streaming_text = ""
            logger.info("[chat-ui] send end")

    async def cancel(self) -> None:
        """Abort the in-flight turn. A no-op when nothing is streaming."""
        turn = self._active
        if turn is None or turn.done:
            return
        logger.info("[chat-ui] stop requested")
        turn.cancel()
        self.streaming_text = ""
        await asyncio.wait([turn.task])

    async def _resolve_instruction(self, user_input: UserInput) -> Tuple[bool, Optional[str]]:
        if not isinstance(user_input, WebAugmentedMessage):
            return True, self.system_prompt
        if self.search_client is None:
            logger.error("[chat-ui] search fail | no search client")
            return False, None

        logger.info(f"[chat-ui] search start | qlen={len(user_input.query)}")
        outcome = await self.search_client.search(user_input.query)
        if not outcome.ok:
            logger.error(f"[chat-ui] search fail | error={outcome.error.value if outcome.error else None}")
            return False, None
        logger.info(f"[chat-ui] search done | count={min(len(outcome.results), CONTEXT_RESULT_LIMIT)}")
        return True, compose_instruction(self.system_prompt, outcome.results)

    async def _run_turn(self, user_input: UserInput, history: List[ChatMessage], turn: _ActiveTurn) -> TurnOutcome:
        ok, instruction = await self._resolve_instruction(user_input)
        if not ok:
            return TurnOutcome(status=TurnStatus.FAILED, notice=SEARCH_FAILED_NOTICE)

        body = {"messages": [m.model_dump() for m in history], "systemPrompt": instruction}
        if self.conversation_id:
            body["conversationId"] = self.conversation_id

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        received = 0
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=None, transport=self._transport) as client:
                async with client.stream("POST", CHAT_PATH, json=body) as res:
                    if res.status_code != 200:
                        await res.aread()
                        logger.error(f"[chat-ui] send error | status={res.status_code}")
                        return TurnOutcome(status=TurnStatus.FAILED, notice=RELAY_FAILED_NOTICE)
                    async for chunk in res.aiter_bytes():
                        if turn.cancelled:
                            return TurnOutcome(status=TurnStatus.CANCELLED, bytes_received=received)
                        received += len(chunk)
                        self._append(decoder.decode(chunk))
            self._append(decoder.decode(b"", final=True))
        except httpx.HTTPError as e:
            logger.error(f"[chat-ui] send error | {type(e).__name__}: {e}")
            return TurnOutcome(status=TurnStatus.FAILED, bytes_received=received, notice=RELAY_FAILED_NOTICE)

        if turn.cancelled:
            return TurnOutcome(status=TurnStatus.CANCELLED, bytes_received=received)
        text = self.streaming_text
        self._history.append(ChatMessage.assistant(text))
        self.streaming_text = ""
        logger.info(f"[chat-ui] stream complete | bytes={received}")
        return TurnOutcome(status=TurnStatus.COMPLETED, text=text, bytes_received=received)

    def _append(self, text: str) -> None:
        if not text:
            return
        self.streaming_text += text
        if self.on_fragment is not None:
            self.on_fragment(text)
