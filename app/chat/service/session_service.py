import asyncio
import time
import uuid
from enum import Enum
from typing import Callable, Dict, List, Optional

from app.core.logger import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    VALIDATED = "validated"
    UPSTREAM_OPENED = "upstream_opened"
    STREAMING = "streaming"
    CLOSED = "closed"
    ERRORED = "errored"
    CANCELLED = "cancelled"


TERMINAL_STATES = {SessionState.CLOSED, SessionState.ERRORED, SessionState.CANCELLED}


class StreamSession:
    """
    Bookkeeping for one in-flight relay operation.

    Holds the cancellation token, the byte/character counters and the start
    timestamp. Cancelling is idempotent; callbacks registered with
    `on_cancel` run once, on the first call.
    """

    def __init__(self, conversation_id: Optional[str] = None):
        self.session_id = uuid.uuid4().hex
        self.conversation_id = conversation_id
        self.started_at = time.perf_counter()
        self.state = SessionState.VALIDATED
        self.bytes_sent = 0
        self.chars_sent = 0
        self._cancelled = asyncio.Event()
        self._cancel_callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started_at) * 1000)

    def record(self, text: str, payload: bytes) -> None:
        self.chars_sent += len(text)
        self.bytes_sent += len(payload)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        if self.cancelled:
            callback()
            return
        self._cancel_callbacks.append(callback)

    def cancel(self) -> None:
        if self.cancelled or self.finished:
            return
        self._cancelled.set()
        callbacks, self._cancel_callbacks = self._cancel_callbacks, []
        for callback in callbacks:
            callback()

    def finish(self, state: SessionState) -> None:
        if not self.finished:
            self.state = state

    async def wait_cancelled(self) -> None:
        await self._cancelled.wait()


class StreamSessionRegistry:
    """
    At most one active StreamSession per conversation id.

    Starting a session for a conversation cancels the one already running
    (last writer wins). Requests without a conversation id get an
    unregistered session of their own.
    """

    def __init__(self):
        self._active: Dict[str, StreamSession] = {}

    def start(self, conversation_id: Optional[str] = None) -> StreamSession:
        session = StreamSession(conversation_id)
        if conversation_id is None:
            return session
        prior = self._active.get(conversation_id)
        if prior is not None:
            logger.info(f"[chat] superseding active stream | conversation_id={conversation_id}")
            prior.cancel()
        self._active[conversation_id] = session
        return session

    def get(self, conversation_id: str) -> Optional[StreamSession]:
        return self._active.get(conversation_id)

    def cancel(self, conversation_id: str) -> bool:
        """Cancel the active stream of a conversation. Returns False when none is running."""
        session = self._active.get(conversation_id)
        if session is None:
            return False
        session.cancel()
        return True

    def cancel_all(self) -> int:
        sessions = list(self._active.values())
        for session in sessions:
            session.cancel()
        return len(sessions)

    def release(self, session: StreamSession) -> None:
        cid = session.conversation_id
        if cid is not None and self._active.get(cid) is session:
            del self._active[cid]

    def __len__(self) -> int:
        return len(self._active)
