# app/chat/models/chat_model.py
from enum import Enum
from typing import Literal, Optional, Union
from pydantic import BaseModel

WEB_COMMAND = "/web "


class PlainMessage(BaseModel):
    """A message relayed as typed."""
    kind: Literal["plain"] = "plain"
    text: str

    @property
    def content(self) -> str:
        return self.text


class WebAugmentedMessage(BaseModel):
    """A `/web <query>` message: search first, then relay with the results as context."""
    kind: Literal["web"] = "web"
    query: str

    @property
    def content(self) -> str:
        return self.query


UserInput = Union[PlainMessage, WebAugmentedMessage]


def parse_user_input(raw: str) -> Optional[UserInput]:
    """Resolve the command prefix once. Blank input yields None."""
    text = (raw or "").strip()
    if not text:
        return None
    if text.startswith(WEB_COMMAND):
        return WebAugmentedMessage(query=text[len(WEB_COMMAND):].strip())
    return PlainMessage(text=text)


class TurnStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class TurnOutcome(BaseModel):
    """Result of one conversation turn as seen by the caller."""
    status: TurnStatus
    text: str = ""
    bytes_received: int = 0
    notice: Optional[str] = None
