# app/chat/entity/chat.py
"""
Conversation models shared by the relay and the stream consumer.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict
from typing import Literal


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single conversation turn. Immutable once appended to a history."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.USER.value, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role=MessageRole.ASSISTANT.value, content=content)
