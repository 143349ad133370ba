from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import List, Optional

from app.chat.entity.chat import ChatMessage


class ChatRelayRequest(BaseModel):
    """Body of POST /api/chat."""
    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatMessage]
    system_prompt: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("systemPrompt", "system_prompt"),
        serialization_alias="systemPrompt",
    )
    conversation_id: Optional[str] = Field(
        default=None,
        max_length=128,
        validation_alias=AliasChoices("conversationId", "conversation_id"),
        serialization_alias="conversationId",
    )


class CancelResponse(BaseModel):
    conversation_id: str
    cancelled: bool
