# app/chat/service/prompt_composer.py
from typing import Any, Dict, List, Optional, Sequence

from app.agents.prompt import (
    UNTITLED_RESULT,
    WEB_CONTEXT_ENTRY,
    WEB_CONTEXT_GUIDANCE,
    WEB_CONTEXT_HEADER,
)
from app.chat.entity.chat import ChatMessage
from app.search.entity.search import SNIPPET_LIMIT, SearchResult

# Only the first results make it into the prompt
CONTEXT_RESULT_LIMIT = 3

# Fixed generation parameters, not user-configurable
GENERATION_CONFIG = {
    "temperature": 0.7,
    "topP": 0.9,
    "maxOutputTokens": 2048,
}

# Gemini labels the assistant side of the conversation "model"
_PROVIDER_ROLES = {"user": "user", "assistant": "model"}


def format_search_context(results: Sequence[SearchResult]) -> str:
    """Numbered context entries for the first few results."""
    entries = []
    for i, item in enumerate(results[:CONTEXT_RESULT_LIMIT], start=1):
        entries.append(
            WEB_CONTEXT_ENTRY.format(
                index=i,
                title=item.title or UNTITLED_RESULT,
                url=item.url,
                snippet=(item.snippet or "")[:SNIPPET_LIMIT],
            )
        )
    return "\n\n".join(entries)


def compose_instruction(
    system_prompt: Optional[str],
    results: Optional[Sequence[SearchResult]] = None,
) -> Optional[str]:
    """
    Append the web context block to the system instruction.

    Without results the system prompt is returned untouched (None stays None).
    """
    if not results:
        return system_prompt or None
    block = f"{WEB_CONTEXT_HEADER}\n{format_search_context(results)}\n\n{WEB_CONTEXT_GUIDANCE}"
    if system_prompt:
        return f"{system_prompt}\n\n{block}"
    return block


def build_contents(history: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
    return [
        {"role": _PROVIDER_ROLES[m.role], "parts": [{"text": m.content}]}
        for m in history
    ]


def build_payload(history: Sequence[ChatMessage], instruction: Optional[str] = None) -> Dict[str, Any]:
    """Request body for a Gemini streaming completion."""
    payload: Dict[str, Any] = {
        "contents": build_contents(history),
        "generationConfig": dict(GENERATION_CONFIG),
    }
    if instruction:
        payload["systemInstruction"] = {"parts": [{"text": instruction}]}
    return payload
