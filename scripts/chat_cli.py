#!/usr/bin/env python3
"""
Terminal chat against a running SumSnap service.

  python scripts/chat_cli.py            # talks to http://localhost:8080
  SUMSNAP_URL=https://... python scripts/chat_cli.py

Prefix a message with `/web ` to search the web first. Ctrl-C stops the
answer being streamed; Ctrl-D or /quit exits.
"""

import asyncio
import os
import signal
import sys
import uuid

from app.chat.client.consumer import ChatConversation, RemoteSearchClient
from app.chat.models.chat_model import TurnStatus

BASE_URL = os.getenv("SUMSNAP_URL", "http://localhost:8080")


async def main() -> int:
    conversation = ChatConversation(
        BASE_URL,
        search_client=RemoteSearchClient(BASE_URL),
        conversation_id=uuid.uuid4().hex,
        on_fragment=lambda text: print(text, end="", flush=True),
    )
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, lambda: asyncio.ensure_future(conversation.cancel()))
    except NotImplementedError:
        pass  # Windows: Ctrl-C ends the program instead

    print(f"💬 SumSnap chat @ {BASE_URL}  (/web <query> to search, /quit to exit)")
    while True:
        try:
            raw = await loop.run_in_executor(None, input, "\nyou> ")
        except EOFError:
            break
        if raw.strip() in ("/quit", "/exit"):
            break
        if not raw.strip():
            continue

        print("bot> ", end="", flush=True)
        outcome = await conversation.send(raw)
        if outcome.status is TurnStatus.CANCELLED:
            print("\n⏹  stopped")
        elif outcome.status is TurnStatus.FAILED:
            print(f"\n❌ {outcome.notice}")
        else:
            print()

    print(f"\n👋 {len(conversation.history)} message(s) exchanged")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
