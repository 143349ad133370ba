import httpx
import json
from typing import Any, AsyncGenerator, Dict, Optional
from app.core.config import Settings, settings as default_settings
from app.core.errors import StreamError, UnconfiguredError, UpstreamExceptionError, UpstreamHTTPError
from app.core.logger import get_logger


class GeminiStream:
    """An opened streamGenerateContent response. Owns its HTTP client until closed."""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self._client = client
        self._response = response
        self._closed = False

    async def fragments(self) -> AsyncGenerator[str, None]:
        """Yield text deltas in arrival order."""
        async for raw_line in self._response.aiter_lines():
            if not raw_line:
                continue
            line = raw_line.strip()
            # Accept both SSE (data: ...) and JSONL
            if line.startswith("data:"):
                line = line[len("data:"):].strip()
                if line == "[DONE]":
                    break
            try:
                chunk = json.loads(line)
            except json.JSONDecodeError:
                # Not JSON, skip
                continue
            if not isinstance(chunk, dict):
                continue
            if "error" in chunk:
                error = chunk["error"] or {}
                raise StreamError(f"Gemini stream error: {error.get('status') or error.get('code')}")
            candidates = chunk.get("candidates") or []
            if not candidates:
                continue
            parts = (candidates[0].get("content") or {}).get("parts") or []
            for p in parts:
                text = p.get("text")
                if text:
                    yield text

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class GeminiProvider:
    """Handles Google Gemini streaming completions."""

    name = "gemini"

    def __init__(
        self,
        settings: Settings = default_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.endpoint = (settings.GEMINI_ENDPOINT or "https://generativelanguage.googleapis.com").rstrip("/")
        self.model = settings.GEMINI_MODEL
        self._transport = transport
        self._logger = get_logger("GeminiProvider")

    def is_enabled(self) -> bool:
        return bool(self.settings.GEMINI_API_KEY)

    async def open_stream(self, payload: Dict[str, Any]) -> GeminiStream:
        """
        Send the request and wait for the response head.

        Status problems surface here, before any byte reaches the caller's
        client; text fragments are read later through `GeminiStream.fragments`.
        """
        if not self.is_enabled():
            raise UnconfiguredError("Gemini provider disabled: missing GEMINI_API_KEY")

        url = f"{self.endpoint}/v1beta/models/{self.model}:streamGenerateContent"
        client = httpx.AsyncClient(timeout=None, transport=self._transport)
        request = client.build_request(
            "POST",
            url,
            params={"alt": "sse"},
            json=payload,
            headers={"x-goog-api-key": self.settings.GEMINI_API_KEY},
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.RequestError as e:
            await client.aclose()
            self._logger.error(f"Gemini request failed: {type(e).__name__}")
            raise UpstreamExceptionError(f"Gemini request failed: {type(e).__name__}") from e
        except BaseException:
            await client.aclose()
            raise

        if response.status_code != 200:
            await response.aread()
            await response.aclose()
            await client.aclose()
            self._logger.error(f"Gemini API error: status={response.status_code}")
            raise UpstreamHTTPError(
                f"Gemini API error: status={response.status_code}",
                status_code=response.status_code,
            )
        return GeminiStream(client, response)
