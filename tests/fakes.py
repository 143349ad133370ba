import asyncio
from typing import Iterable, List, Optional

from app.core.config import Settings


def make_settings(**overrides) -> Settings:
    values = {
        "GEMINI_API_KEY": "gemini-test-key",
        "TAVILY_API_KEY": "tavily-test-key",
        "NOTION_API_KEY": "notion-test-key",
        "NOTION_DATABASE_ID": "db-123",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeUpstream:
    """Stands in for GeminiStream."""

    def __init__(self, fragments: Iterable[str], error: Optional[Exception] = None, hang: bool = False):
        self._fragments = list(fragments)
        self._error = error
        self._hang = hang
        self.closed = False

    async def fragments(self):
        for text in self._fragments:
            yield text
        if self._error is not None:
            raise self._error
        if self._hang:
            await asyncio.Event().wait()

    async def aclose(self):
        self.closed = True


class FakeProvider:
    name = "fake"
    model = "fake-model"

    def __init__(
        self,
        fragments: Iterable[str] = (),
        enabled: bool = True,
        error: Optional[Exception] = None,
        open_error: Optional[Exception] = None,
        hang: bool = False,
    ):
        self.fragments = list(fragments)
        self.enabled = enabled
        self.error = error
        self.open_error = open_error
        self.hang = hang
        self.calls: List[dict] = []
        self.streams: List[FakeUpstream] = []

    def is_enabled(self) -> bool:
        return self.enabled

    async def open_stream(self, payload: dict) -> FakeUpstream:
        self.calls.append(payload)
        if self.open_error is not None:
            raise self.open_error
        stream = FakeUpstream(self.fragments, error=self.error, hang=self.hang)
        self.streams.append(stream)
        return stream


class FakeSearcher:
    def __init__(self, outcome):
        self.outcome = outcome
        self.queries: List[str] = []

    async def search(self, query: str):
        self.queries.append(query)
        return self.outcome
