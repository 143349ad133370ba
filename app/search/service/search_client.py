# app/search/service/search_client.py
from typing import Any, List, Optional

import httpx

from app.core.config import Settings, settings as default_settings
from app.core.logger import get_logger
from app.search.entity.search import (
    SNIPPET_LIMIT,
    SearchFailure,
    SearchOutcome,
    SearchResult,
)

logger = get_logger("SearchClient")

MIN_QUERY_LENGTH = 2
MAX_RESULTS = 5
NO_CACHE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}


class SearchClient:
    """
    Tavily web search with a single POST -> GET fallback.

    The POST carries the credential in the body and in the auth headers, since
    provider deployments differ in which one they honour. If it does not
    succeed the same query is retried once as a GET with URL parameters.
    """

    def __init__(
        self,
        settings: Settings = default_settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_results: int = MAX_RESULTS,
    ):
        self.settings = settings
        self.endpoint = settings.TAVILY_ENDPOINT
        self.max_results = max_results
        self._transport = transport

    def is_enabled(self) -> bool:
        return bool(self.settings.TAVILY_API_KEY)

    async def search(self, query: str) -> SearchOutcome:
        trimmed = (query or "").strip()
        if len(trimmed) < MIN_QUERY_LENGTH:
            return SearchOutcome.failure(SearchFailure.EMPTY)

        api_key = self.settings.TAVILY_API_KEY
        if not api_key:
            logger.error("[search] missing TAVILY_API_KEY")
            return SearchOutcome.failure(SearchFailure.CONFIG)

        logger.info(f"[search] start | qlen={len(trimmed)}")
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
                data = await self._post(client, trimmed, api_key)
                if data is None:
                    res = await client.get(
                        self.endpoint,
                        params={"q": trimmed, "api_key": api_key, "max_results": self.max_results},
                        headers=NO_CACHE_HEADERS,
                    )
                    if not res.is_success:
                        logger.error(f"[search] get_http_error | status={res.status_code}")
                        return SearchOutcome.failure(SearchFailure.HTTP_ERROR)
                    data = res.json()
        except Exception as e:
            logger.error(f"[search] exception | {type(e).__name__}: {e}")
            return SearchOutcome.failure(SearchFailure.EXCEPTION)

        results = self.normalize(data)
        logger.info(f"[search] done | num={len(results)}")
        answer = data.get("answer") if isinstance(data, dict) else None
        return SearchOutcome.success(results, answer if isinstance(answer, str) else None)

    async def _post(self, client: httpx.AsyncClient, query: str, api_key: str) -> Optional[Any]:
        """Primary attempt. Returns the decoded body, or None when the fallback should run."""
        try:
            res = await client.post(
                self.endpoint,
                json={
                    "query": query,
                    "max_results": self.max_results,
                    "include_answer": True,
                    "search_depth": "advanced",
                    "api_key": api_key,
                },
                headers={
                    "Content-Type": "application/json",
                    "X-API-Key": api_key,
                    "Authorization": f"Bearer {api_key}",
                    **NO_CACHE_HEADERS,
                },
            )
        except httpx.RequestError as e:
            logger.warning(f"[search] post_exception | {type(e).__name__}; falling back to GET")
            return None
        if not res.is_success:
            logger.error(f"[search] http_error | status={res.status_code}")
            return None
        return res.json()

    def normalize(self, data: Any) -> List[SearchResult]:
        raw = data.get("results") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            return []
        results = []
        for entry in raw[: self.max_results]:
            if not isinstance(entry, dict):
                continue
            snippet = entry.get("content")
            if snippet is None:
                snippet = entry.get("snippet")
            results.append(
                SearchResult(
                    title=str(entry.get("title") or ""),
                    url=str(entry.get("url") or ""),
                    snippet=str(snippet or "")[:SNIPPET_LIMIT],
                )
            )
        return results
