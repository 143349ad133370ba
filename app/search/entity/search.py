# app/search/entity/search.py
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

# Longest snippet kept per result
SNIPPET_LIMIT = 500


class SearchFailure(str, Enum):
    EMPTY = "empty"
    CONFIG = "config"
    HTTP_ERROR = "http_error"
    EXCEPTION = "exception"


class SearchResult(BaseModel):
    """One normalized web search hit."""
    title: str = ""
    url: str = ""
    snippet: str = ""


class SearchOutcome(BaseModel):
    """Either a list of results (ok) or a typed failure."""
    ok: bool
    results: List[SearchResult] = Field(default_factory=list)
    answer: Optional[str] = None
    error: Optional[SearchFailure] = None

    @classmethod
    def success(cls, results: List[SearchResult], answer: Optional[str] = None) -> "SearchOutcome":
        return cls(ok=True, results=results, answer=answer)

    @classmethod
    def failure(cls, error: SearchFailure) -> "SearchOutcome":
        return cls(ok=False, error=error)
