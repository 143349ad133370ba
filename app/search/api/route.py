from fastapi import APIRouter, Depends, Request

from app.search.api.dto import SearchRequest
from app.search.entity.search import SearchOutcome
from app.search.service.search_client import SearchClient

search_router = APIRouter(prefix="/api", tags=["Search"])


def get_search_client(request: Request) -> SearchClient:
    """Dependency to get the search client from app.state."""
    client = getattr(request.app.state, "search_client", None)
    if client is None:
        client = SearchClient()
        request.app.state.search_client = client
    return client


@search_router.post("/search", response_model=SearchOutcome, response_model_exclude_none=True)
async def search_web(body: SearchRequest, client: SearchClient = Depends(get_search_client)):
    """Run a web search for the chat widget's `/web` command."""
    return await client.search(body.query)
