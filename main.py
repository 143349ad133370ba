from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import uvicorn
from app.chat.api.route import chat_router
from app.chat.service.relay import ChatRelay
from app.chat.service.session_service import StreamSessionRegistry
from app.core.config import settings
from app.core.errors import RelayError, StreamError
from app.core.logger import get_logger, mask_secret
from app.llm.service.provider.gemini import GeminiProvider
from app.search.api.route import search_router
from app.search.service.search_client import SearchClient
from app.waitlist.api.route import waitlist_router
from app.waitlist.service.waitlist_service import WaitlistService
from dotenv import load_dotenv
import os
import sys

# App & Logger Setup
# Load .env so os.getenv picks up values from your .env file
load_dotenv()

logger = get_logger("sumsnap-landing")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire services onto app.state before the first request."""
    # Startup
    logger.info(f"{settings.APP_NAME} starting up...")
    logger.info(f"Python: {sys.version}")
    logger.info(f"PORT from env: {os.getenv('PORT', 'NOT SET')}")

    for var in ("GEMINI_API_KEY", "TAVILY_API_KEY", "NOTION_API_KEY", "NOTION_DATABASE_ID"):
        value = getattr(settings, var)
        log = logger.info if value else logger.warning
        log(f"{var}: {mask_secret(value)}")

    app.state.logger = logger
    app.state.stream_sessions = StreamSessionRegistry()
    app.state.chat_relay = ChatRelay(GeminiProvider(settings), app.state.stream_sessions)
    app.state.search_client = SearchClient(settings)
    app.state.waitlist_service = WaitlistService(settings)

    logger.info("✓ Startup complete - application is ready!")

    # Application is running
    yield

    # Shutdown
    cancelled = app.state.stream_sessions.cancel_all()
    if cancelled:
        logger.info(f"Cancelled {cancelled} active stream(s)")
    logger.info(f"{settings.APP_NAME} shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    description="SumSnap landing page backend: streaming chat relay, web search and waitlist",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,  # adjust in prod
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RelayError)
async def relay_exception_handler(request: Request, exc: RelayError):
    """Relay failures detected before streaming started"""
    return JSONResponse(status_code=exc.http_status, content=exc.to_payload())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Convert HTTPException to standardized error format"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "status": False,
            "message": exc.detail
        },
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    if isinstance(exc, StreamError):
        # Reached only after the body started; the server drops the connection
        logger.warning(f"[chat] stream aborted on {request.url.path}: {exc.message}")
    else:
        logger.error(f"Unhandled error on {request.url.path}: {type(exc).__name__}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"status": False, "error": "internal_error", "message": "internal error"},
    )


# Routers
app.include_router(chat_router)
app.include_router(search_router)
app.include_router(waitlist_router)


# Health Check Endpoint
@app.get("/health")
async def health():
    """Shows which integrations are configured"""
    checks = {
        "chat": "✓ configured" if settings.GEMINI_API_KEY else "✗ missing GEMINI_API_KEY",
        "search": "✓ configured" if settings.TAVILY_API_KEY else "✗ missing TAVILY_API_KEY",
        "waitlist": (
            "✓ configured"
            if settings.NOTION_API_KEY and settings.NOTION_DATABASE_ID
            else "✗ missing NOTION_API_KEY/NOTION_DATABASE_ID"
        ),
    }
    sessions = getattr(app.state, "stream_sessions", None)
    return {
        "status": "ok" if settings.GEMINI_API_KEY else "degraded",
        "service": "sumsnap-landing",
        "checks": checks,
        "active_streams": len(sessions) if sessions is not None else 0,
    }


@app.get("/")
async def root():
    """Root endpoint - simple check that app is running"""
    return {
        "service": "sumsnap-landing",
        "version": settings.APP_VERSION,
        "status": "running",
        "health_check": "/health"
    }


if __name__ == "__main__":
    # Use PORT from environment, fallback to 8080 for local
    port = int(os.getenv("PORT", str(settings.PORT)))
    uvicorn.run("main:app", host=settings.HOST, port=port, reload=settings.DEBUG)
