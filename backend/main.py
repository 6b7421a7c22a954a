"""
Harmony - Main Application Entry Point

AI chat backend: chat sessions with the Gemini API, bookmarks, help
center, account settings and subscription tiers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from harmony import __version__
from harmony.core.config import get_settings
from harmony.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DuplicateError,
    HarmonyError,
    InfrastructureError,
    LLMError,
    NotFoundError,
    ValidationError,
)
from harmony.core.logger import logger

ERROR_STATUS_CODES: list[tuple[type[HarmonyError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (InfrastructureError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (LLMError, status.HTTP_502_BAD_GATEWAY),
]


def status_code_for(exc: HarmonyError) -> int:
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Harmony in {settings.ENVIRONMENT} mode...")

    from harmony.infrastructure.local.database import init_db

    await init_db()

    if not settings.is_firebase_configured:
        logger.warning("Realtime database not configured, chats are stored locally")

    yield

    # Shutdown
    logger.info("Shutting down Harmony...")
    from harmony.api.deps import get_orchestrator_registry, get_realtime_database

    await get_orchestrator_registry().close_all()
    database = get_realtime_database()
    close = getattr(database, "close", None)
    if close is not None:
        await close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Harmony",
        description="Harmony AI chat backend",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    @app.exception_handler(HarmonyError)
    async def harmony_error_handler(request: Request, exc: HarmonyError):
        code = status_code_for(exc)
        if code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=code, content={"detail": exc.message})

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    from harmony.api import (
        bookmarks,
        chat,
        history,
        questions,
        realtime,
        settings as settings_api,
        subscription,
    )

    app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
    app.include_router(history.router, prefix="/api/history", tags=["history"])
    app.include_router(bookmarks.router, prefix="/api/bookmarks", tags=["bookmarks"])
    app.include_router(questions.router, prefix="/api/questions", tags=["questions"])
    app.include_router(settings_api.router, prefix="/api/settings", tags=["settings"])
    app.include_router(subscription.router, prefix="/api/subscription", tags=["subscription"])
    app.include_router(realtime.router, prefix="/api/realtime", tags=["realtime"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "realtimeDatabase": "configured" if settings.is_firebase_configured else "local",
            "version": __version__,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
