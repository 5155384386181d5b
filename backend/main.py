import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ai_gateway import TextProvider
from broadcast import ConnectionHub
from cache import TTLCache
from config import Settings, settings as default_settings
from database import Base, engine
from errors import ForumError, StoreError
from llm_service import build_provider
from routes import ai_router, posts_router, realtime_router
from telemetry import configure_logging

logger = logging.getLogger(__name__)

_UNSET = object()


def init_store() -> None:
    """Open the store once; a broken store at startup is fatal."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        logger.critical("store connection failed: %s", exc)
        raise StoreError("Database not connected", detail=str(exc)) from exc
    logger.info("store connected url=%s", engine.url.render_as_string(hide_password=True))


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_store()
    yield
    engine.dispose()
    logger.info("store connection closed")


def create_app(settings: Optional[Settings] = None, provider=_UNSET) -> FastAPI:
    """Build the API. ``provider`` overrides the configured AI provider (None disables it)."""
    settings = settings or default_settings

    app = FastAPI(
        title="Learnato Forum API",
        description="Discussion forum with real-time updates and AI assistance",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.hub = ConnectionHub()
    app.state.ai_cache = TTLCache(ttl_sec=settings.ai_cache_ttl_sec, max_entries=settings.ai_cache_max_entries)
    llm: Optional[TextProvider] = build_provider(settings.provider) if provider is _UNSET else provider
    app.state.llm = llm
    logger.info("ai provider=%s", getattr(llm, "provider", None) if llm is not None else "none (fallback only)")

    # CORS settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(posts_router)
    app.include_router(ai_router)
    app.include_router(realtime_router)

    @app.exception_handler(ForumError)
    async def forum_error_handler(request: Request, exc: ForumError):
        body = {"error": exc.message}
        if isinstance(exc, StoreError):
            if settings.is_development and exc.detail:
                body["details"] = exc.detail
        elif exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.get("/")
    async def root():
        return {"message": "Learnato Forum API", "version": "1.0.0"}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "connections": len(app.state.hub)}

    return app


configure_logging(default_settings.log_level, default_settings.log_format)
app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=5000)
