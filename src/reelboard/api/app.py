"""FastAPI application factory.

- Validates inputs, reads/writes DB
- Returns payloads for the editor client
- Errors are reshaped to ``{"error": ...}`` bodies
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Generator

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from reelboard.config import get_cors_origins, get_http_timeout
from reelboard.db.repo import DbSession
from reelboard.db.session import get_session, init_db
from reelboard.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


def get_db_session(request: Request) -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session(getattr(request.app.state, "db_path", None))
    try:
        yield session
    finally:
        session.close()


def get_http_client() -> Generator[httpx.Client, None, None]:
    """Dependency to get the HTTP client used for vendor calls.

    Yields:
        httpx.Client closed after the request.
    """
    client = httpx.Client(timeout=get_http_timeout(), follow_redirects=True)
    try:
        yield client
    finally:
        client.close()


def get_registry(client: httpx.Client = Depends(get_http_client)) -> ProviderRegistry:
    """Dependency to get the provider registry bound to the request's client."""
    return ProviderRegistry(client)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": jsonable_encoder(exc.errors())})


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        db_path: Optional path to database file. Defaults to REELBOARD_DB_PATH.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(db_path)
        logger.info("Reelboard API started")
        yield

    app = FastAPI(
        title="Reelboard API",
        description="Storyboard editor backend with AI generation fallback",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db_path = db_path

    # Add CORS middleware for the editor client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    # Include routes
    from reelboard.api.routes import audio, export, generate, links, settings, tiles, timelines

    app.include_router(timelines.router, prefix="/api")
    app.include_router(tiles.router, prefix="/api")
    app.include_router(links.router, prefix="/api")
    app.include_router(audio.router, prefix="/api")
    app.include_router(settings.router, prefix="/api")
    app.include_router(generate.router, prefix="/api")
    app.include_router(export.router, prefix="/api")

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
