"""FastAPI application entry point."""

import logging
import sys
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from lobbyhub import __version__
from lobbyhub.api.errors import register_error_handlers
from lobbyhub.api.rate_limit import create_limit_checks, create_limiter
from lobbyhub.api.router import api_router
from lobbyhub.db.repositories.lobbies import SqlLobbyStore
from lobbyhub.db.session import create_engine_from_settings, create_session_factory
from lobbyhub.lobby.coordinator import LobbyCoordinator
from lobbyhub.lobby.models import LobbyConfig
from lobbyhub.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application."""
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Only add the console handler once, even if several apps are created
    if not root_logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    logging.getLogger("lobbyhub").setLevel(level)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def lobby_config_from_settings(settings: Settings) -> LobbyConfig:
    return LobbyConfig(
        max_players=settings.max_players,
        join_code_max_retries=settings.join_code_max_retries,
        operation_timeout_seconds=settings.operation_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Starting lobbyhub {__version__} (dev_mode={app.state.settings.dev_mode})")

    yield

    logger.info("Shutting down lobbyhub")
    await app.state.engine.dispose()


async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log method, path, status and duration of every request."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
    )
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application and its dependencies.

    Args:
        settings: Settings to use (environment settings if None)
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    engine = create_engine_from_settings(settings)
    store = SqlLobbyStore(create_session_factory(engine))

    app = FastAPI(
        title="lobbyhub",
        description="Lobby coordination API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.coordinator = LobbyCoordinator(store, lobby_config_from_settings(settings))

    # In dev mode, allow localhost. In production, allow the configured frontend URL.
    cors_origins = (
        ["http://localhost:5173", "http://127.0.0.1:5173"]
        if settings.dev_mode
        else [settings.frontend_url]
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    # Rate limiting, per application
    limiter = create_limiter()
    app.state.limiter = limiter
    app.state.rate_limit_checks = create_limit_checks(limiter)
    register_error_handlers(app)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "lobbyhub API", "version": __version__}

    app.include_router(api_router, prefix="/api")

    return app

