import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Response, status
from fastapi.responses import PlainTextResponse

from message_api.config import Settings, get_settings
from message_api.logging_utils import setup_logging, RequestLoggingMiddleware
from message_api.metrics import get_metrics, get_metrics_content_type
from message_api.routes import router as messages_router
from message_api.schemas import HealthResponse
from message_api.storage import MessageStore

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Welcome to the Messages API! Use /api/messages to get messages."


def create_app(store: Optional[MessageStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    When `store` is given it is used as-is and left open on shutdown;
    otherwise the lifespan connects one from settings and closes it.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        - Startup: connect to MongoDB and verify it answers a ping
        - Shutdown: close the client we opened
        """
        owned = app.state.store is None
        if owned:
            app.state.store = MessageStore.connect(
                settings.MONGO_URI,
                settings.DB_NAME,
                settings.MONGO_COLLECTION,
            )
            try:
                await app.state.store.ping()
            except Exception:
                logger.exception("Failed to connect to MongoDB")
                app.state.store.close()
                raise
            logger.info(f"Connected to MongoDB database {settings.DB_NAME!r}")

        logger.info(f"Startup complete, server is running on http://{settings.HOST}:{settings.PORT}")
        yield

        if owned:
            app.state.store.close()

    app = FastAPI(
        title="Messages API",
        description="Store and retrieve messages between a sender and a receiver",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(messages_router)

    # =========================================================================
    # Root and Health Routes
    # =========================================================================

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return WELCOME_TEXT

    @app.get("/health/live", response_model=HealthResponse, response_model_exclude_none=True)
    async def health_live() -> HealthResponse:
        """Liveness probe - always 200 once the app is running."""
        return HealthResponse(status="ok")

    @app.get("/health/ready", response_model=HealthResponse, response_model_exclude_none=True)
    async def health_ready(response: Response) -> HealthResponse:
        """Readiness probe - 200 only if MongoDB answers a ping, otherwise 503."""
        try:
            await app.state.store.ping()
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            return HealthResponse(status="not_ready", reason="Database not reachable")
        return HealthResponse(status="ready")

    # =========================================================================
    # Metrics Route
    # =========================================================================

    @app.get("/metrics")
    async def metrics() -> Response:
        """Expose Prometheus-style metrics in text exposition format."""
        return Response(content=get_metrics(), media_type=get_metrics_content_type())

    return app
