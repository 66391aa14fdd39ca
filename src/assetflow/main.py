"""Main application entrypoint for the AssetFlow intake API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from pymongo.errors import PyMongoError

from assetflow.api.middleware import HTTPErrorLoggingMiddleware
from assetflow.api.v1 import routes_health
from assetflow.api.v1.routes_assets import router as assets_router
from assetflow.core.config import settings
from assetflow.core.logging import setup_logging
from assetflow.db.mongo import create_mongo_client, get_log_collection
from assetflow.queue.celery_app import app as celery_app
from assetflow.queue.dispatcher import JobDispatcher
from assetflow.services.events.event_logger import EventLogger

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the long-lived clients on startup and close them on shutdown."""
    mongo_client = create_mongo_client(settings)
    event_logger = EventLogger(get_log_collection(mongo_client, settings))
    try:
        event_logger.ensure_indexes()
    except PyMongoError as e:
        logger.error("Failed to ensure log indexes", extra={"error": str(e)}, exc_info=True)

    app.state.event_logger = event_logger
    app.state.dispatcher = JobDispatcher(celery_app, settings.PROCESSING_QUEUE)

    logger.info(
        "Asset server started",
        extra={"environment": settings.ENV, "port": settings.PORT},
    )
    try:
        yield
    finally:
        mongo_client.close()
        logger.info("Asset server shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    # Initialize logging first
    setup_logging()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(HTTPErrorLoggingMiddleware)

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(assets_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "Asset Server Running"

    return app


# Export app instance for ASGI servers
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
