"""Construction of the worker's long-lived clients and orchestrator."""

import logging

import httpx
from pymongo.errors import PyMongoError

from assetflow.core.config import Settings, settings as default_settings
from assetflow.db.mongo import create_mongo_client, get_log_collection
from assetflow.services.events.event_logger import EventLogger
from assetflow.services.processing.orchestrator import PipelineOrchestrator
from assetflow.services.remote.transport import AssetTransport

logger = logging.getLogger(__name__)


def build_orchestrator(settings: Settings = default_settings) -> PipelineOrchestrator:
    """Build a PipelineOrchestrator wired to real HTTP and MongoDB clients.

    Index creation is attempted once; if MongoDB is unreachable the worker
    still starts and audit writes degrade to operational log entries.
    """
    http_client = httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
    mongo_client = create_mongo_client(settings)
    event_logger = EventLogger(get_log_collection(mongo_client, settings))

    try:
        event_logger.ensure_indexes()
    except PyMongoError as e:
        logger.error("Failed to ensure log indexes", extra={"error": str(e)}, exc_info=True)

    logger.info(
        "Pipeline orchestrator ready",
        extra={"work_dir": str(settings.work_dir_path), "queue": settings.PROCESSING_QUEUE},
    )
    return PipelineOrchestrator(
        transport=AssetTransport(http_client),
        event_logger=event_logger,
        work_dir=settings.work_dir_path,
        video_target_width=settings.VIDEO_TARGET_WIDTH,
    )
