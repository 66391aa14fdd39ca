"""Asset job intake and log lookup routes."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from assetflow.queue.dispatcher import JobDispatcher
from assetflow.services.events.event_logger import EventLogger

router = APIRouter(prefix="/api/v1/assets", tags=["assets"])
logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("source", "originalUrl", "overwriteUrl")
MISSING_FIELDS_ERROR = "source, originalUrl, and overwriteUrl are required."


def get_dispatcher(request: Request) -> JobDispatcher:
    return request.app.state.dispatcher


def get_event_logger(request: Request) -> EventLogger:
    return request.app.state.event_logger


@router.post("")
async def create_asset_job(
    request: Request,
    dispatcher: JobDispatcher = Depends(get_dispatcher),
) -> Any:
    """Validate an intake request and queue it for processing."""
    try:
        body = await request.json()
    except ValueError:
        body = None

    if not isinstance(body, dict) or not all(
        isinstance(body.get(field), str) and body.get(field) for field in REQUIRED_FIELDS
    ):
        logger.error("Missing required fields")
        return JSONResponse(status_code=400, content={"error": MISSING_FIELDS_ERROR})

    asset_config = body.get("assetConfig")
    if not isinstance(asset_config, dict):
        asset_config = {}

    try:
        job = dispatcher.dispatch(
            source=body["source"],
            original_url=body["originalUrl"],
            overwrite_url=body["overwriteUrl"],
            asset_config=asset_config,
        )
    except Exception as e:
        logger.error(
            "Error in create_asset_job",
            extra={"error": str(e), "original_url": body["originalUrl"]},
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"error": "Failed to create asset job"})

    logger.info("Asset job published", extra={"request_id": job.request_id})
    return {"status": "queued", "requestId": job.request_id}


@router.get("/logs")
async def get_asset_log(
    original_url: str = Query(..., alias="originalUrl", min_length=1),
    event_logger: EventLogger = Depends(get_event_logger),
) -> Any:
    """Return the audit trail recorded for an original asset URL."""
    try:
        log = event_logger.get_log(original_url)
    except PyMongoError as e:
        logger.error(
            "Failed to read asset log",
            extra={"original_url": original_url, "error": str(e)},
            exc_info=True,
        )
        return JSONResponse(status_code=500, content={"error": "Failed to read asset log"})

    if log is None:
        return JSONResponse(status_code=404, content={"error": "No log found for originalUrl"})

    return log.model_dump(by_alias=True, mode="json")
