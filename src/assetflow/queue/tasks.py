"""
Celery task that consumes asset jobs from the processing queue.

Messages are acknowledged only after the orchestrator returns. Any failure
rejects the delivery without requeue, so a poison message is dropped rather
than redelivered forever.
"""

import logging
from typing import Any, Dict

from celery import Task
from celery.exceptions import Reject

from assetflow.queue.celery_app import app
from assetflow.services.processing.dependencies import build_orchestrator
from assetflow.services.processing.exceptions import (
    MessageParseError,
    UnknownAssetKindError,
)
from assetflow.services.processing.orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)

PROCESS_ASSET_TASK = "assetflow.process_asset"


class PipelineTask(Task):
    """Task base holding one orchestrator per worker process."""

    _orchestrator: PipelineOrchestrator | None = None

    @property
    def orchestrator(self) -> PipelineOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = build_orchestrator()
        return self._orchestrator


def handle_delivery(orchestrator: PipelineOrchestrator, payload: Dict[str, Any]) -> None:
    """Run one delivery through the orchestrator.

    Raises:
        Reject: With ``requeue=False`` for every failure
    """
    try:
        orchestrator.process_message(payload)
    except (MessageParseError, UnknownAssetKindError) as e:
        logger.error("Dropping undeliverable message", extra={"error": str(e)})
        raise Reject(str(e), requeue=False) from e
    except Exception as e:
        logger.error(
            "Error processing message",
            extra={"error": str(e), "error_type": type(e).__name__},
            exc_info=True,
        )
        raise Reject(str(e), requeue=False) from e

    logger.info("Message acknowledged", extra={"task": PROCESS_ASSET_TASK})


@app.task(bind=True, base=PipelineTask, name=PROCESS_ASSET_TASK)
def process_asset(self: PipelineTask, payload: Dict[str, Any]) -> None:
    """Process one queued asset job."""
    handle_delivery(self.orchestrator, payload)
