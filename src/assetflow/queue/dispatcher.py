"""Publishes intake requests onto the processing queue."""

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from celery import Celery

from assetflow.models.job import JobRequest
from assetflow.queue.tasks import PROCESS_ASSET_TASK

logger = logging.getLogger(__name__)


class JobDispatcher:
    """Assigns a request identity and sends the job to the worker queue."""

    def __init__(self, celery_app: Celery, queue_name: str):
        self.celery_app = celery_app
        self.queue_name = queue_name

    def dispatch(
        self,
        source: str,
        original_url: str,
        overwrite_url: str,
        asset_config: Optional[Dict[str, Any]] = None,
    ) -> JobRequest:
        """Create a job with a fresh uuid4 request id and publish it.

        Args:
            source: Caller identifier
            original_url: Signed or public read URL of the asset
            overwrite_url: Signed write URL for the result
            asset_config: Option bag, forwarded verbatim

        Returns:
            The dispatched JobRequest

        Raises:
            Exception: Whatever the broker connection raises on publish
        """
        job = JobRequest(
            request_id=str(uuid4()),
            source=source,
            original_url=original_url,
            overwrite_url=overwrite_url,
            asset_config=asset_config or {},
        )

        self.celery_app.send_task(
            PROCESS_ASSET_TASK,
            args=[job.to_message()],
            queue=self.queue_name,
            delivery_mode="persistent",
        )

        logger.info(
            "Job sent to queue",
            extra={
                "request_id": job.request_id,
                "source": source,
                "original_url": original_url,
                "queue": self.queue_name,
            },
        )
        return job
