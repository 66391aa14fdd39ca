from celery import Celery

from assetflow.core.config import settings

app = Celery(
    "assetflow",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

app.conf.update(
    task_default_queue=settings.PROCESSING_QUEUE,
    task_default_delivery_mode="persistent",

    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],

    timezone="UTC",
    enable_utc=True,

    # One job fully processed before the next delivery is taken
    task_acks_late=True,
    task_reject_on_worker_lost=False,
    worker_prefetch_multiplier=1,
    worker_concurrency=1,
    worker_hijack_root_logger=False,

    task_ignore_result=True,
)
