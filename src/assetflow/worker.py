"""
Worker entrypoint. Run with:
    celery -A assetflow.worker worker --pool solo --concurrency 1 -l info
"""

from celery.signals import setup_logging as celery_setup_logging

from assetflow.core.logging import setup_logging
from assetflow.queue.celery_app import app
from assetflow.queue import tasks  # noqa: F401  registers assetflow.process_asset


@celery_setup_logging.connect
def configure_worker_logging(**kwargs) -> None:
    setup_logging()


if __name__ == "__main__":
    app.worker_main(["worker", "--pool", "solo", "--concurrency", "1", "--loglevel", "info"])
