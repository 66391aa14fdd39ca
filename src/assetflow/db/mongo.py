"""MongoDB client construction for the event log store."""

import logging

from pymongo import MongoClient
from pymongo.collection import Collection

from assetflow.core.config import Settings

logger = logging.getLogger(__name__)


def create_mongo_client(settings: Settings) -> MongoClient:
    """
    Create a MongoDB client. The caller owns it and must close it.

    pymongo connects lazily, so this does not block on the server.
    """
    logger.info("Creating MongoDB client", extra={"db_name": settings.MONGO_DB_NAME})
    return MongoClient(settings.MONGO_URI, tz_aware=True)


def get_log_collection(client: MongoClient, settings: Settings) -> Collection:
    return client[settings.MONGO_DB_NAME][settings.LOG_COLLECTION]
