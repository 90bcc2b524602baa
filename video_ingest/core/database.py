import logging
from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorClient

from .config import settings

logger = logging.getLogger(__name__)


class MongoDB:
    client: AsyncIOMotorClient = None
    db = None

mongodb = MongoDB()

async def connect_to_mongo():
    mongodb.client = AsyncIOMotorClient(settings.MONGO_URI, tz_aware=True)
    mongodb.db = mongodb.client[settings.MONGO_DB]
    logger.info(f"Connected to MongoDB: {settings.MONGO_DB}")

async def close_mongo_connection():
    if mongodb.client is not None:
        mongodb.client.close()
        mongodb.client = None
        mongodb.db = None
    logger.info("MongoDB connection closed")


def get_db():
    if mongodb.db is None:
        raise RuntimeError("MongoDB not initialized")
    return mongodb.db


@asynccontextmanager
async def mongo_session():
    """
    Motor client scoped to the current event loop.

    Worker runs each pipeline inside its own asyncio.run(), so they cannot
    share the API's long-lived client.
    """
    client = AsyncIOMotorClient(settings.MONGO_URI, tz_aware=True)
    try:
        yield client[settings.MONGO_DB]
    finally:
        client.close()
