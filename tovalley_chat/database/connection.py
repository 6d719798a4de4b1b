import logging
from typing import Optional

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from tovalley_chat.core.config import settings


logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None
_redis: Optional[redis.Redis] = None


async def connect_to_mongo() -> None:
    global _client
    if _client is not None:
        return
    _client = AsyncIOMotorClient(settings.mongo_url)
    logger.info("Connected to MongoDB database %s", settings.mongo_db_name)


async def close_mongo_connection() -> None:
    global _client
    if _client is None:
        return
    _client.close()
    _client = None
    logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    if _client is None:
        raise RuntimeError("MongoDB client is not initialised; call connect_to_mongo() first")
    return _client[settings.mongo_db_name]


async def mongo_db_dependency() -> AsyncIOMotorDatabase:
    return get_database()


def get_redis() -> Optional[redis.Redis]:
    """Presence store client, or None when REDIS_URL is not configured."""
    global _redis
    if _redis is not None:
        return _redis
    if not settings.redis_url:
        return None
    _redis = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is None:
        return
    await _redis.aclose()
    _redis = None
