# config/storage.py
import logging
from redis.asyncio import Redis, from_url
from config.settings import Settings
from repository.local_object_store import LocalObjectStore
from repository.object_store import ObjectStore
from repository.redis_object_store import RedisObjectStore

logger = logging.getLogger(__name__)


async def open_redis(url: str) -> Redis:
    client = from_url(
        url,
        encoding="utf-8",
        decode_responses=False,  # object bytes stay raw
        socket_keepalive=True,
        health_check_interval=30,
    )
    # Fail fast on startup if Redis is unreachable.
    await client.ping()
    return client


async def build_object_store(settings: Settings) -> ObjectStore:
    if settings.STORAGE_BACKEND == "redis":
        client = await open_redis(settings.REDIS_URL)
        logger.info("storage.redis namespace=%s", settings.REDIS_NAMESPACE)
        return RedisObjectStore(
            client, settings.REDIS_NAMESPACE, chunk_size=settings.READ_CHUNK_BYTES
        )
    logger.info("storage.local root=%s", settings.STORAGE_PATH)
    return LocalObjectStore(settings.STORAGE_PATH, chunk_size=settings.READ_CHUNK_BYTES)
