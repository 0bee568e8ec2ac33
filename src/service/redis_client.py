import redis.asyncio as aioredis
import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)

redis_clients = {}


def get_redis_client() -> Optional[aioredis.Redis]:
    if 'default' not in redis_clients:
        redis_url = os.getenv("REDIS_URL", "redis://localhost:6379")
        logger.info(f"Creating new default Redis client with: URL {redis_url}")
        try:
            redis_clients['default'] = aioredis.from_url(redis_url, decode_responses=True)
        except ValueError as e:
            logger.error(f"Invalid REDIS_URL {redis_url}: {e}")
            return None

    return redis_clients['default']


async def close_redis_clients() -> None:
    for name, client in list(redis_clients.items()):
        await client.aclose()
        logger.info(f"Closed Redis client '{name}'")
        del redis_clients[name]
