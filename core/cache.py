import logging
import sys

import redis
from redis import Redis

logger = logging.getLogger(__name__)


def get_redis_client(redis_url: str) -> "Redis[str]":
    try:
        # decode_responses=True 讓拿出來的資料直接是字串，不用 decode bytes
        client = redis.from_url(redis_url, decode_responses=True)
        # Ping 一下確保連線成功
        if client.ping():
            logger.info(" ✅ [Redis] Connected.")
            return client
        raise redis.ConnectionError("Ping failed")
    except redis.ConnectionError as e:
        logger.error(f" ❌ [Redis] Connection failed: {e}")
        sys.exit(1)
