"""
Redis Connections

Two pools share REDIS_URL:

- a plain redis-py pool, used only for health probes
- an ARQ pool, used to enqueue `send_notifications` jobs

Publishing a quiz commits first and then enqueues; the worker started with
`arq app.worker.WorkerSettings` writes the notification rows later.
"""

import logging
from typing import Optional

from arq.connections import ArqRedis, RedisSettings, create_pool
from redis.asyncio import ConnectionPool, Redis

from app.core.config import settings

logger = logging.getLogger(__name__)

_redis_pool: Optional[ConnectionPool] = None
_arq_pool: Optional[ArqRedis] = None


# ============================================================
# Probe Pool
# ============================================================

def get_redis_pool() -> ConnectionPool:
    """Lazily build the shared probe pool."""
    global _redis_pool

    if _redis_pool is None:
        _redis_pool = ConnectionPool.from_url(settings.REDIS_URL, max_connections=10)
        logger.info(f"Redis pool ready: {settings.REDIS_URL}")
    return _redis_pool


async def close_redis_pool() -> None:
    global _redis_pool

    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None


async def check_redis_connection() -> bool:
    """True when Redis answers PING."""
    try:
        client = Redis(connection_pool=get_redis_pool())
        return bool(await client.ping())
    except Exception as e:
        logger.error(f"Redis ping failed: {e}")
        return False


# ============================================================
# ARQ Queue
# ============================================================

def get_arq_redis_settings() -> RedisSettings:
    """ARQ settings parsed from REDIS_URL, with bounded connection retries."""
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    redis_settings.conn_timeout = 5
    redis_settings.conn_retries = 3
    redis_settings.conn_retry_delay = 1
    return redis_settings


async def get_arq_pool() -> ArqRedis:
    """The pool jobs are enqueued on, created on first use."""
    global _arq_pool

    if _arq_pool is None:
        _arq_pool = await create_pool(get_arq_redis_settings())
        logger.info("ARQ pool ready")
    return _arq_pool


async def close_arq_pool() -> None:
    global _arq_pool

    if _arq_pool is not None:
        await _arq_pool.close()
        _arq_pool = None
