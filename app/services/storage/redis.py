"""
Redis Order Store Implementation

Stores each order as a JSON string under its key. Prefix scans use
``SCAN MATCH <prefix>*`` followed by ``MGET``; the status transition uses
optimistic locking (WATCH / MULTI / EXEC), so a concurrent writer makes the
compare-and-set fail instead of being overwritten.

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from app.core.exceptions import StorageError
from app.models import OrderStatus
from app.schemas import Order
from app.services.storage.base import BaseOrderStore

logger = logging.getLogger(__name__)

SCAN_BATCH_SIZE = 500


def _escape_pattern(prefix: str) -> str:
    """Escape glob metacharacters so the prefix matches literally."""
    return "".join(f"\\{ch}" if ch in "*?[]\\" else ch for ch in prefix)


class RedisOrderStore(BaseOrderStore):
    """
    Redis-backed order store.

    Attributes:
        client: redis.asyncio client
    """

    def __init__(self, client: aioredis.Redis):
        self.client = client
        logger.info("RedisOrderStore initialized")

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisOrderStore":
        return cls(aioredis.from_url(redis_url, decode_responses=True))

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "redis"

    async def close(self) -> None:
        await self.client.aclose()

    async def put(self, key: str, order: Order) -> None:
        try:
            await self.client.set(key, order.model_dump_json())
        except RedisError as e:
            logger.error(f"Failed to write {key}: {e}")
            raise StorageError(f"Could not write {key}", str(e)) from e

    async def get(self, key: str) -> Optional[Order]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.error(f"Failed to read {key}: {e}")
            raise StorageError(f"Could not read {key}", str(e)) from e

        return None if raw is None else Order.model_validate_json(raw)

    async def scan_by_prefix(self, prefix: str) -> list[Order]:
        try:
            keys = [
                key
                async for key in self.client.scan_iter(
                    match=f"{_escape_pattern(prefix)}*",
                    count=SCAN_BATCH_SIZE,
                )
            ]
            values = await self.client.mget(keys) if keys else []
        except RedisError as e:
            logger.error(f"Failed to scan {prefix!r}: {e}")
            raise StorageError(f"Could not scan {prefix!r}", str(e)) from e

        # Keys deleted between SCAN and MGET come back as None
        return [Order.model_validate_json(raw) for raw in values if raw is not None]

    async def compare_and_set(
        self,
        key: str,
        order: Order,
        expected_status: OrderStatus,
    ) -> bool:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                raw = await pipe.get(key)
                if raw is None:
                    await pipe.unwatch()
                    return False
                if Order.model_validate_json(raw).status != expected_status:
                    await pipe.unwatch()
                    return False

                pipe.multi()
                pipe.set(key, order.model_dump_json())
                await pipe.execute()
                return True
        except WatchError:
            logger.warning(f"Concurrent write on {key}, compare-and-set aborted")
            return False
        except RedisError as e:
            logger.error(f"Failed to update {key}: {e}")
            raise StorageError(f"Could not update {key}", str(e)) from e

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False
