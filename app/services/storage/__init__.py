"""
Order Store Factory

Provides a single entry point for obtaining the order store. The rest of
the application only sees ``BaseOrderStore``.

Usage:
    from app.services.storage import get_order_store

    store = get_order_store()
    await store.put("order:abc", order)

Backend selection:
    - STORAGE_BACKEND=memory → InMemoryOrderStore
    - STORAGE_BACKEND=sql    → SqlOrderStore (DATABASE_URL)
    - STORAGE_BACKEND=redis  → RedisOrderStore (REDIS_URL)
    - unset → memory in development, sql in staging/production

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from functools import lru_cache

from app.core.config import StorageBackend, get_settings
from app.database import create_engine_for_url
from app.services.storage.base import BaseOrderStore
from app.services.storage.memory import InMemoryOrderStore
from app.services.storage.redis import RedisOrderStore
from app.services.storage.sql import SqlOrderStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_store() -> BaseOrderStore:
    """
    Get the configured order store instance.

    The instance is cached so every request shares one store (and, for
    the in-memory backend, one set of orders).

    Returns:
        BaseOrderStore: Configured order store
    """
    settings = get_settings()
    backend = settings.resolved_storage_backend

    if backend == StorageBackend.SQL:
        logger.info(f"Order Store: Using SqlOrderStore ({settings.env_mode.value} mode)")
        return SqlOrderStore(create_engine_for_url(settings.database_url, echo=settings.debug))

    if backend == StorageBackend.REDIS:
        logger.info(f"Order Store: Using RedisOrderStore ({settings.env_mode.value} mode)")
        return RedisOrderStore.from_url(settings.redis_url)

    logger.info(f"Order Store: Using InMemoryOrderStore ({settings.env_mode.value} mode)")
    return InMemoryOrderStore()


def reset_order_store() -> None:
    """
    Clear the cached store instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_order_store.cache_clear()
    logger.debug("Order store cache cleared")


__all__ = [
    "get_order_store",
    "reset_order_store",
    "BaseOrderStore",
    "InMemoryOrderStore",
    "SqlOrderStore",
    "RedisOrderStore",
]
