"""
Order Store Abstract Base Class

Defines the key/value contract every order store implements. The engine
only ever needs point reads, point writes, a prefix scan and a
compare-and-set on the order status, so any backend that can offer those
can hold the order collection.

Design Pattern: Strategy Pattern
    - InMemoryOrderStore for development and tests
    - SqlOrderStore for PostgreSQL (or SQLite) via SQLAlchemy
    - RedisOrderStore for Redis

Author: Khalil Bannouri
Version: 4.0.0
"""

from abc import ABC, abstractmethod
from typing import Optional

from app.models import OrderStatus
from app.schemas import Order


class BaseOrderStore(ABC):
    """
    Abstract base class for order stores.

    Implementations wrap their driver errors in ``StorageError``.

    Example:
        >>> store = get_order_store()
        >>> await store.put("order:abc", order)
        >>> await store.get("order:abc")
        Order(id='abc', ...)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the storage backend.

        Returns:
            str: Backend name (e.g., "memory", "sql", "redis")
        """
        pass

    @abstractmethod
    async def put(self, key: str, order: Order) -> None:
        """
        Write an order under the key, replacing any previous value.

        Raises:
            StorageError: If the backend write fails
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[Order]:
        """
        Read the order stored under the key.

        Returns:
            Order if present, None otherwise

        Raises:
            StorageError: If the backend read fails
        """
        pass

    @abstractmethod
    async def scan_by_prefix(self, prefix: str) -> list[Order]:
        """
        Return every order whose key starts with the prefix.

        No ordering is promised; callers sort what they need.

        Raises:
            StorageError: If the backend scan fails
        """
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        key: str,
        order: Order,
        expected_status: OrderStatus,
    ) -> bool:
        """
        Replace the stored order only if its current status is expected_status.

        The check and the write happen as one atomic step.

        Returns:
            True if the write happened, False if the key is missing or the
            stored status differs

        Raises:
            StorageError: If the backend operation fails
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the backend.

        Returns:
            bool: True if the store is reachable
        """
        pass

    async def initialize(self) -> None:
        """Prepare the backend (create tables, open pools). No-op by default."""

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
