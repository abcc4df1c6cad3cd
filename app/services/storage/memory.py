"""
In-Memory Order Store

Keeps serialized orders in a process-local dict. Used in development mode
(ENV_MODE=development) and by the test suite:
    - No database or Redis needed
    - Data disappears when the process exits
    - Orders are stored as JSON, like the real backends, so every read
      returns a fresh copy

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
import threading
from typing import Optional

from app.models import OrderStatus
from app.schemas import Order
from app.services.storage.base import BaseOrderStore

logger = logging.getLogger(__name__)


class InMemoryOrderStore(BaseOrderStore):
    """
    Dict-backed order store.

    A lock makes compare_and_set atomic even when the store is shared
    between threads.
    """

    def __init__(self):
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()
        logger.info("InMemoryOrderStore initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "memory"

    async def put(self, key: str, order: Order) -> None:
        with self._lock:
            self._data[key] = order.model_dump_json()

    async def get(self, key: str) -> Optional[Order]:
        with self._lock:
            raw = self._data.get(key)
        return None if raw is None else Order.model_validate_json(raw)

    async def scan_by_prefix(self, prefix: str) -> list[Order]:
        with self._lock:
            values = [raw for key, raw in self._data.items() if key.startswith(prefix)]
        return [Order.model_validate_json(raw) for raw in values]

    async def compare_and_set(
        self,
        key: str,
        order: Order,
        expected_status: OrderStatus,
    ) -> bool:
        with self._lock:
            raw = self._data.get(key)
            if raw is None:
                return False
            if Order.model_validate_json(raw).status != expected_status:
                return False
            self._data[key] = order.model_dump_json()
            return True

    async def health_check(self) -> bool:
        """The in-memory store is always available."""
        return True

    def __len__(self) -> int:
        return len(self._data)
