"""
Order Status Transition

The only lifecycle move an order has: ACTIVE -> COMPLETED.

The write is a compare-and-set on the stored status, so when two requests
complete the same order at once exactly one succeeds and the other gets a
ConflictError; ``completed_at`` is never silently overwritten.

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from typing import Optional

from app.core.exceptions import ConflictError, NotFoundError
from app.models import OrderStatus
from app.schemas import Order
from app.services.order_factory import Clock, utc_now
from app.services.storage.base import BaseOrderStore

logger = logging.getLogger(__name__)


class StatusTransition:
    """
    Completes orders held in an order store.

    Attributes:
        store: Order store holding the orders
        key_prefix: Namespace orders are stored under
        clock: Source of completion timestamps
    """

    def __init__(
        self,
        store: BaseOrderStore,
        key_prefix: str = "order:",
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.key_prefix = key_prefix
        self.clock = clock or utc_now

    def key_for(self, order_id: str) -> str:
        return f"{self.key_prefix}{order_id}"

    def complete(self, order: Order) -> Order:
        """
        Return the COMPLETED version of an ACTIVE order.

        Raises:
            ConflictError: If the order is already completed
        """
        if order.status != OrderStatus.ACTIVE:
            raise ConflictError(f"Order {order.id} is already {order.status.value}")

        # A clock that runs behind the creation stamp must not break created_at <= completed_at
        completed_at = max(self.clock(), order.created_at)

        return Order.model_validate({
            **order.model_dump(),
            "status": OrderStatus.COMPLETED,
            "completed_at": completed_at,
        })

    async def complete_order(self, order_id: str) -> Order:
        """
        Mark a stored order as completed.

        Args:
            order_id: Id of the order to complete

        Returns:
            The updated order

        Raises:
            NotFoundError: If no order has this id
            ConflictError: If the order is not ACTIVE anymore
            StorageError: If the store fails
        """
        key = self.key_for(order_id)
        order = await self.store.get(key)
        if order is None:
            raise NotFoundError(order_id)

        completed = self.complete(order)

        if not await self.store.compare_and_set(key, completed, expected_status=OrderStatus.ACTIVE):
            raise ConflictError(f"Order {order_id} was completed by another request")

        logger.info(f"Order {order_id} completed")
        return completed
