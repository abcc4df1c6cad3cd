"""
Order Service

Transport-agnostic entry point to the order engine. The HTTP routes, the
scripts and the tests all go through this one class, so pricing and
analytics have a single implementation no matter how they are reached.

Usage:
    from app.services.order_service import get_order_service

    service = get_order_service()
    order = await service.create_order(payload)
    order = await service.complete_order(order.id)
    report = await service.get_analytics()

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from functools import lru_cache
from typing import Any, Mapping, Optional, Union

from app.core.config import Settings, get_settings
from app.core.exceptions import NotFoundError
from app.models import OrderStatus
from app.schemas import AnalyticsReport, Order, OrderCreate
from app.services.analytics import AnalyticsAggregator
from app.services.order_factory import Clock, OrderFactory
from app.services.pricing import format_price
from app.services.status import StatusTransition
from app.services.storage import BaseOrderStore, get_order_store

logger = logging.getLogger(__name__)


class OrderService:
    """
    Create, list, complete and analyze orders.

    Attributes:
        store: Order store holding the collection
        factory: Validates and prices new orders
        transition: Completes orders
        aggregator: Computes the analytics report
    """

    def __init__(
        self,
        store: BaseOrderStore,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        settings = settings or get_settings()
        self.store = store
        self.key_prefix = settings.order_key_prefix
        self.factory = OrderFactory(
            service_charge_rate=settings.service_charge_rate,
            id_prefix=settings.order_id_prefix,
            clock=clock,
        )
        self.transition = StatusTransition(store, key_prefix=self.key_prefix, clock=clock)
        self.aggregator = AnalyticsAggregator(
            store,
            key_prefix=self.key_prefix,
            top_n=settings.top_items_limit,
        )

    def key_for(self, order_id: str) -> str:
        return f"{self.key_prefix}{order_id}"

    async def create_order(self, payload: Union[OrderCreate, Mapping[str, Any]]) -> Order:
        """
        Validate, price and store a new order.

        Raises:
            ValidationError: If the payload breaks a validation rule
            StorageError: If the store write fails
        """
        order = self.factory.create(payload)
        await self.store.put(self.key_for(order.id), order)

        logger.info(
            f"Order {order.id} created for {order.customer_name} "
            f"({order.pickup_type.value}, {len(order.items)} items, {format_price(order.total_price)})"
        )
        return order

    async def get_order(self, order_id: str) -> Order:
        """
        Fetch a single order.

        Raises:
            NotFoundError: If no order has this id
        """
        order = await self.store.get(self.key_for(order_id))
        if order is None:
            raise NotFoundError(order_id)
        return order

    async def list_orders(self, status: OrderStatus) -> list[Order]:
        """Orders with the given status, most recent first."""
        orders = await self.store.scan_by_prefix(self.key_prefix)
        matching = [order for order in orders if order.status == status]
        matching.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        return matching

    async def list_active_orders(self) -> list[Order]:
        return await self.list_orders(OrderStatus.ACTIVE)

    async def list_completed_orders(self) -> list[Order]:
        return await self.list_orders(OrderStatus.COMPLETED)

    async def complete_order(self, order_id: str) -> Order:
        """
        Move an ACTIVE order to COMPLETED.

        Raises:
            NotFoundError: If no order has this id
            ConflictError: If the order is already completed
        """
        return await self.transition.complete_order(order_id)

    async def get_analytics(self, top_n: Optional[int] = None) -> AnalyticsReport:
        """Analytics report over every stored order."""
        return await self.aggregator.compute_analytics(top_n=top_n)


@lru_cache()
def get_order_service() -> OrderService:
    """
    Get the shared order service, bound to the configured store.

    Returns:
        OrderService: Service instance used by the API routes
    """
    return OrderService(get_order_store())


def reset_order_service() -> None:
    """Clear the cached service instance."""
    get_order_service.cache_clear()
