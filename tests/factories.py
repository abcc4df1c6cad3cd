"""Builders for test orders."""

from datetime import datetime, timezone
from decimal import Decimal

from app.models import OrderStatus, PickupType
from app.schemas import Order, OrderItem

START = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_order(
    order_id: str = "order_1",
    pickup_type: PickupType = PickupType.DINE_IN,
    total: str = "10",
    items=(("Margherita Pizza", "10", 1),),
    created_at: datetime = START,
    status: OrderStatus = OrderStatus.ACTIVE,
) -> Order:
    """Build an Order directly, bypassing pricing."""
    return Order(
        id=order_id,
        customer_first_name="Test",
        customer_last_name="Customer",
        pickup_type=pickup_type,
        items=tuple(
            OrderItem(name=name, unit_price=Decimal(price), quantity=quantity)
            for name, price, quantity in items
        ),
        total_price=Decimal(total),
        status=status,
        created_at=created_at,
        completed_at=created_at if status == OrderStatus.COMPLETED else None,
    )
