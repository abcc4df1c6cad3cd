"""
Order Analytics

Builds the dashboard report from the full order collection:

    - order counts, split by status
    - revenue, in total and per pickup type (ACTIVE orders included)
    - pickup type distribution
    - most ordered items (top N by summed quantity)
    - orders per UTC calendar day

Every call rescans the whole collection; nothing is cached or maintained
incrementally, so the cost grows linearly with the number of orders.

Ties in the most-ordered ranking keep first-seen order, where orders are
visited oldest first (by created_at, then id) and items in order.

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from datetime import timezone
from decimal import Decimal
from typing import Iterable, Optional

from app.models import OrderStatus, PickupType
from app.schemas import (
    AnalyticsReport,
    DailyOrderCount,
    ItemCount,
    Order,
    PickupTypeCounts,
    PickupTypeRevenue,
)
from app.services.pricing import ZERO, money_context
from app.services.storage.base import BaseOrderStore

logger = logging.getLogger(__name__)

DEFAULT_TOP_ITEMS = 10


def rank_items(orders: Iterable[Order], top_n: int = DEFAULT_TOP_ITEMS) -> list[ItemCount]:
    """Sum quantities per item name and keep the top_n, highest first."""
    totals: dict[str, int] = {}
    for order in orders:
        for item in order.items:
            totals[item.name] = totals.get(item.name, 0) + item.quantity

    # sorted() is stable, so equal counts stay in first-seen order
    ranked = sorted(totals.items(), key=lambda entry: entry[1], reverse=True)
    return [ItemCount(name=name, count=count) for name, count in ranked[:max(top_n, 0)]]


def count_by_day(orders: Iterable[Order]) -> list[DailyOrderCount]:
    """Bucket orders by the UTC date of created_at, ascending."""
    per_day: dict[str, int] = {}
    for order in orders:
        day = order.created_at.astimezone(timezone.utc).date().isoformat()
        per_day[day] = per_day.get(day, 0) + 1

    return [DailyOrderCount(date=day, count=count) for day, count in sorted(per_day.items())]


def build_report(orders: Iterable[Order], top_n: int = DEFAULT_TOP_ITEMS) -> AnalyticsReport:
    """
    Compute the analytics report over a set of orders.

    Args:
        orders: Every order, any status
        top_n: Length of the most-ordered items ranking

    Returns:
        AnalyticsReport with exact (unrounded) revenue figures
    """
    ordered = sorted(orders, key=lambda o: (o.created_at, o.id))

    status_counts = {status: 0 for status in OrderStatus}
    pickup_counts = {pickup: 0 for pickup in PickupType}
    pickup_revenue: dict[PickupType, Decimal] = {pickup: ZERO for pickup in PickupType}
    total_revenue = ZERO

    with money_context():
        for order in ordered:
            status_counts[order.status] += 1
            pickup_counts[order.pickup_type] += 1
            pickup_revenue[order.pickup_type] += order.total_price
            total_revenue += order.total_price

    return AnalyticsReport(
        total_orders=len(ordered),
        active_orders_count=status_counts[OrderStatus.ACTIVE],
        completed_orders_count=status_counts[OrderStatus.COMPLETED],
        total_revenue=total_revenue,
        pickup_type_distribution=PickupTypeCounts(
            dine_in=pickup_counts[PickupType.DINE_IN],
            take_out=pickup_counts[PickupType.TAKE_OUT],
        ),
        revenue_by_pickup_type=PickupTypeRevenue(
            dine_in=pickup_revenue[PickupType.DINE_IN],
            take_out=pickup_revenue[PickupType.TAKE_OUT],
        ),
        most_ordered_items=rank_items(ordered, top_n),
        orders_over_time=count_by_day(ordered),
    )


class AnalyticsAggregator:
    """
    Computes the analytics report from the order store.

    Attributes:
        store: Order store to scan
        key_prefix: Namespace orders are stored under
        top_n: Default length of the most-ordered items ranking
    """

    def __init__(
        self,
        store: BaseOrderStore,
        key_prefix: str = "order:",
        top_n: int = DEFAULT_TOP_ITEMS,
    ):
        self.store = store
        self.key_prefix = key_prefix
        self.top_n = top_n

    async def compute_analytics(self, top_n: Optional[int] = None) -> AnalyticsReport:
        """
        Scan every stored order and build the report.

        Raises:
            StorageError: If the scan fails
        """
        orders = await self.store.scan_by_prefix(self.key_prefix)
        report = build_report(orders, self.top_n if top_n is None else top_n)
        logger.debug(f"Analytics computed over {report.total_orders} orders")
        return report
