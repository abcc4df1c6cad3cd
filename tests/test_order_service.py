"""Tests for the OrderService facade."""

from decimal import Decimal

import pytest

from app.core.config import Settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import OrderStatus
from app.services.order_service import OrderService, get_order_service, reset_order_service
from app.services.storage import get_order_store, reset_order_store


class TestCreateOrder:
    async def test_stored_under_prefixed_key(self, service, store, sample_payload):
        order = await service.create_order(sample_payload)

        assert await store.get(f"order:{order.id}") == order
        assert len(store) == 1

    async def test_invalid_payload_is_not_stored(self, service, store):
        with pytest.raises(ValidationError):
            await service.create_order({"customer_first_name": "Jane"})
        assert len(store) == 0


class TestGetOrder:
    async def test_roundtrip(self, service, sample_payload):
        order = await service.create_order(sample_payload)
        fetched = await service.get_order(order.id)

        assert fetched == order
        assert fetched.total_price == Decimal("40.467")

    async def test_missing(self, service):
        with pytest.raises(NotFoundError):
            await service.get_order("order_nope")


class TestListOrders:
    async def test_split_by_status_newest_first(self, service, clock, sample_payload):
        first = await service.create_order(sample_payload)
        clock.advance(minutes=1)
        second = await service.create_order(sample_payload)
        clock.advance(minutes=1)
        third = await service.create_order(sample_payload)

        await service.complete_order(second.id)

        active = await service.list_active_orders()
        completed = await service.list_completed_orders()

        assert [o.id for o in active] == [third.id, first.id]
        assert [o.id for o in completed] == [second.id]
        assert completed[0].status == OrderStatus.COMPLETED

    async def test_empty(self, service):
        assert await service.list_active_orders() == []
        assert await service.list_completed_orders() == []


class TestCompleteOrder:
    async def test_complete_then_conflict(self, service, clock, sample_payload):
        order = await service.create_order(sample_payload)
        clock.advance(minutes=20)

        completed = await service.complete_order(order.id)
        assert completed.completed_at == clock.now

        with pytest.raises(ConflictError):
            await service.complete_order(order.id)

    async def test_missing(self, service):
        with pytest.raises(NotFoundError):
            await service.complete_order("order_nope")


class TestAnalytics:
    async def test_report_over_store(self, service, sample_payload):
        await service.create_order(sample_payload)
        order = await service.create_order({**sample_payload, "pickup_type": "Take-Out"})
        await service.complete_order(order.id)

        report = await service.get_analytics()

        assert report.total_orders == 2
        assert report.completed_orders_count == 1
        assert report.total_revenue == Decimal("40.467") + Decimal("36.97")
        assert report.most_ordered_items[0].name == "Margherita Pizza"
        assert report.most_ordered_items[0].count == 4


class TestSettings:
    async def test_rate_and_ranking_from_settings(self, store, clock, sample_payload):
        settings = Settings(
            _env_file=None,
            service_charge_rate=Decimal("0.20"),
            top_items_limit=1,
            order_key_prefix="ticket:",
        )
        service = OrderService(store, settings=settings, clock=clock)

        order = await service.create_order(sample_payload)
        report = await service.get_analytics()

        assert order.total_price == Decimal("34.97") * Decimal("1.20") + Decimal("2.0")
        assert await store.get(f"ticket:{order.id}") is not None
        assert len(report.most_ordered_items) == 1


class TestGetOrderService:
    @pytest.fixture(autouse=True)
    def fresh_caches(self):
        reset_order_service()
        reset_order_store()
        yield
        reset_order_service()
        reset_order_store()

    def test_shared_instance_bound_to_store(self):
        service = get_order_service()

        assert service is get_order_service()
        assert service.store is get_order_store()
        assert service.store.provider_name == "memory"
