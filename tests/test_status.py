"""Tests for the ACTIVE -> COMPLETED transition."""

import asyncio
from datetime import timedelta

import pytest

from app.core.exceptions import ConflictError, NotFoundError
from app.models import OrderStatus
from app.schemas import Order
from app.services.status import StatusTransition

from tests.factories import START, make_order


@pytest.fixture
def transition(store, clock):
    return StatusTransition(store, key_prefix="order:", clock=clock)


async def _stored(store, order: Order) -> Order:
    await store.put(f"order:{order.id}", order)
    return order


class TestComplete:
    def test_sets_status_and_timestamp(self, transition, clock):
        clock.advance(minutes=15)
        completed = transition.complete(make_order())

        assert completed.status == OrderStatus.COMPLETED
        assert completed.completed_at == START + timedelta(minutes=15)
        assert completed.created_at == START

    def test_other_fields_unchanged(self, transition):
        order = make_order(total="12.345")
        completed = transition.complete(order)

        assert completed.total_price == order.total_price
        assert completed.items == order.items
        assert completed.pickup_type == order.pickup_type

    def test_clock_behind_creation(self, transition, clock):
        clock.advance(hours=-1)
        completed = transition.complete(make_order())
        assert completed.completed_at == START

    def test_already_completed(self, transition):
        with pytest.raises(ConflictError):
            transition.complete(make_order(status=OrderStatus.COMPLETED))


class TestCompleteOrder:
    async def test_persists_completion(self, transition, store, clock):
        await _stored(store, make_order("order_a"))
        clock.advance(minutes=5)

        completed = await transition.complete_order("order_a")

        stored = await store.get("order:order_a")
        assert stored == completed
        assert stored.status == OrderStatus.COMPLETED

    async def test_unknown_id(self, transition):
        with pytest.raises(NotFoundError) as exc_info:
            await transition.complete_order("order_missing")
        assert exc_info.value.message == "Order order_missing not found"

    async def test_second_completion_conflicts(self, transition, store, clock):
        await _stored(store, make_order("order_a"))
        first = await transition.complete_order("order_a")

        clock.advance(minutes=30)
        with pytest.raises(ConflictError):
            await transition.complete_order("order_a")

        stored = await store.get("order:order_a")
        assert stored.completed_at == first.completed_at

    async def test_lost_race_conflicts(self, transition, store, monkeypatch):
        """A completion based on a stale read must not overwrite the winner."""
        stale = await _stored(store, make_order("order_a"))
        winner = transition.complete(stale)
        await store.put("order:order_a", winner)

        async def stale_get(key):
            return stale

        monkeypatch.setattr(store, "get", stale_get)
        transition.clock = lambda: START + timedelta(hours=2)

        with pytest.raises(ConflictError, match="another request"):
            await transition.complete_order("order_a")

        monkeypatch.undo()
        stored = await store.get("order:order_a")
        assert stored.completed_at == winner.completed_at

    async def test_concurrent_completions(self, transition, store):
        await _stored(store, make_order("order_a"))

        results = await asyncio.gather(
            transition.complete_order("order_a"),
            transition.complete_order("order_a"),
            return_exceptions=True,
        )

        assert sum(isinstance(r, Order) for r in results) == 1
        assert sum(isinstance(r, ConflictError) for r in results) == 1
