"""Tests for the Excel ledger of completed orders."""

from datetime import timedelta

import pytest

from app.models import OrderStatus, PickupType
from app.services.excel_manager import ExcelManager, build_ledger_row

from tests.factories import START, make_order


@pytest.fixture
def manager(settings):
    return ExcelManager(settings)


def _completed(order_id="order_a", total="40.467"):
    return make_order(
        order_id,
        total=total,
        items=(("Margherita Pizza", "12.99", 2), ("Caesar Salad", "8.99", 1)),
        status=OrderStatus.COMPLETED,
    )


class TestBuildLedgerRow:
    def test_flattens_order(self):
        row = build_ledger_row(_completed())

        assert row["order_id"] == "order_a"
        assert row["pickup_type"] == "Dine-In"
        assert row["items"] == "2x Margherita Pizza, 1x Caesar Salad"
        assert row["status"] == "COMPLETED"
        assert row["completed_at"] == START.isoformat()

    def test_money_rounded_to_cents(self):
        row = build_ledger_row(_completed())

        assert row["subtotal"] == 34.97
        assert row["service_charge"] == 5.5
        assert row["total_price"] == 40.47

    def test_active_order_has_no_completion(self):
        row = build_ledger_row(make_order(pickup_type=PickupType.TAKE_OUT))
        assert row["completed_at"] is None
        assert row["pickup_type"] == "Take-Out"


class TestExport:
    def test_empty_ledger(self, manager):
        assert manager.get_all_orders() == []

    def test_export_creates_workbook(self, manager):
        result = manager.export_order(build_ledger_row(_completed()))

        assert result["success"] is True
        assert result["order_id"] == "order_a"
        assert result["exported_at"] is not None
        assert manager.ledger_file.exists()

    def test_rows_are_appended(self, manager):
        manager.export_order(build_ledger_row(_completed("order_a")))
        manager.export_order(build_ledger_row(_completed("order_b", total="12.5")))

        rows = manager.get_all_orders()

        assert [row["order_id"] for row in rows] == ["order_a", "order_b"]
        assert rows[1]["total_price"] == pytest.approx(12.5)
        assert list(rows[0]) == ExcelManager.LEDGER_COLUMNS

    def test_clear_all(self, manager):
        manager.export_order(build_ledger_row(_completed()))

        assert manager.clear_all() is True
        assert manager.get_all_orders() == []
        assert manager.clear_all() is False

    def test_creation_time_is_kept(self, manager):
        order = make_order("order_c", created_at=START + timedelta(days=1), status=OrderStatus.COMPLETED)
        manager.export_order(build_ledger_row(order))

        assert manager.get_all_orders()[0]["created_at"] == order.created_at.isoformat()
