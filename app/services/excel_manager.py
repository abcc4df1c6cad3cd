"""
Excel File Manager with Concurrency Control

Appends completed orders to an Excel ledger. Several Celery workers may
export at once, so every read-modify-write of the workbook happens under
a file lock.

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from filelock import FileLock, Timeout

from app.core.config import Settings, get_settings
from app.schemas import Order
from app.services.pricing import round_money

logger = logging.getLogger(__name__)


class ExcelManager:
    """
    File-locked Excel ledger of completed orders.

    Attributes:
        ledger_file: Path of the workbook
        lock_file: Path of the lock guarding it
        lock_timeout: Seconds to wait for the lock
    """

    LEDGER_COLUMNS = [
        "order_id",
        "customer_first_name",
        "customer_last_name",
        "pickup_type",
        "items",
        "notes",
        "subtotal",
        "service_charge",
        "extra_charges",
        "total_price",
        "status",
        "created_at",
        "completed_at",
        "exported_at",
    ]

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.data_dir = Path(settings.data_directory)
        self.ledger_file = self.data_dir / settings.excel_filename
        self.lock_file = self.data_dir / f"{settings.excel_filename}.lock"
        self.lock_timeout = settings.excel_lock_timeout

    def _ensure_data_dir(self) -> None:
        """Create data directory if needed."""
        if not self.data_dir.exists():
            self.data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.data_dir}")

    def _load_or_create_df(self) -> pd.DataFrame:
        """Load existing ledger or start an empty one."""
        if self.ledger_file.exists():
            return pd.read_excel(self.ledger_file, engine="openpyxl")
        return pd.DataFrame(columns=self.LEDGER_COLUMNS)

    def export_order(self, order_data: dict[str, Any]) -> dict[str, Any]:
        """
        Append one order row to the ledger.

        Args:
            order_data: Row built by ``build_ledger_row``

        Returns:
            dict with success flag, message, order_id and exported_at
        """
        self._ensure_data_dir()

        order_id = order_data.get("order_id", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }

        try:
            lock = FileLock(str(self.lock_file), timeout=self.lock_timeout)

            with lock:
                logger.debug(f"Lock acquired for Order {order_id}")

                df = self._load_or_create_df()

                export_time = datetime.now().isoformat()
                new_row = {column: order_data.get(column) for column in self.LEDGER_COLUMNS}
                new_row["exported_at"] = export_time

                if df.empty:
                    df = pd.DataFrame([new_row], columns=self.LEDGER_COLUMNS)
                else:
                    df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_excel(str(self.ledger_file), index=False, engine="openpyxl")

                logger.info(f"Order {order_id} exported to Excel")

                result["success"] = True
                result["message"] = f"Order {order_id} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for Order {order_id}")

        except Timeout:
            result["message"] = f"Lock timeout ({self.lock_timeout}s)"
            logger.error(f"Lock timeout for Order {order_id}")

        return result

    def get_all_orders(self) -> list[dict[str, Any]]:
        """Get all ledger rows."""
        if not self.ledger_file.exists():
            return []

        df = pd.read_excel(self.ledger_file, engine="openpyxl")
        return df.to_dict("records")

    def clear_all(self) -> bool:
        """Delete the ledger and its lock file."""
        removed = False
        for f in [self.ledger_file, self.lock_file]:
            if f.exists():
                f.unlink()
                removed = True
        logger.info("Excel ledger cleared")
        return removed


def build_ledger_row(order: Order) -> dict[str, Any]:
    """
    Flatten an Order into a JSON-safe ledger row.

    Money is rounded to cents here; this is a presentation boundary.
    """
    return {
        "order_id": order.id,
        "customer_first_name": order.customer_first_name,
        "customer_last_name": order.customer_last_name,
        "pickup_type": order.pickup_type.value,
        "items": ", ".join(f"{item.quantity}x {item.name}" for item in order.items),
        "notes": order.notes,
        "subtotal": float(round_money(order.subtotal)),
        "service_charge": float(round_money(order.service_charge)),
        "extra_charges": float(round_money(order.extra_charges)),
        "total_price": float(round_money(order.total_price)),
        "status": order.status.value,
        "created_at": order.created_at.isoformat(),
        "completed_at": order.completed_at.isoformat() if order.completed_at else None,
    }
