"""
Order Enums and Database Models

The order collection is persisted as a key/value table: one row per order,
keyed by ``<prefix><order id>``, holding the JSON document of the order.
The ``status`` and ``created_at`` columns are copies of document fields,
kept so that the status transition can be a conditional UPDATE and prefix
scans come back in a stable order.

Author: Khalil Bannouri
Version: 4.0.0
"""

from sqlalchemy import Column, String, DateTime, Text
from app.database import Base
import enum


class OrderStatus(str, enum.Enum):
    """Order status workflow. ACTIVE -> COMPLETED, exactly once."""
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class PickupType(str, enum.Enum):
    """How the customer receives the order."""
    DINE_IN = "Dine-In"
    TAKE_OUT = "Take-Out"

    @classmethod
    def parse(cls, value: str) -> "PickupType":
        """
        Accept the wire values as well as the enum names.

        "Dine-In", "DINE_IN", "dine in" and "dinein" all map to DINE_IN.

        Raises:
            ValueError: If the value matches neither pickup type
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError("Pickup type must be 'Dine-In' or 'Take-Out'")
        normalized = "".join(ch for ch in value.lower() if ch.isalnum())
        for member in cls:
            if normalized in (
                "".join(ch for ch in member.value.lower() if ch.isalnum()),
                member.name.lower().replace("_", ""),
            ):
                return member
        raise ValueError("Pickup type must be 'Dine-In' or 'Take-Out'")


class OrderRecord(Base):
    """
    Key/value row holding one serialized order.
    """
    __tablename__ = "order_kv"

    key = Column(String(200), primary_key=True)
    status = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    value = Column(Text, nullable=False)  # JSON document of the order

    def __repr__(self):
        return f"<OrderRecord {self.key} - {self.status}>"
