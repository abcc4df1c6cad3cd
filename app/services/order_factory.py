"""
Order Factory

Turns raw order input into a priced, ACTIVE ``Order``:

    1. Validate the payload (first violated rule wins)
    2. Drop lines with quantity <= 0
    3. Price the remaining lines (see app.services.pricing)
    4. Stamp a fresh id and creation time

The factory never touches storage; the caller decides where the order goes.

Order ids look like ``order_1718031245123_9f2c4e1ab07d3e55``: a literal
prefix, the creation time in milliseconds and 64 random bits from
``secrets``. Uniqueness is probabilistic, not guaranteed.

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
import secrets
import time
from datetime import datetime, timezone
from decimal import Decimal, DecimalException
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.models import OrderStatus
from app.schemas import Order, OrderCreate
from app.services.pricing import SERVICE_CHARGE_RATE, price_order

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

ID_RANDOM_BYTES = 8


def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def generate_order_id(prefix: str = "order") -> str:
    """
    Build a best-effort unique order id.

    Example:
        >>> generate_order_id()
        'order_1718031245123_9f2c4e1ab07d3e55'
    """
    millis = time.time_ns() // 1_000_000
    return f"{prefix}_{millis}_{secrets.token_hex(ID_RANDOM_BYTES)}"


def first_error_message(exc: PydanticValidationError) -> str:
    """
    Human-readable message for the first error pydantic reported.

    Messages raised by our own validators are returned as-is; built-in
    errors are prefixed with the offending field path.
    """
    error = exc.errors()[0]
    ctx_error = error.get("ctx", {}).get("error")
    if error["type"] == "value_error" and ctx_error is not None:
        return str(ctx_error)

    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]


class OrderFactory:
    """
    Validates and prices new orders.

    Attributes:
        service_charge_rate: Dine-in surcharge rate
        id_prefix: Literal prefix of generated ids
        clock: Source of creation timestamps
        id_generator: Source of order ids

    Example:
        >>> factory = OrderFactory()
        >>> order = factory.create({
        ...     "customer_first_name": "Jane",
        ...     "customer_last_name": "Doe",
        ...     "pickup_type": "Dine-In",
        ...     "items": [{"name": "Margherita Pizza", "price": 12.99, "quantity": 2}],
        ... })
        >>> order.total_price
        Decimal('28.5780')
    """

    def __init__(
        self,
        service_charge_rate: Decimal = SERVICE_CHARGE_RATE,
        id_prefix: str = "order",
        clock: Optional[Clock] = None,
        id_generator: Optional[Callable[[], str]] = None,
    ):
        self.service_charge_rate = service_charge_rate
        self.id_prefix = id_prefix
        self.clock = clock or utc_now
        self.id_generator = id_generator or (lambda: generate_order_id(self.id_prefix))

    def parse(self, payload: Union[OrderCreate, Mapping[str, Any]]) -> OrderCreate:
        """
        Validate raw input.

        Raises:
            ValidationError: With the first violated rule
        """
        if isinstance(payload, OrderCreate):
            return payload
        if not isinstance(payload, Mapping):
            raise ValidationError("Order payload must be an object")

        try:
            return OrderCreate.model_validate(dict(payload))
        except PydanticValidationError as e:
            message = first_error_message(e)
            logger.debug(f"Rejected order payload: {message}")
            raise ValidationError(message) from e

    def create(self, payload: Union[OrderCreate, Mapping[str, Any]]) -> Order:
        """
        Build a new priced ACTIVE order from raw input.

        Raises:
            ValidationError: If the input breaks a validation rule
        """
        data = self.parse(payload)
        try:
            price = price_order(
                data.items,
                data.pickup_type,
                extra_charges=data.extra_charges,
                rate=self.service_charge_rate,
            )
        except DecimalException as e:
            logger.debug(f"Order amounts cannot be priced exactly: {e!r}")
            raise ValidationError("Order amounts have too many digits to price exactly") from e

        return Order(
            id=self.id_generator(),
            customer_first_name=data.customer_first_name,
            customer_last_name=data.customer_last_name,
            pickup_type=data.pickup_type,
            items=tuple(data.items),
            extra_charges=data.extra_charges,
            notes=data.notes,
            total_price=price.total,
            status=OrderStatus.ACTIVE,
            created_at=self.clock(),
            completed_at=None,
        )
