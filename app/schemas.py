"""
Pydantic Schemas for Orders, Requests and Responses

- Order / OrderItem: the stored order document (exact decimals)
- OrderCreate: raw order input and its validation rules
- *Response: wire shapes, money rounded to cents
- AnalyticsReport: dashboard statistics (camelCase on the wire)

Author: Khalil Bannouri
Version: 4.0.0
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.models import OrderStatus, PickupType
from app.services.pricing import (
    MAX_QUANTITY,
    MAX_UNIT_PRICE,
    ZERO,
    money_context,
    parse_extra_charges,
    round_money,
    to_decimal,
)


# Exact in Python, rounded to cents when serialized to JSON
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(round_money(v)), return_type=float, when_used="json"),
]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# ORDER DOCUMENT
# =============================================================================

class OrderItem(BaseModel):
    """Single line of an order."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, examples=["Margherita Pizza"])
    unit_price: Decimal = Field(
        ...,
        ge=0,
        le=MAX_UNIT_PRICE,
        validation_alias=AliasChoices("unit_price", "price", "unitPrice"),
        examples=[12.99],
    )
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY, examples=[2])

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("unit_price", mode="before")
    @classmethod
    def validate_unit_price(cls, v: Any) -> Decimal:
        try:
            return to_decimal(v)
        except ValueError:
            raise ValueError("Unit price must be a number")

    @property
    def line_total(self) -> Decimal:
        with money_context():
            return self.unit_price * self.quantity


class Order(BaseModel):
    """
    A priced restaurant order.

    Created ACTIVE by the order factory and completed at most once.
    Everything except ``status`` and ``completed_at`` is fixed at creation;
    ``total_price`` is stored, never recomputed.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    customer_first_name: str = Field(..., min_length=1)
    customer_last_name: str = Field(..., min_length=1)
    pickup_type: PickupType
    items: tuple[OrderItem, ...] = Field(..., min_length=1)
    extra_charges: Decimal = Field(default=ZERO, ge=0)
    notes: str = ""
    total_price: Decimal
    status: OrderStatus = OrderStatus.ACTIVE
    created_at: datetime
    completed_at: Optional[datetime] = None

    @field_validator("pickup_type", mode="before")
    @classmethod
    def validate_pickup_type(cls, v: Any) -> PickupType:
        return PickupType.parse(v)

    @field_validator("created_at", "completed_at")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if v is None else _as_utc(v)

    @model_validator(mode="after")
    def check_lifecycle(self) -> "Order":
        if (self.status == OrderStatus.COMPLETED) != (self.completed_at is not None):
            raise ValueError("completed_at must be set exactly when the order is COMPLETED")
        if self.completed_at is not None and self.completed_at < self.created_at:
            raise ValueError("completed_at cannot be earlier than created_at")
        return self

    @property
    def customer_name(self) -> str:
        return f"{self.customer_first_name} {self.customer_last_name}"

    @property
    def subtotal(self) -> Decimal:
        with money_context():
            return sum((item.line_total for item in self.items), ZERO)

    @property
    def service_charge(self) -> Decimal:
        """Surcharge as it was applied when the order was priced."""
        with money_context():
            return self.total_price - self.subtotal - self.extra_charges

    @property
    def is_active(self) -> bool:
        return self.status == OrderStatus.ACTIVE


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

_REQUIRED_MESSAGES = {
    "customer_first_name": "First name is required",
    "customer_last_name": "Last name is required",
}


def _has_positive_quantity(entry: Any) -> bool:
    """
    False for entries whose quantity is missing, null or a number ≤ 0.

    Other unparseable quantities are kept so item validation can report them.
    """
    if not isinstance(entry, Mapping):
        return True
    quantity = entry.get("quantity")
    if quantity is None:
        return False
    if isinstance(quantity, bool):
        return True
    try:
        return float(quantity) > 0
    except (TypeError, ValueError):
        return True


class OrderCreate(BaseModel):
    """
    Raw order input.

    Rules are checked in field order, so the first reported error is the
    first violated rule.
    """

    customer_first_name: str = Field(default="", validate_default=True, examples=["Jane"])
    customer_last_name: str = Field(default="", validate_default=True, examples=["Doe"])
    # None defaults only reach the before-validators, which reject them
    pickup_type: Optional[PickupType] = Field(default=None, validate_default=True, examples=["Dine-In"])
    items: Optional[List[OrderItem]] = Field(default=None, validate_default=True)
    extra_charges: Decimal = Field(default=ZERO, validate_default=True, examples=[2.00])
    notes: str = Field(default="", validate_default=True)

    @field_validator("customer_first_name", "customer_last_name", mode="before")
    @classmethod
    def validate_name(cls, v: Any, info: ValidationInfo) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError(_REQUIRED_MESSAGES[info.field_name])
        return v.strip()

    @field_validator("pickup_type", mode="before")
    @classmethod
    def validate_pickup_type(cls, v: Any) -> PickupType:
        return PickupType.parse(v)

    @field_validator("items", mode="before")
    @classmethod
    def drop_empty_items(cls, v: Any) -> list:
        if not isinstance(v, (list, tuple)):
            raise ValueError("Items must be a list")
        return [entry for entry in v if _has_positive_quantity(entry)]

    @field_validator("items")
    @classmethod
    def require_items(cls, v: List[OrderItem]) -> List[OrderItem]:
        if not v:
            raise ValueError("Please select at least one item")
        return v

    @field_validator("extra_charges", mode="before")
    @classmethod
    def validate_extra_charges(cls, v: Any) -> Decimal:
        return parse_extra_charges(v)

    @field_validator("notes", mode="before")
    @classmethod
    def validate_notes(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderItemResponse(BaseModel):
    """Order line as shown to clients."""
    name: str
    unit_price: Money
    quantity: int
    line_total: Money


class OrderResponse(BaseModel):
    """Response schema for a single order."""
    id: str
    customer_first_name: str
    customer_last_name: str
    pickup_type: str
    items: List[OrderItemResponse]
    extra_charges: Money
    notes: str
    subtotal: Money
    service_charge: Money
    total_price: Money
    status: str
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            customer_first_name=order.customer_first_name,
            customer_last_name=order.customer_last_name,
            pickup_type=order.pickup_type.value,
            items=[
                OrderItemResponse(
                    name=item.name,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    line_total=item.line_total,
                )
                for item in order.items
            ],
            extra_charges=order.extra_charges,
            notes=order.notes,
            subtotal=order.subtotal,
            service_charge=order.service_charge,
            total_price=order.total_price,
            status=order.status.value,
            created_at=order.created_at,
            completed_at=order.completed_at,
        )


class OrderEnvelope(BaseModel):
    """Response after creating or completing an order."""
    success: bool = True
    message: str
    order: OrderResponse


class OrderListResponse(BaseModel):
    """Response for listing multiple orders."""
    total: int
    orders: List[OrderResponse]


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage: str
    storage_backend: str
    timestamp: datetime


class MenuItem(BaseModel):
    """Menu entry offered by the order form."""
    name: str
    price: Money
    category: Optional[str] = None
    description: Optional[str] = None


class MenuResponse(BaseModel):
    """Menu plus the pricing rule shown next to it."""
    items: List[MenuItem]
    service_charge_rate: float
    note: str


# =============================================================================
# ANALYTICS SCHEMAS
# =============================================================================

class CamelModel(BaseModel):
    """Serialized with camelCase keys, as the dashboard expects."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PickupTypeCounts(CamelModel):
    dine_in: int = 0
    take_out: int = 0


class PickupTypeRevenue(CamelModel):
    dine_in: Money = ZERO
    take_out: Money = ZERO


class ItemCount(CamelModel):
    name: str
    count: int


class DailyOrderCount(CamelModel):
    date: str
    count: int


class AnalyticsReport(CamelModel):
    """
    Summary statistics over the whole order collection.

    Revenue figures include ACTIVE orders.
    """
    total_orders: int = 0
    active_orders_count: int = 0
    completed_orders_count: int = 0
    total_revenue: Money = ZERO
    pickup_type_distribution: PickupTypeCounts = Field(default_factory=PickupTypeCounts)
    revenue_by_pickup_type: PickupTypeRevenue = Field(default_factory=PickupTypeRevenue)
    most_ordered_items: List[ItemCount] = Field(default_factory=list)
    orders_over_time: List[DailyOrderCount] = Field(default_factory=list)
