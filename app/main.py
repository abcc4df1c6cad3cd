"""
FastAPI Application Entry Point

Restaurant Order Dashboard - order pricing, lifecycle and analytics API.

Every route below exists twice: under API_PREFIX (default /api) and under
LEGACY_ROUTE_PREFIX (default /make-server-5c1c75e3), the path the existing
web client calls. Both mounts share one OrderService.

Endpoints:
    - POST /orders: Create order
    - GET  /orders/active: List active orders (newest first)
    - GET  /orders/completed: List completed orders (newest first)
    - GET  /orders/{order_id}: Get one order
    - PUT  /orders/{order_id}/complete: Complete order
    - GET  /analytics: Dashboard analytics
    - GET  /menu: Menu and service charge rate
    - GET  /health: System health check

Author: Khalil Bannouri
Version: 4.0.0
"""

import asyncio
import sys
import logging
from datetime import datetime, timezone
from typing import Any, Optional
from contextlib import asynccontextmanager

from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from kombu.exceptions import OperationalError as BrokerError

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from app.core.config import get_settings, setup_logging
from app.core.exceptions import OrderError
from app.menu import MENU_ITEMS
from app.schemas import (
    AnalyticsReport,
    ErrorResponse,
    HealthResponse,
    MenuItem,
    MenuResponse,
    Order,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
)
from app.services.excel_manager import build_ledger_row
from app.services.order_service import OrderService, get_order_service
from app.services.storage import get_order_store
from app.tasks import export_order_to_excel

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    store = get_order_store()
    await store.initialize()
    logger.info(f"✅ Order Store: {store.provider_name}")
    logger.info(f"✅ Service charge: {settings.service_charge_rate:.0%} (Dine-In)")
    logger.info(f"✅ Ledger export: {'enabled' if settings.excel_export_enabled else 'disabled'}")

    problems = settings.validate_production_config()
    if problems:
        logger.warning(f"⚠️ Check production config: {problems}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await store.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Restaurant order dashboard: prices orders, tracks their completion "
        "and reports analytics over the whole order book."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def queue_ledger_export(response: OrderEnvelope, order: Order) -> None:
    """Queue the Excel export of a completed order, if enabled."""
    if not settings.excel_export_enabled:
        return
    try:
        export_order_to_excel.delay(build_ledger_row(order))
    except BrokerError as e:
        # The order is already completed; only the ledger row is lost
        logger.error(f"Could not queue ledger export for {order.id}: {e}")
        response.message = f"{response.message} (ledger export not queued)"


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍽️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "analytics": f"{settings.api_prefix}/analytics",
        "health": f"{settings.api_prefix}/health",
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    service: OrderService = Depends(get_order_service),
) -> HealthResponse:
    """Verify the order store is reachable."""
    healthy = await service.store.health_check()

    return HealthResponse(
        status="ok" if healthy else "degraded",
        storage="healthy" if healthy else "unhealthy",
        storage_backend=service.store.provider_name,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/menu",
    response_model=MenuResponse,
    tags=["Menu"],
)
async def get_menu() -> MenuResponse:
    """Menu items and the dine-in service charge."""
    rate = settings.service_charge_rate
    return MenuResponse(
        items=[MenuItem(**item) for item in MENU_ITEMS],
        service_charge_rate=float(rate),
        note=f"A {rate:.0%} service charge applies to Dine-In orders.",
    )


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@router.post(
    "/orders",
    response_model=OrderEnvelope,
    status_code=201,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Create Order",
)
async def create_order(
    payload: Any = Body(...),
    service: OrderService = Depends(get_order_service),
) -> OrderEnvelope:
    """
    Validate, price and store a new order.

    Items with quantity 0 are dropped. Dine-In orders carry the service
    charge; extra_charges is optional and defaults to 0.
    """
    order = await service.create_order(payload)
    return OrderEnvelope(
        message="Order placed successfully!",
        order=OrderResponse.from_order(order),
    )


@router.get(
    "/orders/active",
    response_model=OrderListResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="List Active Orders",
)
async def list_active_orders(
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """Active orders, newest first."""
    orders = await service.list_active_orders()
    return OrderListResponse(
        total=len(orders),
        orders=[OrderResponse.from_order(order) for order in orders],
    )


@router.get(
    "/orders/completed",
    response_model=OrderListResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="List Completed Orders",
)
async def list_completed_orders(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """Completed orders, newest first. ``limit`` keeps only the most recent."""
    orders = await service.list_completed_orders()
    total = len(orders)
    if limit is not None:
        orders = orders[:limit]
    return OrderListResponse(
        total=total,
        orders=[OrderResponse.from_order(order) for order in orders],
    )


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
)
async def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Get a specific order by ID."""
    order = await service.get_order(order_id)
    return OrderResponse.from_order(order)


@router.put(
    "/orders/{order_id}/complete",
    response_model=OrderEnvelope,
    responses=ERROR_RESPONSES,
    tags=["Orders"],
    summary="Complete Order",
)
async def complete_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
) -> OrderEnvelope:
    """Mark an active order as completed."""
    order = await service.complete_order(order_id)
    response = OrderEnvelope(
        message=f"Order {order_id} completed",
        order=OrderResponse.from_order(order),
    )
    queue_ledger_export(response, order)
    return response


# =============================================================================
# ANALYTICS ENDPOINTS
# =============================================================================

@router.get(
    "/analytics",
    response_model=AnalyticsReport,
    responses=ERROR_RESPONSES,
    tags=["Analytics"],
    summary="Dashboard Analytics",
)
async def get_analytics(
    top: Optional[int] = Query(None, ge=0, le=100, description="Length of the most ordered items ranking"),
    service: OrderService = Depends(get_order_service),
) -> AnalyticsReport:
    """
    Aggregated statistics over every order.

    Revenue includes orders that are still active.
    """
    return await service.get_analytics(top_n=top)


app.include_router(router, prefix=settings.api_prefix)
if settings.legacy_route_prefix:
    app.include_router(router, prefix=settings.legacy_route_prefix, include_in_schema=False)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(OrderError)
async def order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
    """Map engine errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.api_host, port=settings.api_port)
