"""
SQL Order Store Implementation

Persists orders in the ``order_kv`` key/value table through the SQLAlchemy
async engine. Used outside development mode (ENV_MODE=staging/production)
with PostgreSQL via psycopg; any SQLAlchemy async URL works, the tests use
SQLite via aiosqlite.

Behavior:
    - put() is an upsert (session.merge)
    - scan_by_prefix() is a LIKE query on the key, oldest first
    - compare_and_set() is a single conditional UPDATE on the status column

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from typing import Optional

from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.exceptions import StorageError
from app.database import create_session_maker, init_db
from app.models import OrderRecord, OrderStatus
from app.schemas import Order
from app.services.storage.base import BaseOrderStore

logger = logging.getLogger(__name__)


class SqlOrderStore(BaseOrderStore):
    """
    SQLAlchemy-backed order store.

    Attributes:
        engine: Async engine the store owns
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_maker = create_session_maker(engine)
        logger.info(f"SqlOrderStore initialized ({engine.url.get_backend_name()})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "sql"

    async def initialize(self) -> None:
        """Create the key/value table if needed."""
        try:
            await init_db(self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create order tables: {e}")
            raise StorageError("Could not initialize order table", str(e)) from e
        logger.info("✅ Order table ready")

    async def close(self) -> None:
        await self.engine.dispose()

    async def put(self, key: str, order: Order) -> None:
        record = OrderRecord(
            key=key,
            status=order.status.value,
            created_at=order.created_at,
            value=order.model_dump_json(),
        )
        try:
            async with self._session_maker() as session:
                await session.merge(record)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write {key}: {e}")
            raise StorageError(f"Could not write {key}", str(e)) from e

    async def get(self, key: str) -> Optional[Order]:
        try:
            async with self._session_maker() as session:
                record = await session.get(OrderRecord, key)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read {key}: {e}")
            raise StorageError(f"Could not read {key}", str(e)) from e

        return None if record is None else Order.model_validate_json(record.value)

    async def scan_by_prefix(self, prefix: str) -> list[Order]:
        query = (
            select(OrderRecord.value)
            .where(OrderRecord.key.startswith(prefix, autoescape=True))
            .order_by(OrderRecord.created_at, OrderRecord.key)
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(query)
                values = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to scan {prefix!r}: {e}")
            raise StorageError(f"Could not scan {prefix!r}", str(e)) from e

        return [Order.model_validate_json(value) for value in values]

    async def compare_and_set(
        self,
        key: str,
        order: Order,
        expected_status: OrderStatus,
    ) -> bool:
        statement = (
            update(OrderRecord)
            .where(OrderRecord.key == key, OrderRecord.status == expected_status.value)
            .values(status=order.status.value, value=order.model_dump_json())
        )
        try:
            async with self._session_maker() as session:
                result = await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to update {key}: {e}")
            raise StorageError(f"Could not update {key}", str(e)) from e

        return result.rowcount == 1

    async def health_check(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False
