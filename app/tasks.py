"""
Celery Tasks
Background tasks for exporting completed orders.
"""

import logging
import time

from app.celery_worker import celery_app
from app.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def export_order_to_excel(self, order_data: dict) -> dict:
    """
    Append a completed order to the Excel ledger.
    This task runs asynchronously via Celery worker.

    Args:
        order_data: Ledger row built by ``build_ledger_row``

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_id = order_data.get('order_id', 'unknown')

    logger.info(f"📋 Task {task_id}: Exporting order {order_id}")
    start_time = time.time()

    try:
        result = ExcelManager().export_order(order_data)

        elapsed = round(time.time() - start_time, 3)
        result['task_id'] = task_id
        result['processing_time_seconds'] = elapsed

        if result['success']:
            logger.info(f"✅ Task {task_id}: Order {order_id} exported in {elapsed}s")
        else:
            logger.warning(f"⚠️ Task {task_id}: Order {order_id} not exported - {result['message']}")

        return result

    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        logger.error(f"❌ Task {task_id}: Order {order_id} error after {elapsed}s - {e}")

        # Celery will auto-retry based on configuration
        raise
