# armoire/tasks/expire.py
from datetime import datetime, timezone, timedelta

from armoire.celery_worker import celery_app
from armoire.data.database import SessionLocal
from armoire.services.order_service import OrderService
from armoire.utils.settings import PAYMENT_TIMEOUT_SECONDS
from armoire.utils.logging import get_logger

logger = get_logger(__name__)


def expire_pending_orders(db, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(seconds=PAYMENT_TIMEOUT_SECONDS)
    expired = OrderService(db).expire_pending(cutoff)
    logger.info(f"Expired {expired} unpaid orders created before {cutoff.isoformat()}")
    return expired


@celery_app.task(name="armoire.tasks.expire.expire_pending_orders_task")
def expire_pending_orders_task():
    logger.info("Expire pending orders task started")

    db = SessionLocal()
    try:
        return expire_pending_orders(db)
    finally:
        db.close()
