# armoire/services/admin_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from armoire.domain.states import OrderStatus, PaymentStatus
from armoire.repos.catalog_repo import CatalogRepo
from armoire.repos.order_repo import OrderRepo
from armoire.utils.settings import LOW_STOCK_THRESHOLD
from armoire.utils.logging import get_logger

logger = get_logger(__name__)


class AdminService:
    """Statystyki do panelu admina, tylko odczyt."""

    def __init__(self, db: Session):
        self.db = db
        self.orders = OrderRepo(db)
        self.catalog = CatalogRepo(db)

    def dashboard(self, low_stock_threshold: int = LOW_STOCK_THRESHOLD) -> Dict[str, Any]:
        by_status = self.orders.count_by_status()
        by_payment = self.orders.count_by_payment_status()
        low_stock = self.catalog.low_stock_variants(low_stock_threshold)

        if low_stock:
            logger.info(f"{len(low_stock)} variants at or below {low_stock_threshold} units")

        return {
            # kazdy status, takze z zerem
            "total_orders": sum(by_status.values()),
            "orders_by_status": {s.value: by_status.get(s.value, 0) for s in OrderStatus},
            "payments_by_status": {s.value: by_payment.get(s.value, 0) for s in PaymentStatus},
            "revenue": self.orders.revenue(PaymentStatus.PAID.value),
            "low_stock": [
                {
                    "variant_id": v.id,
                    "product_id": v.product_id,
                    "product_name": v.product.name,
                    "sku": v.sku,
                    "stock_quantity": v.stock_quantity,
                }
                for v in low_stock
            ],
        }
