# armoire/services/order_service.py
import math
import secrets
from datetime import datetime, timezone
from sqlalchemy.orm import Session

from armoire.data.database import unit_of_work
from armoire.data.models.order import OrderModel, OrderItemModel
from armoire.domain.context import RequestContext
from armoire.domain.errors import OrderCreationFailed, OrderNotFound, InvalidOrderTransition
from armoire.domain.pricing import compute_totals
from armoire.domain.states import OrderStatus, PaymentStatus, ensure_transition
from armoire.repos.cart_repo import CartRepo
from armoire.repos.catalog_repo import CatalogRepo
from armoire.repos.order_repo import OrderRepo
from armoire.repos.user_repo import UserRepo
from armoire.utils.logging import get_logger

logger = get_logger(__name__)

EXPIRED_REASON = "Payment not completed in time"


def generate_order_number(now: datetime | None = None) -> str:
    """Format: ORD-YYYYMMDD-XXXXXX"""
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{100000 + secrets.randbelow(900000)}"


def transition_order(repo: OrderRepo, order: OrderModel, target: OrderStatus, **fields) -> bool:
    """
    Zmiana statusu z optimistic locking na orders.version.
    Wywolywac wewnatrz unit_of_work. False = ktos inny zmienil zamowienie.
    """
    ensure_transition(order.status, target)

    rowcount = repo.update_order_version(
        order_id=order.id,
        old_version=order.version,
        new_data={
            "status": target.value,
            "version": order.version + 1,
            "updated_at": datetime.now(timezone.utc),
            **fields,
        },
    )
    if rowcount == 0:
        return False

    logger.info(f"Order {order.order_number}: {order.status} -> {target.value}")
    repo.refresh(order)
    return True


def update_payment_status(repo: OrderRepo, order: OrderModel, payment_status: PaymentStatus, **fields) -> bool:
    """Jak transition_order, ale status zamowienia zostaje (zwroty, spozniony capture)."""
    rowcount = repo.update_order_version(
        order_id=order.id,
        old_version=order.version,
        new_data={
            "payment_status": payment_status.value,
            "version": order.version + 1,
            "updated_at": datetime.now(timezone.utc),
            **fields,
        },
    )
    if rowcount == 0:
        return False

    logger.info(f"Order {order.order_number}: payment {order.payment_status} -> {payment_status.value}")
    repo.refresh(order)
    return True


def serialize_order(order: OrderModel) -> dict:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "status": order.status,
        "payment_status": order.payment_status,
        "subtotal": order.subtotal,
        "shipping_cost": order.shipping_cost,
        "tax_amount": order.tax_amount,
        "total": order.total,
        "cancellation_reason": order.cancellation_reason,
        "cancelled_at": order.cancelled_at,
        "created_at": order.created_at,
        "items": [
            {
                "product_id": i.product_id,
                "variant_id": i.variant_id,
                "quantity": i.quantity,
                "unit_price_at_purchase": i.unit_price_at_purchase,
            }
            for i in order.items
        ],
    }


class OrderService:
    """
    Zamowienia: budowanie z koszyka (order builder), historia, anulowanie
    i realizacja. Platnosci obsluguje PaymentService.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.users = UserRepo(db)

    def _new_order_number(self) -> str:
        for _ in range(5):
            number = generate_order_number()
            if not self.repo.number_exists(number):
                return number
        raise OrderCreationFailed("Could not allocate an order number")

    def create_order(self, ctx: RequestContext, shipping_address_id: int) -> OrderModel:
        """
        Use case: koszyk -> zamowienie (CREATED) + pozycje, w jednej transakcji.

        - koszyk istnieje i nie jest pusty
        - kazdy wariant aktywny i na stanie
        - adres nalezy do uzytkownika
        Dowolny blad = OrderCreationFailed i zero zapisanych wierszy.
        """
        with unit_of_work(self.db):
            cart = self.carts.get_active_cart_by_user(ctx.user_id)
            items = self.carts.get_cart_items(cart.id) if cart else []
            if not items:
                raise OrderCreationFailed("Cart is empty")

            address = self.users.get_user_address(ctx.user_id, shipping_address_id)
            if not address:
                raise OrderCreationFailed("Invalid shipping address")

            variants = self.catalog.get_variants([i.variant_id for i in items])
            for item in items:
                variant = variants.get(item.variant_id)
                if not variant or not variant.is_active or not variant.product.is_active:
                    raise OrderCreationFailed(f"Variant {item.variant_id} is no longer available")
                if variant.stock_quantity < item.quantity:
                    raise OrderCreationFailed(f"Insufficient stock for {variant.sku}")

            totals = compute_totals((i.unit_price, i.quantity) for i in items)

            order = self.repo.add_order(
                OrderModel(
                    order_number=self._new_order_number(),
                    user_id=ctx.user_id,
                    cart_id=cart.id,
                    shipping_address_id=address.id,
                    status=OrderStatus.CREATED.value,
                    payment_status=PaymentStatus.PENDING.value,
                    subtotal=totals.subtotal,
                    shipping_cost=totals.shipping_cost,
                    tax_amount=totals.tax_amount,
                    total=totals.total,
                    version=1,
                ),
                [
                    OrderItemModel(
                        product_id=i.product_id,
                        variant_id=i.variant_id,
                        quantity=i.quantity,
                        unit_price_at_purchase=i.unit_price,
                    )
                    for i in items
                ],
            )

        logger.info(
            f"Order {order.order_number} created from cart {cart.id}: "
            f"subtotal={totals.subtotal} shipping={totals.shipping_cost} "
            f"tax={totals.tax_amount} total={totals.total}"
        )
        return order

    #query
    def get_order(self, ctx: RequestContext, order_number: str) -> OrderModel:
        order = self.repo.get_by_number(order_number)
        if not order:
            raise OrderNotFound("Order not found")
        if order.user_id != ctx.user_id and not ctx.is_admin:
            raise PermissionError("Access denied")
        return order

    def list_orders(
        self,
        page: int = 0,
        size: int = 10,
        user_id: int | None = None,
        status: str | None = None,
        payment_status: str | None = None,
        q: str | None = None,
        sort_by: str = "CREATED_AT_DESC",
    ) -> dict:
        orders, total = self.repo.list_orders(
            page=page,
            size=size,
            user_id=user_id,
            status=status,
            payment_status=payment_status,
            q=q,
            sort_by=sort_by,
        )
        return {
            "data": [serialize_order(o) for o in orders],
            "page": page,
            "size": size,
            "total_elements": total,
            "total_pages": math.ceil(total / size) if size else 0,
        }

    def user_orders(self, ctx: RequestContext, page: int = 0, size: int = 10) -> dict:
        return self.list_orders(page=page, size=size, user_id=ctx.user_id)

    #commands
    def _move(self, order: OrderModel, target: OrderStatus, **fields) -> OrderModel:
        with unit_of_work(self.db):
            if not transition_order(self.repo, order, target, **fields):
                raise InvalidOrderTransition("Order was modified by another request")
        return order

    def cancel_order(self, ctx: RequestContext, order_number: str, reason: str | None = None) -> OrderModel:
        order = self.get_order(ctx, order_number)
        return self._move(
            order,
            OrderStatus.CANCELLED,
            cancellation_reason=reason,
            cancelled_at=datetime.now(timezone.utc),
        )

    def fulfill_order(self, order_number: str) -> OrderModel:
        order = self.repo.get_by_number(order_number)
        if not order:
            raise OrderNotFound("Order not found")
        return self._move(order, OrderStatus.FULFILLED)

    def expire_pending(self, cutoff: datetime) -> int:
        """Otwarte zamowienia (CREATED / PAYMENT_PENDING) starsze niz cutoff -> CANCELLED."""
        expired = 0
        stale = self.repo.list_open_created_before(
            (OrderStatus.CREATED, OrderStatus.PAYMENT_PENDING), cutoff
        )
        for order in stale:
            with unit_of_work(self.db):
                moved = transition_order(
                    self.repo,
                    order,
                    OrderStatus.CANCELLED,
                    cancellation_reason=EXPIRED_REASON,
                    cancelled_at=datetime.now(timezone.utc),
                )
            if moved:
                expired += 1
            else:
                logger.warning(f"Order {order.order_number} changed while expiring, skipped")
        return expired
