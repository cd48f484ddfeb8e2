# armoire/services/payment_service.py
import json
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from armoire.data.database import unit_of_work
from armoire.data.models.order import OrderModel
from armoire.data.models.payment import PaymentRecordModel
from armoire.domain.context import RequestContext
from armoire.domain.errors import (
    InvalidOrderTransition,
    OrderNotFound,
    PaymentVerificationFailed,
    UpstreamGatewayError,
    ValidationError,
)
from armoire.domain.pricing import to_minor_units
from armoire.domain.states import OPEN_STATUSES, OrderStatus, PaymentStatus
from armoire.repos.cart_repo import CartRepo
from armoire.repos.catalog_repo import CatalogRepo
from armoire.repos.order_repo import OrderRepo
from armoire.repos.payment_repo import PaymentRepo
from armoire.services.gateway import PaymentGateway
from armoire.services.notification_service import NotificationService
from armoire.services.order_service import (
    OrderService,
    serialize_order,
    transition_order,
    update_payment_status,
)
from armoire.utils.settings import CURRENCY
from armoire.utils.logging import get_logger

logger = get_logger(__name__)

_PAID_EVENTS = ("payment.captured", "order.paid")
_REFUND_EVENTS = ("refund.created", "refund.processed", "refund.failed")

_CLOSED_STATUSES = (OrderStatus.CANCELLED.value, OrderStatus.FAILED.value)
_REFUNDABLE = (PaymentStatus.PAID.value, PaymentStatus.REFUND_REQUESTED.value)


class _LostRace(Exception):
    pass


class PaymentService:
    """
    Checkout (zamowienie + intent w bramce) i rekoncyliacja platnosci.

    PAID tylko po poprawnym podpisie. Przejscie na PAID, finalizacja
    PaymentRecord, zdjecie stanow i wyczyszczenie koszyka ida w jednej
    transakcji. Drugi callback z tym samym payment id nic nie zmienia.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        notification_service: NotificationService | None = None,
    ):
        self.db = db
        self.gateway = gateway
        self.orders = OrderRepo(db)
        self.payments = PaymentRepo(db)
        self.carts = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.order_service = OrderService(db)
        self.notification_service = notification_service or NotificationService()

    def checkout(self, ctx: RequestContext, shipping_address_id: int) -> dict:
        order = self.order_service.create_order(ctx, shipping_address_id)
        amount = to_minor_units(order.total)

        try:
            gateway_order_id = self.gateway.create_intent(
                amount=amount,
                currency=CURRENCY,
                receipt=order.order_number,
                notes={"order_number": order.order_number, "user_id": str(ctx.user_id)},
            )
        except UpstreamGatewayError:
            logger.error(f"Payment intent failed for order {order.order_number}")
            with unit_of_work(self.db):
                transition_order(
                    self.orders,
                    order,
                    OrderStatus.FAILED,
                    payment_status=PaymentStatus.FAILED.value,
                )
            raise

        with unit_of_work(self.db):
            self.payments.create_record(
                PaymentRecordModel(order_id=order.id, gateway_order_id=gateway_order_id)
            )
            if not transition_order(self.orders, order, OrderStatus.PAYMENT_PENDING):
                raise InvalidOrderTransition("Order was modified by another request")

        return {
            "order": serialize_order(order),
            "gateway_order_id": gateway_order_id,
            "gateway_key_id": self.gateway.key_id,
            "amount": amount,
            "currency": CURRENCY,
        }

    def verify_payment(
        self,
        ctx: RequestContext,
        order_number: str,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> OrderModel:
        order = self.orders.get_by_number(order_number)
        if not order:
            raise OrderNotFound("Order not found")
        if order.user_id != ctx.user_id:
            raise PermissionError("Access denied")

        record = self.payments.get_by_order(order.id)
        valid = (
            record is not None
            and record.gateway_order_id == gateway_order_id
            and self.gateway.verify_payment_signature(
                record.gateway_order_id, gateway_payment_id, signature
            )
        )

        if not valid:
            logger.warning(f"Invalid payment signature for order {order.order_number}")
            self._fail(order)
            raise PaymentVerificationFailed("Payment verification failed - invalid signature")

        return self._mark_paid(order, record, gateway_payment_id, signature)

    def handle_webhook(self, payload: bytes, signature: str) -> str:
        """Zwraca nazwe obsluzonego eventu."""
        if not self.gateway.verify_webhook_signature(payload, signature):
            logger.warning("Invalid webhook signature")
            raise PaymentVerificationFailed("Invalid signature")

        try:
            webhook = json.loads(payload)
            event = webhook["event"]
            entities = webhook.get("payload", {})
        except (ValueError, KeyError, TypeError) as e:
            raise ValidationError(f"Malformed webhook payload: {e}") from e

        logger.info(f"Processing webhook event: {event}")

        if event in _REFUND_EVENTS:
            self._apply_refund_event(event, entities.get("refund", {}).get("entity", {}))
            return event

        payment = entities.get("payment", {}).get("entity", {})
        if event == "order.paid":
            gateway_order_id = entities.get("order", {}).get("entity", {}).get("id")
        else:
            gateway_order_id = payment.get("order_id")

        if event not in _PAID_EVENTS and event != "payment.failed":
            logger.info(f"Unhandled webhook event: {event}")
            return event

        record = self.payments.get_by_gateway_order_id(gateway_order_id) if gateway_order_id else None
        if not record:
            logger.warning(f"Webhook {event} for unknown gateway order {gateway_order_id}")
            return event

        order = record.order
        if event == "payment.failed":
            self._fail(order)
        elif not payment.get("id"):
            raise ValidationError("Webhook is missing the payment id")
        else:
            self._mark_paid(order, record, payment["id"], signature)
        return event

    def _fail(self, order: OrderModel) -> None:
        # PAID / FULFILLED zostaja, zly podpis ich nie cofa
        if order.status not in [s.value for s in OPEN_STATUSES]:
            return
        with unit_of_work(self.db):
            transition_order(
                self.orders,
                order,
                OrderStatus.FAILED,
                payment_status=PaymentStatus.FAILED.value,
            )

    def _mark_paid(
        self,
        order: OrderModel,
        record: PaymentRecordModel,
        payment_id: str,
        signature: str,
    ) -> OrderModel:
        if record.gateway_reference == payment_id:
            logger.info(f"Duplicate payment callback {payment_id} for {order.order_number}, ignored")
            return order

        used = self.payments.get_by_reference(payment_id)
        if used and used.id != record.id:
            logger.warning(f"Payment {payment_id} already applied to order id {used.order_id}")
            raise InvalidOrderTransition("Payment was already applied to another order")

        if order.status in _CLOSED_STATUSES:
            return self._record_late_capture(order, record, payment_id, signature)

        try:
            with unit_of_work(self.db):
                if not transition_order(
                    self.orders,
                    order,
                    OrderStatus.PAID,
                    payment_status=PaymentStatus.PAID.value,
                ):
                    raise _LostRace()

                record.gateway_reference = payment_id
                record.signature = signature
                record.verified_at = datetime.now(timezone.utc)

                for item in order.items:
                    remaining = self.catalog.decrement_stock(item.variant_id, item.quantity)
                    if remaining < 0:
                        logger.error(
                            f"Variant {item.variant_id} oversold by {-remaining} "
                            f"after order {order.order_number}"
                        )
                cleared = self.carts.clear_items(order.cart_id)
                self.db.flush()
        except (_LostRace, IntegrityError):
            # rownolegly callback byl pierwszy, albo payment id juz uzyty
            self.db.expire_all()
            current = self.orders.get_by_number(order.order_number)
            current_record = self.payments.get_by_order(current.id)
            if current_record.gateway_reference == payment_id:
                logger.info(f"Payment {payment_id} already reconciled for {order.order_number}")
                return current
            if current.status in _CLOSED_STATUSES and not current_record.gateway_reference:
                # zamowienie wygaslo w trakcie
                return self._record_late_capture(current, current_record, payment_id, signature)
            raise InvalidOrderTransition("Payment was already processed for another order state")

        logger.info(
            f"Order {order.order_number} paid ({payment_id}), cleared {cleared} cart items"
        )
        self.notification_service.send_order_notification(order.user_id, order.order_number)
        return order

    def _record_late_capture(
        self,
        order: OrderModel,
        record: PaymentRecordModel,
        payment_id: str,
        signature: str,
    ) -> OrderModel:
        """
        Capture po CANCELLED / FAILED. Status zamowienia zostaje, bez zdejmowania
        stanow i powiadomienia, ale pieniadze sa pobrane: zapisujemy payment id
        i payment_status PAID, zeby admin mogl zrobic zwrot.
        """
        try:
            with unit_of_work(self.db):
                if not update_payment_status(self.orders, order, PaymentStatus.PAID):
                    raise _LostRace()
                record.gateway_reference = payment_id
                record.signature = signature
                record.verified_at = datetime.now(timezone.utc)
                self.db.flush()
        except (_LostRace, IntegrityError):
            self.db.expire_all()
            current_record = self.payments.get_by_order(order.id)
            if current_record.gateway_reference == payment_id:
                return self.orders.get_by_number(order.order_number)
            raise InvalidOrderTransition("Payment was already processed for another order state")

        logger.error(
            f"Payment {payment_id} captured on {order.status} order {order.order_number}, refund required"
        )
        return order

    #zwroty
    def refund_order(self, order_number: str) -> OrderModel:
        order = self.orders.get_by_number(order_number)
        if not order:
            raise OrderNotFound("Order not found")

        record = self.payments.get_by_order(order.id)
        if order.payment_status not in _REFUNDABLE or not record or not record.gateway_reference:
            raise InvalidOrderTransition(
                f"Order with payment status {order.payment_status} cannot be refunded"
            )

        # REFUND_REQUESTED przed wywolaniem bramki, przy bledzie admin ponawia
        with unit_of_work(self.db):
            if not update_payment_status(self.orders, order, PaymentStatus.REFUND_REQUESTED):
                raise InvalidOrderTransition("Order was modified by another request")

        refund_id = self.gateway.refund(record.gateway_reference, to_minor_units(order.total))

        try:
            with unit_of_work(self.db):
                if not update_payment_status(self.orders, order, PaymentStatus.REFUNDED):
                    raise _LostRace()
                record.refund_id = refund_id
                record.refunded_at = datetime.now(timezone.utc)
        except _LostRace:
            # refund.processed z webhooka mogl byc pierwszy
            self.db.expire_all()
            current = self.orders.get_by_number(order_number)
            if current.payment_status == PaymentStatus.REFUNDED.value:
                return current
            raise InvalidOrderTransition("Order was modified by another request")

        logger.info(f"Order {order.order_number} refunded ({refund_id})")
        return order

    def _apply_refund_event(self, event: str, refund: dict) -> None:
        payment_id = refund.get("payment_id")
        refund_id = refund.get("id")

        record = self.payments.get_by_reference(payment_id) if payment_id else None
        if not record:
            logger.warning(f"Webhook {event} for unknown payment {payment_id}")
            return
        order = record.order

        if event == "refund.failed":
            # zostaje REFUND_REQUESTED, admin moze ponowic
            logger.error(f"Refund {refund_id} failed for order {order.order_number}")
            return

        if event == "refund.created":
            if record.refund_id == refund_id:
                return
            with unit_of_work(self.db):
                record.refund_id = refund_id
                if order.payment_status == PaymentStatus.PAID.value and not update_payment_status(
                    self.orders, order, PaymentStatus.REFUND_REQUESTED
                ):
                    raise InvalidOrderTransition("Order was modified by another request")
            logger.info(f"Refund {refund_id} initiated for order {order.order_number}")
            return

        # refund.processed
        if order.payment_status == PaymentStatus.REFUNDED.value:
            return
        with unit_of_work(self.db):
            if not update_payment_status(self.orders, order, PaymentStatus.REFUNDED):
                raise InvalidOrderTransition("Order was modified by another request")
            record.refund_id = refund_id
            record.refunded_at = datetime.now(timezone.utc)
        logger.info(f"Refund {refund_id} completed for order {order.order_number}")
