# armoire/domain/states.py
from enum import Enum

from armoire.domain.errors import InvalidOrderTransition


class OrderStatus(str, Enum):
    CREATED = "CREATED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAID = "PAID"
    FULFILLED = "FULFILLED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUND_REQUESTED = "REFUND_REQUESTED"
    REFUNDED = "REFUNDED"


# FAILED i CANCELLED sa terminalne
_TRANSITIONS = {
    OrderStatus.CREATED: {OrderStatus.PAYMENT_PENDING, OrderStatus.FAILED, OrderStatus.CANCELLED},
    OrderStatus.PAYMENT_PENDING: {OrderStatus.PAID, OrderStatus.FAILED, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.FULFILLED},
    OrderStatus.FULFILLED: set(),
    OrderStatus.FAILED: set(),
    OrderStatus.CANCELLED: set(),
}

OPEN_STATUSES = (OrderStatus.CREATED, OrderStatus.PAYMENT_PENDING)


def can_transition(current: str, target: str) -> bool:
    return OrderStatus(target) in _TRANSITIONS[OrderStatus(current)]


def ensure_transition(current: str, target: str) -> None:
    if not can_transition(current, target):
        raise InvalidOrderTransition(
            f"Cannot move order from {OrderStatus(current).value} to {OrderStatus(target).value}"
        )
