from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from armoire.data.models import OrderItemModel, OrderModel
from armoire.domain.context import RequestContext
from armoire.domain.errors import InvalidOrderTransition, OrderCreationFailed, OrderNotFound
from armoire.services.notification_service import NotificationService, send_order_notification_task
from armoire.services.order_service import OrderService, generate_order_number
from armoire.tasks.expire import expire_pending_orders


def _order_count(db):
    return db.query(OrderModel).count()


def test_order_number_format():
    number = generate_order_number(datetime(2026, 10, 19, tzinfo=timezone.utc))

    prefix, date, suffix = number.split("-")
    assert prefix == "ORD"
    assert date == "20261019"
    assert len(suffix) == 6 and suffix.isdigit()


def test_create_order_snapshots_cart_and_computes_totals(db, ctx, address, product, fill_cart):
    medium, xl = product.variants
    cart = fill_cart((medium, 2))  # 2 x 400

    order = OrderService(db).create_order(ctx, address.id)

    assert order.status == "CREATED"
    assert order.payment_status == "PENDING"
    assert order.cart_id == cart.id
    assert order.subtotal == Decimal("800.00")
    assert order.shipping_cost == Decimal("99.00")
    assert order.tax_amount == Decimal("144.00")
    assert order.total == Decimal("1043.00")
    assert [(i.variant_id, i.quantity, i.unit_price_at_purchase) for i in order.items] == [
        (medium.id, 2, Decimal("400.00"))
    ]


def test_total_equals_items_plus_shipping_plus_tax_for_many_lines(db, ctx, address, product, fill_cart):
    medium, xl = product.variants
    fill_cart((medium, 1), (xl, 2))  # 400 + 2 x 500

    order = OrderService(db).create_order(ctx, address.id)

    item_sum = sum(i.quantity * i.unit_price_at_purchase for i in order.items)
    assert item_sum == Decimal("1400.00")
    assert order.shipping_cost == Decimal("0.00")
    assert order.tax_amount == Decimal("252.00")
    assert order.total == item_sum + order.shipping_cost + order.tax_amount


def test_order_prices_do_not_follow_later_product_changes(db, ctx, address, product, fill_cart):
    medium, _ = product.variants
    fill_cart((medium, 3))
    order = OrderService(db).create_order(ctx, address.id)

    product.base_price = Decimal("999.00")
    db.commit()
    db.expire_all()

    stored = db.get(OrderModel, order.id)
    assert stored.total == Decimal("1416.00")
    assert stored.items[0].unit_price_at_purchase == Decimal("400.00")


def test_empty_cart_fails_and_creates_nothing(db, ctx, address, product, fill_cart):
    fill_cart()

    with pytest.raises(OrderCreationFailed):
        OrderService(db).create_order(ctx, address.id)

    assert _order_count(db) == 0


def test_missing_cart_fails(db, ctx, address):
    with pytest.raises(OrderCreationFailed):
        OrderService(db).create_order(ctx, address.id)

    assert _order_count(db) == 0


def test_out_of_stock_variant_fails_without_partial_rows(db, ctx, address, product, fill_cart):
    medium, xl = product.variants
    fill_cart((medium, 1), (xl, 2))
    xl.stock_quantity = 1
    db.commit()

    with pytest.raises(OrderCreationFailed, match="TEE-IVR-XL"):
        OrderService(db).create_order(ctx, address.id)

    assert _order_count(db) == 0
    assert db.query(OrderItemModel).count() == 0


def test_inactive_variant_fails(db, ctx, address, product, fill_cart):
    medium, _ = product.variants
    fill_cart((medium, 1))
    medium.is_active = False
    db.commit()

    with pytest.raises(OrderCreationFailed):
        OrderService(db).create_order(ctx, address.id)


def test_address_of_another_user_is_rejected(db, address, other_customer, product):
    from armoire.data.models import CartItemModel, CartModel

    medium, _ = product.variants
    cart = CartModel(user_id=other_customer.id, status="ACTIVE", version=1)
    db.add(cart)
    db.flush()
    db.add(CartItemModel(cart_id=cart.id, product_id=product.id, variant_id=medium.id,
                         quantity=1, unit_price=Decimal("400.00")))
    db.commit()

    with pytest.raises(OrderCreationFailed, match="address"):
        OrderService(db).create_order(RequestContext(user_id=other_customer.id), address.id)

    assert _order_count(db) == 0


def test_get_order_checks_ownership(db, ctx, address, product, fill_cart, other_customer):
    medium, _ = product.variants
    fill_cart((medium, 1))
    order = OrderService(db).create_order(ctx, address.id)
    service = OrderService(db)

    assert service.get_order(ctx, order.order_number).id == order.id
    with pytest.raises(PermissionError):
        service.get_order(RequestContext(user_id=other_customer.id), order.order_number)
    with pytest.raises(OrderNotFound):
        service.get_order(ctx, "ORD-00000000-000000")


def test_cancel_only_before_payment(db, ctx, address, product, fill_cart):
    medium, _ = product.variants
    fill_cart((medium, 1))
    service = OrderService(db)
    order = service.create_order(ctx, address.id)

    cancelled = service.cancel_order(ctx, order.order_number, reason="Ordered the wrong size")
    assert cancelled.status == "CANCELLED"
    assert cancelled.cancellation_reason == "Ordered the wrong size"
    assert cancelled.cancelled_at is not None

    with pytest.raises(InvalidOrderTransition):
        service.cancel_order(ctx, order.order_number)


def test_fulfill_requires_paid_order(db, ctx, address, product, fill_cart):
    medium, _ = product.variants
    fill_cart((medium, 1))
    service = OrderService(db)
    order = service.create_order(ctx, address.id)

    with pytest.raises(InvalidOrderTransition):
        service.fulfill_order(order.order_number)


def test_history_is_paged_newest_first(db, ctx, address, product, fill_cart):
    medium, _ = product.variants
    fill_cart((medium, 1))
    service = OrderService(db)
    numbers = [service.create_order(ctx, address.id).order_number for _ in range(3)]

    first = service.user_orders(ctx, page=0, size=2)
    second = service.user_orders(ctx, page=1, size=2)

    assert first["total_elements"] == 3
    assert first["total_pages"] == 2
    assert [o["order_number"] for o in first["data"] + second["data"]] == list(reversed(numbers))


def test_expire_cancels_stale_unpaid_orders(db, ctx, address, product, fill_cart):
    medium, _ = product.variants
    fill_cart((medium, 1))
    service = OrderService(db)
    stale = service.create_order(ctx, address.id)
    fresh = service.create_order(ctx, address.id)
    stale.created_at = datetime.now(timezone.utc) - timedelta(hours=2)
    db.commit()

    assert expire_pending_orders(db) == 1

    db.expire_all()
    assert db.get(OrderModel, stale.id).status == "CANCELLED"
    assert db.get(OrderModel, stale.id).cancellation_reason == "Payment not completed in time"
    assert db.get(OrderModel, fresh.id).status == "CREATED"


def test_order_notification_task_runs_eagerly():
    result = NotificationService.send_order_notification(7, "ORD-20261019-123456")
    direct = send_order_notification_task.delay(7, "ORD-20261019-123456")

    assert result is None
    assert direct.get() == {"user_id": 7, "order_number": "ORD-20261019-123456", "status": "sent"}
