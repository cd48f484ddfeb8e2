import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["PAYMENT_GATEWAY"] = "fake"

from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import armoire.data.models  # noqa: F401
from armoire.api import create_app
from armoire.api.deps import get_gateway, get_notification_service, get_otp_service
from armoire.data.database import Base, get_db
from armoire.data.models import (
    AddressModel,
    CartItemModel,
    CartModel,
    ProductModel,
    ProductVariantModel,
    UserModel,
)
from armoire.domain.context import RequestContext
from armoire.repos.cart_repo import CartRepo
from armoire.services.gateway import FakeGateway
from armoire.services.otp_service import OtpService
from armoire.services.otp_store import OtpStore


class RecordingNotifications:
    def __init__(self):
        self.sent = []

    def send_order_notification(self, user_id, order_number):
        self.sent.append((user_id, order_number))


class FakeSms:
    def __init__(self):
        self.messages = []
        self.should_succeed = True

    def send(self, to, body):
        self.messages.append((to, body))
        return self.should_succeed


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifications():
    return RecordingNotifications()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def otp_service(sms):
    return OtpService(store=OtpStore(client=fakeredis.FakeRedis(decode_responses=True)), sms_client=sms)


@pytest.fixture
def client(session_factory, gateway, notifications, otp_service):
    app = create_app()

    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_notification_service] = lambda: notifications
    app.dependency_overrides[get_otp_service] = lambda: otp_service

    with TestClient(app) as c:
        yield c


@pytest.fixture
def customer(db):
    user = UserModel(name="Asha", phone="+919812345678", role="USER")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def other_customer(db):
    user = UserModel(name="Ravi", phone="+919800000001", role="USER")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db):
    user = UserModel(name="Admin", role="ADMIN")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def ctx(customer):
    return RequestContext(user_id=customer.id)


@pytest.fixture
def address(db, customer):
    addr = AddressModel(
        user_id=customer.id,
        street_address="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        country="India",
        postal_code="560001",
        is_default=True,
    )
    db.add(addr)
    db.commit()
    return addr


@pytest.fixture
def product(db):
    product = ProductModel(
        name="Classic Cotton Tee",
        slug="classic-cotton-tee",
        base_price=Decimal("400.00"),
        is_active=True,
        variants=[
            ProductVariantModel(size="M", color="Black", sku="TEE-BLK-M", stock_quantity=10),
            ProductVariantModel(
                size="XL",
                color="Ivory",
                sku="TEE-IVR-XL",
                stock_quantity=3,
                additional_price=Decimal("100.00"),
            ),
        ],
    )
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def fill_cart(db, customer, product):
    """Put lines straight into the customer's cart: fill_cart((variant, qty), ...)."""

    def _fill(*lines):
        cart = CartRepo(db).get_active_cart_by_user(customer.id)
        if cart is None:
            cart = CartModel(user_id=customer.id, status="ACTIVE", version=1)
            db.add(cart)
            db.flush()
        for variant, quantity in lines:
            db.add(
                CartItemModel(
                    cart_id=cart.id,
                    product_id=variant.product_id,
                    variant_id=variant.id,
                    quantity=quantity,
                    unit_price=variant.unit_price,
                )
            )
        db.commit()
        return cart

    return _fill


@pytest.fixture
def auth():
    def _headers(user):
        return {"X-User-Id": str(user.id)}

    return _headers
