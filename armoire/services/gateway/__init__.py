"""Payment gateway adapters.

``build_gateway()`` picks the adapter named by ``PAYMENT_GATEWAY``:
``razorpay`` for production, ``fake`` for local development.
"""

from armoire.services.gateway.fake_adapter import FakeGateway
from armoire.services.gateway.port import PaymentGateway
from armoire.services.gateway.razorpay_adapter import RazorpayGateway
from armoire.utils.settings import (
    PAYMENT_GATEWAY,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
    RAZORPAY_WEBHOOK_SECRET,
)


def build_gateway(name: str | None = None) -> PaymentGateway:
    name = name or PAYMENT_GATEWAY
    if name == "fake":
        return FakeGateway()
    if name == "razorpay":
        return RazorpayGateway(
            key_id=RAZORPAY_KEY_ID,
            key_secret=RAZORPAY_KEY_SECRET,
            webhook_secret=RAZORPAY_WEBHOOK_SECRET,
        )
    raise ValueError(f"Unknown payment gateway: {name}")


__all__ = ["PaymentGateway", "RazorpayGateway", "FakeGateway", "build_gateway"]
