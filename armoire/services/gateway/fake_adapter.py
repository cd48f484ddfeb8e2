"""In-process payment gateway for development and tests.

Intent creation and refunds never leave the process. Signatures are plain
HMAC-SHA256 hex digests, the same scheme Razorpay uses, so a client can sign
callbacks with ``sign_payment`` / ``sign_webhook``.
"""

import hashlib
import hmac
from uuid import uuid4

from armoire.domain.errors import UpstreamGatewayError
from armoire.services.gateway.port import PaymentGateway


def _hmac_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def _matches(expected: str, signature: str) -> bool:
    # porownanie na bajtach, compare_digest nie przyjmuje str spoza ASCII
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


class FakeGateway(PaymentGateway):
    def __init__(
        self,
        key_id: str = "rzp_test_fake",
        key_secret: str = "fake_secret",
        webhook_secret: str = "fake_webhook_secret",
    ):
        super().__init__(key_id, key_secret, webhook_secret)
        self.should_succeed = True
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool) -> None:
        self.should_succeed = should_succeed

    def create_intent(self, amount, currency, receipt, notes=None):
        self.calls.append(
            {
                "method": "create_intent",
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
            }
        )
        if not self.should_succeed:
            raise UpstreamGatewayError("Fake gateway configured to fail")
        return f"order_fake_{uuid4().hex[:14]}"

    def refund(self, payment_id, amount):
        self.calls.append({"method": "refund", "payment_id": payment_id, "amount": amount})
        if not self.should_succeed:
            raise UpstreamGatewayError("Fake gateway configured to fail")
        return f"rfnd_fake_{uuid4().hex[:14]}"

    def verify_payment_signature(self, gateway_order_id, payment_id, signature):
        if not self.key_secret or not signature:
            return False
        return _matches(self.sign_payment(gateway_order_id, payment_id), signature)

    def verify_webhook_signature(self, payload, signature):
        if not self.webhook_secret or not signature:
            return False
        return _matches(self.sign_webhook(payload), signature)

    def sign_payment(self, gateway_order_id: str, payment_id: str) -> str:
        return _hmac_hex(self.key_secret, f"{gateway_order_id}|{payment_id}".encode("utf-8"))

    def sign_webhook(self, payload: bytes) -> str:
        return _hmac_hex(self.webhook_secret, payload)
