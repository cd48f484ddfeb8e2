# armoire/services/gateway/razorpay_adapter.py
import razorpay
from razorpay.errors import (
    BadRequestError,
    GatewayError,
    ServerError,
    SignatureVerificationError,
)
from requests import RequestException

from armoire.domain.errors import UpstreamGatewayError
from armoire.services.gateway.port import PaymentGateway
from armoire.utils.retry import http_retry
from armoire.utils.logging import get_logger

logger = get_logger(__name__)

# bledy SDK + transport (SDK chodzi po requests)
_GATEWAY_ERRORS = (BadRequestError, GatewayError, ServerError, RequestException)


class RazorpayGateway(PaymentGateway):
    """Razorpay adapter on top of the official SDK (``razorpay.Client``)."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        webhook_secret: str = "",
        client: razorpay.Client | None = None,
    ):
        super().__init__(key_id, key_secret, webhook_secret)
        self.client = client or razorpay.Client(auth=(key_id, key_secret))

    def _require_credentials(self) -> None:
        if not self.key_id or not self.key_secret:
            logger.error("Razorpay credentials not configured")
            raise UpstreamGatewayError("Razorpay credentials not configured")

    @http_retry()
    def _create_order(self, body: dict) -> dict:
        logger.info(f"Razorpay order.create receipt={body['receipt']} amount={body['amount']}")
        return self.client.order.create(data=body)

    @http_retry()
    def _refund_payment(self, payment_id: str, amount: int) -> dict:
        logger.info(f"Razorpay payment.refund {payment_id} amount={amount}")
        return self.client.payment.refund(payment_id, {"amount": amount})

    def create_intent(self, amount, currency, receipt, notes=None):
        self._require_credentials()

        body = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        try:
            data = self._create_order(body)
        except _GATEWAY_ERRORS as e:
            logger.error(f"Razorpay order creation failed: {e}")
            raise UpstreamGatewayError(f"Failed to create Razorpay order: {e}") from e

        gateway_order_id = data.get("id")
        if not gateway_order_id:
            logger.error(f"Razorpay returned no order id: {data}")
            raise UpstreamGatewayError("Razorpay returned no order id")

        logger.info(f"Razorpay order created: {gateway_order_id}")
        return gateway_order_id

    def refund(self, payment_id, amount):
        self._require_credentials()

        try:
            data = self._refund_payment(payment_id, amount)
        except _GATEWAY_ERRORS as e:
            logger.error(f"Razorpay refund failed for {payment_id}: {e}")
            raise UpstreamGatewayError(f"Razorpay refund failed: {e}") from e

        refund_id = data.get("id")
        if not refund_id:
            logger.error(f"Razorpay returned no refund id: {data}")
            raise UpstreamGatewayError("Razorpay returned no refund id")

        logger.info(f"Razorpay refund {refund_id} created for {payment_id}")
        return refund_id

    def verify_payment_signature(self, gateway_order_id, payment_id, signature):
        if not self.key_secret or not signature:
            return False
        try:
            self.client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": gateway_order_id,
                    "razorpay_payment_id": payment_id,
                    "razorpay_signature": signature,
                }
            )
        except (SignatureVerificationError, TypeError):
            # TypeError: compare_digest na podpisie spoza ASCII
            return False
        return True

    def verify_webhook_signature(self, payload, signature):
        if not self.webhook_secret or not signature:
            return False
        try:
            # SDK liczy HMAC z tekstu, body przychodzi jako bytes
            self.client.utility.verify_webhook_signature(
                payload.decode("utf-8"), signature, self.webhook_secret
            )
        except (SignatureVerificationError, TypeError, UnicodeDecodeError):
            return False
        return True
