"""Payment gateway port.

Intent creation, refunds and both signature checks belong to the adapter:
the Razorpay adapter delegates them to the gateway SDK, the fake one signs
locally. Signature checks return False on any mismatch and never raise.
"""

from abc import ABC, abstractmethod


class PaymentGateway(ABC):
    def __init__(self, key_id: str, key_secret: str, webhook_secret: str = ""):
        self.key_id = key_id
        self.key_secret = key_secret
        self.webhook_secret = webhook_secret

    @abstractmethod
    def create_intent(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict | None = None,
    ) -> str:
        """Create a payment intent for ``amount`` minor units; return the gateway order id."""
        ...

    @abstractmethod
    def refund(self, payment_id: str, amount: int) -> str:
        """Refund ``amount`` minor units of a captured payment; return the refund id."""
        ...

    @abstractmethod
    def verify_payment_signature(
        self,
        gateway_order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        ...
