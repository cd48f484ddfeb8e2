# armoire/domain/errors.py


class CheckoutError(Exception):
    """Bazowy blad domeny; kazdy niesie kod HTTP i komunikat dla klienta."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CheckoutError):
    status_code = 400


class OrderCreationFailed(CheckoutError):
    status_code = 400


class PaymentVerificationFailed(CheckoutError):
    status_code = 400


class UpstreamGatewayError(CheckoutError):
    """Blad sieci / 5xx od bramki platnosci lub dostawcy SMS."""

    status_code = 500
    public_message = "Payment service unavailable, please try again"


class OrderNotFound(CheckoutError):
    status_code = 404


class InvalidOrderTransition(CheckoutError):
    status_code = 409


class RateLimited(CheckoutError):
    status_code = 429
