# armoire/api/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from armoire.api.deps import get_gateway, get_notification_service, get_request_context, to_http
from armoire.data.database import get_db
from armoire.domain.context import RequestContext
from armoire.domain.errors import CheckoutError
from armoire.domain.schemas import CheckoutIn, CheckoutOut
from armoire.services.gateway import PaymentGateway
from armoire.services.notification_service import NotificationService
from armoire.services.payment_service import PaymentService

router = APIRouter(tags=["checkout"])


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Tworzy zamowienie z koszyka i intent w bramce platnosci.
    Klient otwiera okno platnosci z gateway_order_id.
    """
    svc = PaymentService(db, gateway, notifications)
    try:
        return svc.checkout(ctx, payload.shipping_address_id)
    except CheckoutError as e:
        raise to_http(e)
