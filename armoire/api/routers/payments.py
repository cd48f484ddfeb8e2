# armoire/api/routers/payments.py
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from armoire.api.deps import get_gateway, get_notification_service, get_request_context, to_http
from armoire.data.database import get_db
from armoire.domain.context import RequestContext
from armoire.domain.errors import CheckoutError, PaymentVerificationFailed
from armoire.domain.schemas import OrderOut, PaymentVerifyIn
from armoire.services.gateway import PaymentGateway
from armoire.services.notification_service import NotificationService
from armoire.services.order_service import serialize_order
from armoire.services.payment_service import PaymentService
from armoire.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["payments"])


@router.post("/payments/verify", response_model=OrderOut)
def verify_payment(
    payload: PaymentVerifyIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifications: NotificationService = Depends(get_notification_service),
):
    svc = PaymentService(db, gateway, notifications)
    try:
        order = svc.verify_payment(
            ctx,
            order_number=payload.order_number,
            gateway_order_id=payload.gateway_order_id,
            gateway_payment_id=payload.gateway_payment_id,
            signature=payload.signature,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except CheckoutError as e:
        raise to_http(e)
    return serialize_order(order)


@router.post("/webhooks/payments")
async def payment_webhook(
    request: Request,
    x_razorpay_signature: str = Header(""),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
    notifications: NotificationService = Depends(get_notification_service),
):
    # podpis liczony z surowego body
    payload = await request.body()

    svc = PaymentService(db, gateway, notifications)
    try:
        # sync SQLAlchemy + celery, poza event loopem
        event = await run_in_threadpool(svc.handle_webhook, payload, x_razorpay_signature)
    except PaymentVerificationFailed:
        return JSONResponse({"error": "Invalid signature"}, status_code=400)
    except CheckoutError as e:
        logger.error(f"Webhook processing failed: {e.message}")
        return JSONResponse({"error": e.message}, status_code=e.status_code)

    return {"success": True, "event": event}
